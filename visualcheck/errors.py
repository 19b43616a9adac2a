"""Exception types raised by the visual comparison engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from visualcheck.models.comparison import ComparisonResult


class VisualCheckError(Exception):
    """Base class for all visualcheck errors."""


class NotFoundError(VisualCheckError):
    """No baseline is stored under the requested name."""

    def __init__(self, name: str, path: str | None = None):
        self.name = name
        self.path = path
        where = f": {path}" if path else ""
        super().__init__(f"Baseline not found for '{name}'{where}")


class DecodeError(VisualCheckError):
    """Bytes could not be decoded as a raster image."""


class ConfigurationError(VisualCheckError):
    """Invalid tolerance, threshold or repository setup."""


class VisualComparisonException(VisualCheckError, AssertionError):
    """A comparison did not meet its threshold.

    Single assertions carry the full ``result``; batch assertions carry every
    failing result in ``failures`` and leave ``result`` unset.
    """

    def __init__(
        self,
        message: str,
        result: ComparisonResult | None = None,
        failures: Mapping[str, ComparisonResult] | None = None,
    ):
        super().__init__(message)
        self.result = result
        self.failures = dict(failures or {})
