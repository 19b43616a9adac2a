"""Assertion layer — turns comparison results into pass/raise semantics."""

from __future__ import annotations

import logging
from typing import Mapping

from visualcheck.errors import VisualComparisonException
from visualcheck.models.comparison import ComparisonResult

logger = logging.getLogger(__name__)


def failure_message(result: ComparisonResult) -> str:
    return (
        f"Visual comparison failed for '{result.baseline_name}': "
        f"{result.diff_percent:.2f}% difference (threshold: {result.threshold_percent:.2f}%)"
    )


def ensure_passed(result: ComparisonResult) -> ComparisonResult:
    """Return ``result`` unchanged, or raise if it did not pass."""
    if not result.passed:
        raise VisualComparisonException(failure_message(result), result=result)
    return result


def ensure_all_passed(results: Mapping[str, ComparisonResult]) -> Mapping[str, ComparisonResult]:
    """Raise one exception naming every failing entry in ``results``."""
    failures = {name: r for name, r in results.items() if not r.passed}
    if not failures:
        return results

    lines = "".join(f"{name}: {r.diff_percent:.2f}% diff\n" for name, r in failures.items())
    logger.warning("%d of %d visual comparisons failed", len(failures), len(results))
    raise VisualComparisonException(
        "Visual comparison failures:\n" + lines,
        failures=failures,
    )
