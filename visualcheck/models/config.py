"""Configuration models for visual comparison."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from visualcheck.errors import ConfigurationError

DEFAULT_PIXEL_TOLERANCE = 0.1
DEFAULT_DIFF_THRESHOLD = 0.01

ENV_OVERRIDES = {
    "VISUALCHECK_PIXEL_TOLERANCE": "pixel_tolerance",
    "VISUALCHECK_DIFF_THRESHOLD": "diff_threshold",
}


def check_fraction(field: str, value: float) -> float:
    """Return ``value`` as a float or raise ConfigurationError if outside [0, 1]."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{field} must be a number, got {value!r}") from None
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{field} must be between 0 and 1, got {value}")
    return value


def apply_env_overrides(data: dict) -> dict:
    for env_var, field in ENV_OVERRIDES.items():
        if env_var in os.environ:
            data[field] = check_fraction(env_var, os.environ[env_var])
    return data


class VisualConfig(BaseModel):
    # Storage roots; actual/diff live apart from baselines so cleaning is safe
    baseline_dir: str = "./visual-baselines"
    actual_dir: str = "./visual-artifacts/actual"
    diff_dir: str = "./visual-artifacts/diffs"

    # Matching
    pixel_tolerance: float = DEFAULT_PIXEL_TOLERANCE
    diff_threshold: float = DEFAULT_DIFF_THRESHOLD

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["html", "json"])
    report_output_dir: str = "./visual-reports"
    attachments_dir: str = "./visual-reports/attachments"

    @field_validator("pixel_tolerance", "diff_threshold")
    @classmethod
    def within_unit_interval(cls, v: float, info) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"{info.field_name} must be between 0 and 1, got {v}")
        return v

    @field_validator("report_formats")
    @classmethod
    def known_formats(cls, v: list[str]) -> list[str]:
        unknown = [f for f in v if f not in ("html", "json")]
        if unknown:
            raise ValueError(f"Unknown report formats: {', '.join(unknown)}")
        return v

    @classmethod
    def from_dict(cls, data: dict) -> "VisualConfig":
        """Build a config, reporting invalid values as ConfigurationError."""
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid visual config: {e}") from e

    @classmethod
    def load(cls, path: str | Path) -> "VisualConfig":
        """Load config from a JSON file, then apply environment overrides."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Config file is not valid JSON: {path}: {e}") from e
        return cls.from_dict(apply_env_overrides(data))

    @classmethod
    def from_env(cls) -> "VisualConfig":
        """Defaults with environment overrides, for runs without a config file."""
        return cls.from_dict(apply_env_overrides({}))

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
