"""Comparison result data structures."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ComparisonResult(BaseModel):
    """Outcome of comparing one capture against its baseline."""

    model_config = ConfigDict(frozen=True)

    baseline_name: str
    passed: bool
    diff_percent: float = 0.0  # 0.0 to 100.0
    diff_pixel_count: int = 0
    total_pixels: int = 0
    message: str = ""
    baseline_path: Optional[str] = None
    actual_path: Optional[str] = None
    diff_path: Optional[str] = None  # only set when diff_pixel_count > 0
    threshold_percent: float = 0.0
    baseline_created: bool = False
    dimension_mismatch: bool = False


class ComparisonRun(BaseModel):
    """A batch of comparisons gathered for a report."""

    run_id: str
    started_at: str
    completed_at: str = ""
    pixel_tolerance: float = 0.1
    diff_threshold: float = 0.01
    results: list[ComparisonResult] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def created(self) -> int:
        return sum(1 for r in self.results if r.baseline_created)
