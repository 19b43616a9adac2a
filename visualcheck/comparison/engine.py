"""Comparison engine — ties captures, the baseline repository and the comparator together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

from visualcheck.baseline.repository import BaselineRepository, FileSystemBaselineRepository
from visualcheck.capture.page_capture import CaptureProvider, CaptureTarget
from visualcheck.comparison.assertions import ensure_all_passed, ensure_passed
from visualcheck.comparison.comparator import PixelComparator, PixelDiff
from visualcheck.imaging.codec import ImageCodec, PillowCodec
from visualcheck.models.comparison import ComparisonResult
from visualcheck.models.config import (
    DEFAULT_DIFF_THRESHOLD,
    DEFAULT_PIXEL_TOLERANCE,
    VisualConfig,
    check_fraction,
)
from visualcheck.reporter.sinks import ReportSink

logger = logging.getLogger(__name__)

BASELINE_CREATED = "Baseline created"


class VisualRegressionEngine:
    """
    Compares captured screenshots against named baselines.

    Features:
    - Bootstraps a missing baseline from the first capture
    - Per-channel color tolerance and whole-image diff threshold
    - Diff image persisted and forwarded to a report sink
    - Batch comparison across many named regions
    """

    def __init__(
        self,
        repository: BaselineRepository,
        codec: ImageCodec | None = None,
        report_sink: ReportSink | None = None,
        pixel_tolerance: float = DEFAULT_PIXEL_TOLERANCE,
        diff_threshold: float = DEFAULT_DIFF_THRESHOLD,
    ):
        """
        Initialize engine.

        Args:
            repository: Storage for baselines, actual captures and diffs
            codec: Raster decode/encode implementation (default: Pillow PNG)
            report_sink: Optional receiver for diff image attachments
            pixel_tolerance: Fraction of the 0-255 channel range treated as equal
            diff_threshold: Maximum fraction of differing pixels that still passes
        """
        self.repository = repository
        self.codec = codec or PillowCodec()
        self.report_sink = report_sink
        self.pixel_tolerance = check_fraction("pixel_tolerance", pixel_tolerance)
        self.diff_threshold = check_fraction("diff_threshold", diff_threshold)
        self.comparator = PixelComparator(self.pixel_tolerance)

    @classmethod
    def from_config(
        cls,
        config: VisualConfig,
        report_sink: ReportSink | None = None,
        repository: BaselineRepository | None = None,
    ) -> "VisualRegressionEngine":
        repository = repository or FileSystemBaselineRepository(
            baseline_dir=Path(config.baseline_dir),
            actual_dir=Path(config.actual_dir),
            diff_dir=Path(config.diff_dir),
        )
        return cls(
            repository,
            report_sink=report_sink,
            pixel_tolerance=config.pixel_tolerance,
            diff_threshold=config.diff_threshold,
        )

    # -- configuration --

    def _replace(self, **changes) -> "VisualRegressionEngine":
        settings = {
            "repository": self.repository,
            "codec": self.codec,
            "report_sink": self.report_sink,
            "pixel_tolerance": self.pixel_tolerance,
            "diff_threshold": self.diff_threshold,
        }
        settings.update(changes)
        return type(self)(**settings)

    def with_pixel_tolerance(self, tolerance: float) -> "VisualRegressionEngine":
        """Return a copy using ``tolerance`` (0.0 to 1.0) for color matching."""
        return self._replace(pixel_tolerance=tolerance)

    def with_diff_threshold(self, threshold: float) -> "VisualRegressionEngine":
        """Return a copy allowing at most ``threshold`` (0.0 to 1.0) differing pixels."""
        return self._replace(diff_threshold=threshold)

    @property
    def threshold_percent(self) -> float:
        return self.diff_threshold * 100

    # -- baselines --

    def save_baseline(self, name: str, screenshot: bytes) -> str:
        return self.repository.save(name, screenshot)

    def load_baseline(self, name: str) -> bytes:
        return self.repository.load(name)

    def baseline_exists(self, name: str) -> bool:
        return self.repository.exists(name)

    def update_baseline(self, name: str, screenshot: bytes) -> str:
        return self.repository.update(name, screenshot)

    # -- comparison --

    def compare(self, name: str, actual: bytes) -> ComparisonResult:
        """Compare ``actual`` with the baseline stored under ``name``.

        The first comparison for a name stores ``actual`` as its baseline and
        passes. Visual differences never raise; see ``assert_match``.
        """
        logger.info("Comparing screenshot with baseline: %s", name)

        actual_path = self.repository.save_actual(name, actual)
        actual_img = self.codec.decode(actual)

        with self.repository.lock(name):
            if not self.repository.exists(name):
                logger.warning("Baseline not found, saving current as baseline: %s", name)
                baseline_path = self.repository.save(name, actual)
                return ComparisonResult(
                    baseline_name=name,
                    passed=True,
                    diff_percent=0.0,
                    total_pixels=actual_img.total_pixels,
                    message=BASELINE_CREATED,
                    baseline_path=baseline_path,
                    actual_path=actual_path,
                    threshold_percent=self.threshold_percent,
                    baseline_created=True,
                )
            baseline = self.repository.load(name)

        baseline_img = self.codec.decode(baseline)
        diff = self.comparator.compare(baseline_img, actual_img)
        baseline_path = self.repository.baseline_path(name)

        if diff.dimension_mismatch:
            return ComparisonResult(
                baseline_name=name,
                passed=False,
                diff_percent=100.0,
                total_pixels=diff.total_pixels,
                message=_mismatch_message(diff),
                baseline_path=baseline_path,
                actual_path=actual_path,
                threshold_percent=self.threshold_percent,
                dimension_mismatch=True,
            )

        diff_percent = diff.diff_percent
        passed = diff_percent <= self.threshold_percent
        logger.info("Comparison result: %.2f%% diff, passed=%s", diff_percent, passed)

        diff_path = None
        if diff.diff_image is not None:
            diff_bytes = self.codec.encode(diff.diff_image)
            diff_path = self.repository.save_diff(name, diff_bytes)
            self._attach(f"{name} - Diff", diff_bytes)

        return ComparisonResult(
            baseline_name=name,
            passed=passed,
            diff_percent=diff_percent,
            diff_pixel_count=diff.diff_pixel_count,
            total_pixels=diff.total_pixels,
            message="Visual comparison passed" if passed else "Visual comparison failed",
            baseline_path=baseline_path,
            actual_path=actual_path,
            diff_path=diff_path,
            threshold_percent=self.threshold_percent,
        )

    def compare_element_region(self, name: str, region: bytes) -> ComparisonResult:
        """Compare a bounded element capture; same contract as ``compare``."""
        return self.compare(name, region)

    def compare_all(self, regions: Mapping[str, bytes]) -> dict[str, ComparisonResult]:
        """Compare every named region, continuing past visual failures."""
        return {name: self.compare(name, data) for name, data in regions.items()}

    def compare_full_page(self, name: str, capture: CaptureProvider) -> ComparisonResult:
        return self.compare(name, capture.capture_full_page())

    def compare_viewport(self, name: str, capture: CaptureProvider) -> ComparisonResult:
        return self.compare(name, capture.capture_viewport())

    def compare_element(self, name: str, capture: CaptureProvider, target: CaptureTarget) -> ComparisonResult:
        return self.compare_element_region(name, capture.capture_element(target))

    def compare_elements(
        self, capture: CaptureProvider, targets: Mapping[str, CaptureTarget]
    ) -> dict[str, ComparisonResult]:
        return {name: self.compare_element(name, capture, target) for name, target in targets.items()}

    # -- assertions --

    def assert_match(self, name: str, actual: bytes) -> ComparisonResult:
        return ensure_passed(self.compare(name, actual))

    def assert_all_match(self, regions: Mapping[str, bytes]) -> dict[str, ComparisonResult]:
        results = self.compare_all(regions)
        ensure_all_passed(results)
        return results

    def assert_page_matches(self, name: str, capture: CaptureProvider) -> ComparisonResult:
        return ensure_passed(self.compare_full_page(name, capture))

    def assert_element_matches(
        self, name: str, capture: CaptureProvider, target: CaptureTarget
    ) -> ComparisonResult:
        return ensure_passed(self.compare_element(name, capture, target))

    def assert_all_elements_match(
        self, capture: CaptureProvider, targets: Mapping[str, CaptureTarget]
    ) -> dict[str, ComparisonResult]:
        results = self.compare_elements(capture, targets)
        ensure_all_passed(results)
        return results

    def _attach(self, label: str, data: bytes) -> None:
        if self.report_sink is None:
            return
        try:
            self.report_sink.attach(label, "image/png", data, "png")
        except Exception as e:
            logger.warning("Failed to attach '%s' to report: %s", label, e)


def _mismatch_message(diff: PixelDiff) -> str:
    bw, bh = diff.baseline_size
    aw, ah = diff.actual_size
    return f"Dimension mismatch. Baseline: {bw}x{bh}, Actual: {aw}x{ah}"
