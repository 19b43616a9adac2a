"""Pixel comparator — per-pixel tolerance matching and diff image synthesis."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from visualcheck.imaging.pixel_buffer import Pixel, PixelBuffer
from visualcheck.models.config import DEFAULT_PIXEL_TOLERANCE, check_fraction

logger = logging.getLogger(__name__)

DIFF_COLOR = (255, 0, 0, 255)


@dataclass(frozen=True)
class PixelDiff:
    """Raw outcome of a pixel comparison, before thresholds are applied."""

    diff_pixel_count: int
    total_pixels: int
    diff_image: PixelBuffer | None = None
    dimension_mismatch: bool = False
    baseline_size: tuple[int, int] = (0, 0)
    actual_size: tuple[int, int] = (0, 0)

    @property
    def diff_percent(self) -> float:
        if self.dimension_mismatch:
            return 100.0
        if self.total_pixels == 0:
            return 0.0
        return self.diff_pixel_count / self.total_pixels * 100


def luminance(pixel: Pixel) -> int:
    """Integer-truncated Rec. 601 luma of an RGB(A) pixel."""
    r, g, b = pixel[0], pixel[1], pixel[2]
    return int(0.299 * r + 0.587 * g + 0.114 * b)


def pixels_match(a: Pixel, b: Pixel, tolerance: float) -> bool:
    """True when every RGB channel differs by at most ``tolerance`` (alpha ignored)."""
    return (
        abs(a[0] - b[0]) <= tolerance
        and abs(a[1] - b[1]) <= tolerance
        and abs(a[2] - b[2]) <= tolerance
    )


class PixelComparator:
    """Compares two decoded images pixel by pixel."""

    def __init__(self, pixel_tolerance: float = DEFAULT_PIXEL_TOLERANCE):
        self.pixel_tolerance = check_fraction("pixel_tolerance", pixel_tolerance)

    @property
    def channel_tolerance(self) -> float:
        return self.pixel_tolerance * 255

    def compare(self, baseline: PixelBuffer, actual: PixelBuffer) -> PixelDiff:
        if baseline.size != actual.size:
            logger.warning(
                "Image dimensions don't match. Baseline: %dx%d, Actual: %dx%d",
                baseline.width, baseline.height, actual.width, actual.height,
            )
            return PixelDiff(
                diff_pixel_count=0,
                total_pixels=actual.total_pixels,
                dimension_mismatch=True,
                baseline_size=baseline.size,
                actual_size=actual.size,
            )

        tolerance = self.channel_tolerance
        diff_count = 0
        diff_pixels: list[Pixel] = []

        # pixels are stored row-major, so this walks y then x
        for expected, current in zip(baseline.pixels, actual.pixels):
            if pixels_match(expected, current, tolerance):
                gray = luminance(current)
                diff_pixels.append((gray, gray, gray, 255))
            else:
                diff_count += 1
                diff_pixels.append(DIFF_COLOR)

        diff_image = None
        if diff_count > 0:
            diff_image = PixelBuffer(actual.width, actual.height, diff_pixels, "RGBA")

        logger.debug(
            "Pixel comparison: %d/%d pixels differ (tolerance %.1f per channel)",
            diff_count, actual.total_pixels, tolerance,
        )
        return PixelDiff(
            diff_pixel_count=diff_count,
            total_pixels=actual.total_pixels,
            diff_image=diff_image,
            baseline_size=baseline.size,
            actual_size=actual.size,
        )
