"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path

import pytest
from PIL import Image

from visualcheck.baseline.repository import FileSystemBaselineRepository
from visualcheck.comparison.engine import VisualRegressionEngine
from visualcheck.reporter.sinks import MemoryReportSink


# ============================================================================
# Image Fixtures
# ============================================================================


def make_png(width: int, height: int, color=(0, 0, 0), overrides=None) -> bytes:
    """Encode a solid PNG, optionally with individual pixels replaced."""
    mode = "RGBA" if len(color) == 4 else "RGB"
    img = Image.new(mode, (width, height), color)
    for (x, y), value in (overrides or {}).items():
        img.putpixel((x, y), value)
    out = io.BytesIO()
    img.save(out, "PNG")
    return out.getvalue()


def read_png(data_or_path) -> Image.Image:
    if isinstance(data_or_path, (str, Path)):
        data_or_path = Path(data_or_path).read_bytes()
    img = Image.open(io.BytesIO(data_or_path))
    img.load()
    return img


@pytest.fixture
def black_2x2() -> bytes:
    return make_png(2, 2, (0, 0, 0))


@pytest.fixture
def one_white_pixel_2x2() -> bytes:
    return make_png(2, 2, (0, 0, 0), {(1, 0): (255, 255, 255)})


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def repository(tmp_path: Path) -> FileSystemBaselineRepository:
    return FileSystemBaselineRepository(
        baseline_dir=tmp_path / "baselines",
        actual_dir=tmp_path / "actual",
        diff_dir=tmp_path / "diffs",
    )


@pytest.fixture
def report_sink() -> MemoryReportSink:
    return MemoryReportSink()


@pytest.fixture
def engine(repository, report_sink) -> VisualRegressionEngine:
    return VisualRegressionEngine(repository, report_sink=report_sink)


@pytest.fixture
def png():
    """Factory fixture: ``png(width, height, color, overrides)`` -> PNG bytes."""
    return make_png


@pytest.fixture
def decode_png():
    return read_png
