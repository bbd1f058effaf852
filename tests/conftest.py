"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Optional

import pytest
from PIL import Image

from visdiff.models.config import DiffConfig
from visdiff.models.diff_record import DiffData, DiffRecord
from visdiff.store.record_store import RecordStore


WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


# ============================================================================
# Image Fixtures
# ============================================================================


def _write_png(
    path: Path,
    size: tuple[int, int] = (8, 8),
    color: tuple[int, int, int, int] = WHITE,
    pixels: Optional[dict[tuple[int, int], tuple[int, int, int, int]]] = None,
) -> Path:
    img = Image.new("RGBA", size, color)
    for xy, value in (pixels or {}).items():
        img.putpixel(xy, value)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
    return path


@pytest.fixture
def make_png() -> Callable[..., Path]:
    """Factory writing a solid RGBA PNG, optionally with a few recolored pixels."""
    return _write_png


@pytest.fixture
def image_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Baseline and test directories with three identical pairs and one changed pair."""
    baseline = tmp_path / "baseline"
    test = tmp_path / "test"
    for name in ("a.png", "b.png", "c.png"):
        _write_png(baseline / name)
        _write_png(test / name)
    _write_png(baseline / "changed.png")
    _write_png(test / "changed.png", pixels={(1, 1): RED, (2, 3): RED})
    return baseline, test


# ============================================================================
# Model Fixtures
# ============================================================================


@pytest.fixture
def diff_config() -> DiffConfig:
    return DiffConfig(worker_count=2, differs=["different_pixels", "luminance"])


@pytest.fixture
def sample_records() -> list[DiffRecord]:
    """Two records; the second has no luminance result."""
    return [
        DiffRecord(
            baseline_path="baseline/page_01.png",
            test_path="test/page_01.png",
            common_name="page_01.png",
            diffs=[
                DiffData(differ_name="different_pixels", result=1.0),
                DiffData(differ_name="luminance", result=1.0),
            ],
        ),
        DiffRecord(
            baseline_path="baseline/page_02_before.png",
            test_path="test/page_02_after.png",
            common_name="page_02_",
            difference_path="diffs/page_02_",
            diffs=[
                DiffData(
                    differ_name="different_pixels",
                    result=0.75,
                    points_of_interest=[(0, 0), (3, 1)],
                ),
            ],
        ),
    ]


@pytest.fixture
def populated_store(sample_records: list[DiffRecord]) -> RecordStore:
    store = RecordStore()
    for record in sample_records:
        store.append(record)
    return store
