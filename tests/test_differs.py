"""Tests for the differ protocol, bundled differs and registry."""

import pytest
from PIL import Image

from visdiff.differs.base import (
    RESULT_CORRECT,
    RESULT_INCORRECT,
    BaseDiffer,
    DiffBook,
    DiffEntry,
    Differ,
    queued_diff,
)
from visdiff.differs.different_pixels import DifferentPixelsDiffer, mask_points
from visdiff.differs.luminance import LuminanceDiffer
from visdiff.differs.registry import (
    available_differs,
    create_differ,
    create_differs,
    register_differ,
)
from visdiff.models.config import DiffConfig


def _image(size=(4, 3), color=(255, 255, 255, 255), pixels=None) -> Image.Image:
    img = Image.new("RGBA", size, color)
    for xy, value in (pixels or {}).items():
        img.putpixel(xy, value)
    return img


# ============================================================================
# Protocol plumbing
# ============================================================================


class TestDiffBook:
    """Tests for the thread-safe diff table."""

    def test_ids_are_unique(self):
        book = DiffBook()
        ids = {book.add(DiffEntry(result=1.0)) for _ in range(50)}
        assert len(ids) == 50
        assert len(book) == 50

    def test_released_id_is_invalid(self):
        book = DiffBook()
        diff_id = book.add(DiffEntry(result=0.5))
        book.remove(diff_id)
        with pytest.raises(KeyError):
            book.get(diff_id)


class TestQueuedDiff:
    """Tests for the scoped diff-id helper."""

    def test_releases_id_on_exit(self):
        differ = DifferentPixelsDiffer()
        with queued_diff(differ, _image(), _image()) as diff_id:
            assert diff_id is not None
            assert differ.live_diff_count == 1
        assert differ.live_diff_count == 0

    def test_releases_id_on_error(self):
        differ = DifferentPixelsDiffer()
        with pytest.raises(RuntimeError):
            with queued_diff(differ, _image(), _image()):
                raise RuntimeError("boom")
        assert differ.live_diff_count == 0

    def test_yields_none_when_not_applicable(self):
        differ = DifferentPixelsDiffer()
        with queued_diff(differ, _image(size=(4, 3)), _image(size=(3, 4))) as diff_id:
            assert diff_id is None
        assert differ.live_diff_count == 0

    def test_bundled_differs_satisfy_protocol(self):
        assert isinstance(DifferentPixelsDiffer(), Differ)
        assert isinstance(LuminanceDiffer(), Differ)

    def test_base_differ_requires_compare(self):
        with pytest.raises(NotImplementedError):
            BaseDiffer().queue_diff(_image(), _image())


# ============================================================================
# Bundled differs
# ============================================================================


class TestDifferentPixelsDiffer:
    """Tests for the different_pixels differ."""

    def test_identical_images(self):
        differ = DifferentPixelsDiffer()
        diff_id = differ.queue_diff(_image(), _image())

        assert differ.get_result(diff_id) == RESULT_CORRECT
        assert differ.get_points_of_interest_count(diff_id) == 0
        assert differ.get_points_of_interest(diff_id) == []

    def test_changed_pixels_are_points_of_interest(self):
        differ = DifferentPixelsDiffer()
        red = (255, 0, 0, 255)
        diff_id = differ.queue_diff(_image(), _image(pixels={(2, 1): red, (0, 2): red}))

        assert differ.get_points_of_interest(diff_id) == [(2, 1), (0, 2)]
        assert differ.get_points_of_interest_count(diff_id) == 2
        assert differ.get_result(diff_id) == pytest.approx(1.0 - 2 / 12)

    def test_all_pixels_changed(self):
        differ = DifferentPixelsDiffer()
        diff_id = differ.queue_diff(_image(), _image(color=(0, 0, 0, 255)))
        assert differ.get_result(diff_id) == RESULT_INCORRECT

    def test_threshold_tolerates_small_changes(self):
        differ = DifferentPixelsDiffer(threshold=10)
        diff_id = differ.queue_diff(_image(), _image(pixels={(0, 0): (250, 250, 250, 255)}))
        assert differ.get_result(diff_id) == RESULT_CORRECT

    def test_size_mismatch_not_applicable(self):
        differ = DifferentPixelsDiffer()
        assert differ.queue_diff(_image(size=(4, 3)), _image(size=(4, 4))) is None

    def test_alpha_mask_only_when_enabled(self):
        differ = DifferentPixelsDiffer()
        changed = _image(pixels={(1, 1): (0, 0, 0, 255)})

        diff_id = differ.queue_diff(_image(), changed)
        assert differ.get_points_of_interest_alpha_mask(diff_id) is None

        assert differ.enable_poi_alpha_mask() is True
        diff_id = differ.queue_diff(_image(), changed)
        mask = differ.get_points_of_interest_alpha_mask(diff_id)
        assert mask.mode == "L"
        assert mask.size == (4, 3)
        assert mask_points(mask) == [(1, 1)]

    def test_alpha_mask_can_be_disabled(self):
        differ = DifferentPixelsDiffer()
        differ.enable_poi_alpha_mask()
        differ.disable_poi_alpha_mask()

        diff_id = differ.queue_diff(_image(), _image(pixels={(1, 1): (0, 0, 0, 255)}))
        assert differ.get_points_of_interest_alpha_mask(diff_id) is None


class TestLuminanceDiffer:
    """Tests for the luminance differ."""

    def test_identical_images(self):
        differ = LuminanceDiffer()
        diff_id = differ.queue_diff(_image(), _image())
        assert differ.get_result(diff_id) == RESULT_CORRECT
        assert differ.get_points_of_interest(diff_id) == []

    def test_small_shift_within_tolerance(self):
        differ = LuminanceDiffer(tolerance=8)
        base = _image(color=(100, 100, 100, 255))
        shifted = _image(color=(103, 103, 103, 255))
        diff_id = differ.queue_diff(base, shifted)
        assert differ.get_result(diff_id) == RESULT_CORRECT

    def test_large_change_flagged(self):
        differ = LuminanceDiffer(tolerance=8)
        diff_id = differ.queue_diff(_image(), _image(pixels={(3, 2): (0, 0, 0, 255)}))
        assert differ.get_points_of_interest(diff_id) == [(3, 2)]
        assert differ.get_result(diff_id) == pytest.approx(11 / 12)

    def test_every_pixel_changed(self):
        differ = LuminanceDiffer(tolerance=8)
        diff_id = differ.queue_diff(_image(), _image(color=(0, 0, 0, 255)))
        assert differ.get_result(diff_id) == RESULT_INCORRECT
        assert differ.get_points_of_interest_count(diff_id) == 12

    def test_no_alpha_mask_support(self):
        assert LuminanceDiffer().enable_poi_alpha_mask() is False


# ============================================================================
# Registry
# ============================================================================


class TestRegistry:
    """Tests for differ lookup by name."""

    def test_available_differs(self):
        names = available_differs()
        assert "different_pixels" in names
        assert "luminance" in names

    def test_create_uses_config(self):
        cfg = DiffConfig(pixel_threshold=7, luminance_tolerance=3)
        assert create_differ("different_pixels", cfg).threshold == 7
        assert create_differ("luminance", cfg).tolerance == 3

    def test_create_preserves_order(self):
        differs = create_differs(["luminance", "different_pixels"])
        assert [d.name for d in differs] == ["luminance", "different_pixels"]

    def test_unknown_differ(self):
        with pytest.raises(KeyError, match="Unknown differ"):
            create_differ("nope")

    def test_register_custom_differ(self):
        class ConstantDiffer(BaseDiffer):
            name = "constant"

            def compare(self, baseline, test):
                return DiffEntry(result=0.5)

        register_differ("constant", lambda cfg: ConstantDiffer())
        differ = create_differ("constant")
        diff_id = differ.queue_diff(_image(), _image())
        assert differ.get_result(diff_id) == 0.5
