"""Different-pixels differ — flags every pixel whose RGBA value changed."""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image, ImageChops

from .base import RESULT_CORRECT, RESULT_INCORRECT, BaseDiffer, DiffEntry, Point

logger = logging.getLogger(__name__)


def changed_pixel_mask(baseline: Image.Image, test: Image.Image, threshold: int = 0) -> Image.Image:
    """Return an L-mode mask: 255 where any channel differs by more than threshold."""
    diff = ImageChops.difference(baseline.convert("RGBA"), test.convert("RGBA"))
    bands = diff.split()
    delta = bands[0]
    for band in bands[1:]:
        delta = ImageChops.lighter(delta, band)
    return delta.point(lambda v: 255 if v > threshold else 0)


def mask_points(mask: Image.Image) -> list[Point]:
    """Row-major (x, y) coordinates of the non-zero pixels of an L-mode mask."""
    width = mask.size[0]
    return [(i % width, i // width) for i, v in enumerate(mask.tobytes()) if v]


class DifferentPixelsDiffer(BaseDiffer):
    """Scores a pair by the fraction of pixels left untouched.

    ``result`` is ``1 - changed / total``; identical images score
    ``RESULT_CORRECT`` and fully repainted ones ``RESULT_INCORRECT``. Pairs
    of different dimensions are not applicable.
    """

    name = "different_pixels"
    supports_alpha_mask = True

    def __init__(self, threshold: int = 0):
        super().__init__()
        self.threshold = threshold

    def compare(self, baseline: Image.Image, test: Image.Image) -> Optional[DiffEntry]:
        if baseline.size != test.size:
            logger.debug("Size mismatch %s vs %s, %s not applicable",
                         baseline.size, test.size, self.name)
            return None

        mask = changed_pixel_mask(baseline, test, self.threshold)
        points = mask_points(mask)
        total = mask.size[0] * mask.size[1]
        if not points or total == 0:
            result = RESULT_CORRECT
        elif len(points) == total:
            result = RESULT_INCORRECT
        else:
            result = 1.0 - len(points) / total

        return DiffEntry(
            result=result,
            points_of_interest=points,
            alpha_mask=mask if self._alpha_mask_enabled else None,
        )
