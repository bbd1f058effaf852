"""Luminance differ — compares grayscale intensity with a tolerance."""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image, ImageChops

from .base import RESULT_CORRECT, RESULT_INCORRECT, BaseDiffer, DiffEntry
from .different_pixels import mask_points

logger = logging.getLogger(__name__)


class LuminanceDiffer(BaseDiffer):
    """Fraction of pixels whose luminance stays within ``tolerance``.

    Ignores color shifts that keep brightness. Produces no alpha mask.
    """

    name = "luminance"

    def __init__(self, tolerance: int = 8):
        super().__init__()
        self.tolerance = tolerance

    def compare(self, baseline: Image.Image, test: Image.Image) -> Optional[DiffEntry]:
        if baseline.size != test.size:
            logger.debug("Size mismatch %s vs %s, %s not applicable",
                         baseline.size, test.size, self.name)
            return None

        delta = ImageChops.difference(baseline.convert("L"), test.convert("L"))
        tolerance = self.tolerance
        mask = delta.point(lambda v: 255 if v > tolerance else 0)
        points = mask_points(mask)
        total = mask.size[0] * mask.size[1]
        if not points or total == 0:
            return DiffEntry(result=RESULT_CORRECT)
        if len(points) == total:
            return DiffEntry(result=RESULT_INCORRECT, points_of_interest=points)
        return DiffEntry(result=1.0 - len(points) / total, points_of_interest=points)
