"""Comparison result data structures produced by the scheduler."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class DiffData(BaseModel):
    """One differ's outcome for one image pair."""
    differ_name: str
    result: float
    points_of_interest: list[tuple[int, int]] = Field(default_factory=list)  # (x, y)


class DiffRecord(BaseModel):
    """Full comparison outcome for one baseline/test image pair."""
    baseline_path: str
    test_path: str
    common_name: str
    difference_path: Optional[str] = None  # alpha-mask visualization, written at most once
    diffs: list[DiffData] = Field(default_factory=list)

    def set_difference_path(self, path: str) -> bool:
        """Claim the visualization slot. Returns False if already taken."""
        if self.difference_path is not None:
            return False
        self.difference_path = path
        return True

    def get_diff(self, differ_name: str) -> DiffData | None:
        for data in self.diffs:
            if data.differ_name == differ_name:
                return data
        return None
