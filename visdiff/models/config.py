"""Configuration model for the diff engine."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class DiffConfig(BaseModel):
    # Differs, in registration order
    differs: list[str] = Field(default_factory=lambda: ["different_pixels"])

    # Execution
    worker_count: Optional[int] = None  # None -> one worker per core

    # Visualization output
    difference_dir: Optional[str] = None
    alpha_mask_format: str = "PNG"
    alpha_mask_quality: int = 100

    # Reporting
    max_points_of_interest: int = 100  # cap on pointsOfInterest per diff in JSON reports
    csv_missing_value: float = -1.0
    jsonp_variable: str = "visdiffRecords"

    # Differ tuning
    pixel_threshold: int = 0
    luminance_tolerance: int = 8

    @field_validator("worker_count")
    @classmethod
    def check_worker_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("worker_count must be at least 1")
        return v

    @field_validator("max_points_of_interest")
    @classmethod
    def check_poi_cap(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_points_of_interest cannot be negative")
        return v

    def resolved_worker_count(self) -> int:
        return self.worker_count or os.cpu_count() or 1

    @classmethod
    def load(cls, path: str | Path) -> "DiffConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
