"""JSON / JSONP report output."""

from __future__ import annotations

import json
import math
import os
from typing import Any, Iterable, Optional, TextIO

from visdiff.models.diff_record import DiffRecord

DEFAULT_MAX_POINTS_OF_INTEREST = 100


def _absolute(path: Optional[str]) -> Optional[str]:
    return os.path.abspath(path) if path else None


def _finite(result: float) -> Optional[float]:
    # NaN and infinities have no JSON encoding
    return result if math.isfinite(result) else None


def encode_json_report(
    records: Iterable[DiffRecord],
    max_points_of_interest: int = DEFAULT_MAX_POINTS_OF_INTEREST,
) -> dict[str, Any]:
    """Build the report object. Paths are resolved against the current directory."""
    return {
        "records": [
            {
                "commonName": record.common_name,
                "differencePath": _absolute(record.difference_path),
                "baselinePath": _absolute(record.baseline_path),
                "testPath": _absolute(record.test_path),
                "diffs": [
                    {
                        "differName": data.differ_name,
                        "result": _finite(data.result),
                        "pointsOfInterest": [
                            [x, y] for x, y in data.points_of_interest[:max_points_of_interest]
                        ],
                    }
                    for data in record.diffs
                ],
            }
            for record in records
        ]
    }


def write_json_report(
    records: Iterable[DiffRecord],
    stream: TextIO,
    jsonp: bool = False,
    jsonp_variable: str = "visdiffRecords",
    max_points_of_interest: int = DEFAULT_MAX_POINTS_OF_INTEREST,
) -> None:
    """Write a machine-readable report, optionally wrapped as a JSONP assignment."""
    report = encode_json_report(records, max_points_of_interest)
    if jsonp:
        stream.write(f"var {jsonp_variable} = ")
    json.dump(report, stream, indent=4, allow_nan=False)
    stream.write(";\n" if jsonp else "\n")
