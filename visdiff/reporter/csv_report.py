"""CSV report output — one row per record, one column per differ."""

from __future__ import annotations

import csv
import os
from typing import Iterable, TextIO

from visdiff.models.diff_record import DiffRecord

MISSING_RESULT = -1.0


def differ_columns(records: Iterable[DiffRecord]) -> list[str]:
    """Distinct differ names in first-seen order."""
    columns: dict[str, None] = {}
    for record in records:
        for data in record.diffs:
            columns.setdefault(data.differ_name, None)
    return list(columns)


def baseline_filename(path: str) -> str:
    return os.path.basename(path)


def write_csv_report(
    records: Iterable[DiffRecord],
    stream: TextIO,
    missing_value: float = MISSING_RESULT,
) -> None:
    """Write the tabular report. Absent results are written as ``missing_value``."""
    records = list(records)
    columns = differ_columns(records)

    w = csv.writer(stream, lineterminator="\n")
    w.writerow(["filename", *columns])
    for record in records:
        values = {name: missing_value for name in columns}
        for data in record.diffs:
            values[data.differ_name] = data.result
        w.writerow([
            baseline_filename(record.baseline_path),
            *(f"{values[name]:f}" for name in columns),
        ])
