"""Report generation — dispatches a record store to the requested encoder."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TextIO

from visdiff.models.config import DiffConfig
from visdiff.store.record_store import RecordStore

from .csv_report import write_csv_report
from .json_report import write_json_report

logger = logging.getLogger(__name__)


class ReportFormat(str, Enum):
    TREE = "tree"                  # plain JSON
    TREE_WRAPPED = "tree-wrapped"  # JSONP
    TABULAR = "tabular"            # CSV


def parse_format(fmt: ReportFormat | str) -> ReportFormat:
    try:
        return ReportFormat(fmt)
    except ValueError:
        raise ValueError(
            f"Unknown report format '{fmt}'. "
            f"Expected one of: {', '.join(f.value for f in ReportFormat)}"
        ) from None


class Reporter:
    """Serializes a drained record store in one read-only pass."""

    def __init__(self, config: DiffConfig | None = None):
        self.config = config or DiffConfig()

    def write_report(self, store: RecordStore, stream: TextIO, fmt: ReportFormat | str) -> None:
        fmt = parse_format(fmt)
        records = store.records()
        logger.debug("Writing %s report for %d records", fmt.value, len(records))

        if fmt is ReportFormat.TABULAR:
            write_csv_report(records, stream, missing_value=self.config.csv_missing_value)
        else:
            write_json_report(
                records, stream,
                jsonp=fmt is ReportFormat.TREE_WRAPPED,
                jsonp_variable=self.config.jsonp_variable,
                max_points_of_interest=self.config.max_points_of_interest,
            )

    def generate_reports(self, store: RecordStore, outputs: dict[str, Path]) -> dict[str, str]:
        """Write one file per requested format. Returns format -> file path."""
        generated = {}
        for fmt, path in outputs.items():
            fmt = parse_format(fmt)
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            newline = "" if fmt is ReportFormat.TABULAR else None
            with open(path, "w", newline=newline, encoding="utf-8") as f:
                self.write_report(store, f, fmt)
            generated[fmt.value] = str(path)
            logger.info("%s report: %s", fmt.value, path)
        return generated
