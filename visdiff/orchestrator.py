"""Diff orchestrator — coordinates pairing, scheduling, and reporting."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence, TextIO

from visdiff.differs.base import Differ
from visdiff.differs.registry import create_differs
from visdiff.imaging.codec import ImageCodec, PillowCodec
from visdiff.models.config import DiffConfig
from visdiff.models.diff_record import DiffRecord
from visdiff.pairing.pairing import ImagePair, pair_directories, pair_patterns
from visdiff.reporter.reporter import ReportFormat, Reporter
from visdiff.scheduler.scheduler import DiffScheduler, ExecutorFactory
from visdiff.store.record_store import RecordStore

logger = logging.getLogger(__name__)


class Orchestrator:
    """Entry point for callers: diff image corpora and write reports.

    Records from every batch accumulate in one store for the lifetime of the
    orchestrator.
    """

    def __init__(
        self,
        config: DiffConfig | None = None,
        differs: Optional[Sequence[Differ]] = None,
        codec: ImageCodec | None = None,
        executor_factory: ExecutorFactory = ThreadPoolExecutor,
    ):
        self.config = config or DiffConfig()
        self.differs = list(differs) if differs is not None else create_differs(
            self.config.differs, self.config
        )
        self.codec = codec or PillowCodec()
        self.executor_factory = executor_factory
        self.store = RecordStore()
        self.reporter = Reporter(self.config)

        self.difference_dir: Path | None = (
            Path(self.config.difference_dir) if self.config.difference_dir else None
        )
        self.worker_count = self.config.resolved_worker_count()

    @property
    def records(self) -> list[DiffRecord]:
        return self.store.records()

    def set_difference_output_directory(self, path: str | Path | None) -> None:
        """Where alpha-mask visualizations go. Created lazily on first write."""
        self.difference_dir = Path(path) if path else None

    def set_worker_count(self, count: int) -> None:
        if count < 1:
            raise ValueError(f"Worker count must be at least 1, got {count}")
        self.worker_count = count

    def diff_directories(self, baseline_root: str, test_root: str) -> int:
        """Diff same-named files of two directories. Returns records added."""
        logger.info("Diffing directories \"%s\" and \"%s\"", baseline_root, test_root)
        return self._run(pair_directories(baseline_root, test_root))

    def diff_patterns(self, baseline_pattern: str, test_pattern: str) -> int:
        """Diff the sorted matches of two glob patterns by index. Returns records added."""
        logger.info("Diffing patterns \"%s\" and \"%s\"", baseline_pattern, test_pattern)
        return self._run(pair_patterns(baseline_pattern, test_pattern))

    def _run(self, pairs: list[ImagePair] | None) -> int:
        if pairs is None:
            logger.error("Batch aborted, no pairs were diffed")
            return 0
        if not self.differs:
            logger.warning("No differs registered, records will carry no results")
        scheduler = DiffScheduler(
            self.differs,
            self.store,
            codec=self.codec,
            worker_count=self.worker_count,
            difference_dir=self.difference_dir,
            alpha_mask_format=self.config.alpha_mask_format,
            alpha_mask_quality=self.config.alpha_mask_quality,
            executor_factory=self.executor_factory,
        )
        return scheduler.run(pairs)

    def write_report(self, stream: TextIO, fmt: ReportFormat | str = ReportFormat.TREE) -> None:
        self.reporter.write_report(self.store, stream, fmt)

    def generate_reports(self, outputs: dict[str, Path]) -> dict[str, str]:
        """Write report files, e.g. ``{"tree": Path("out.json")}``."""
        return self.reporter.generate_reports(self.store, outputs)

    def summary(self) -> dict:
        """Counts for display once every batch has completed."""
        records = self.store.records()
        per_differ: dict[str, dict[str, int]] = {}
        for differ in self.differs:
            per_differ[differ.name] = {"identical": 0, "different": 0, "not_applicable": 0}
        for record in records:
            for differ in self.differs:
                data = record.get_diff(differ.name)
                counts = per_differ[differ.name]
                if data is None:
                    counts["not_applicable"] += 1
                elif data.result == differ.result_correct:
                    counts["identical"] += 1
                else:
                    counts["different"] += 1
        return {
            "records": len(records),
            "with_difference_image": sum(1 for r in records if r.difference_path),
            "differs": per_differ,
        }
