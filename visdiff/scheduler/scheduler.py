"""Diff scheduler — runs every registered differ against every pair on a worker pool."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Optional, Sequence

from PIL import Image

from visdiff.differs.base import Differ, queued_diff
from visdiff.imaging.codec import ImageCodec, PillowCodec
from visdiff.models.diff_record import DiffData, DiffRecord
from visdiff.pairing.pairing import ImagePair, common_name
from visdiff.store.record_store import RecordStore

logger = logging.getLogger(__name__)

ExecutorFactory = Callable[..., Executor]


def _as_rgba_mask(mask: Image.Image) -> Image.Image:
    """Turn an L-mode mask into a transparent RGBA image carrying it as alpha."""
    if mask.mode == "RGBA":
        return mask
    if mask.mode != "L":
        mask = mask.convert("L")
    rgba = Image.new("RGBA", mask.size, (0, 0, 0, 0))
    rgba.putalpha(mask)
    return rgba


class DiffScheduler:
    """Dispatches one task per image pair onto a bounded worker pool.

    Within a task the differs run sequentially, in registration order. A
    failure in one pair (decode error, misbehaving differ) is logged and never
    affects sibling tasks.
    """

    def __init__(
        self,
        differs: Sequence[Differ],
        store: RecordStore,
        codec: ImageCodec | None = None,
        worker_count: int | None = None,
        difference_dir: str | Path | None = None,
        alpha_mask_format: str = "PNG",
        alpha_mask_quality: int = 100,
        executor_factory: ExecutorFactory = ThreadPoolExecutor,
    ):
        self.differs = list(differs)
        self.store = store
        self.codec = codec or PillowCodec()
        self.worker_count = worker_count or os.cpu_count() or 1
        self.difference_dir = Path(difference_dir) if difference_dir else None
        self.alpha_mask_format = alpha_mask_format
        self.alpha_mask_quality = alpha_mask_quality
        self.executor_factory = executor_factory

        self._dir_lock = threading.Lock()
        self._dir_ready = False
        self._claimed_paths: set[str] = set()
        self._alpha_capable = [False] * len(self.differs)

    def run(self, pairs: Sequence[ImagePair]) -> int:
        """Diff every pair and block until the pool drains. Returns records added."""
        if not pairs:
            logger.info("No image pairs to diff")
            return 0

        start = time.time()
        logger.info("Diffing %d pairs with %d differ(s) on %d worker(s)",
                    len(pairs), len(self.differs), self.worker_count)

        self._begin_alpha_masks()
        try:
            with self.executor_factory(max_workers=self.worker_count) as pool:
                futures = [pool.submit(self._run_task, pair) for pair in pairs]
                wait(futures)
        finally:
            self._end_alpha_masks()

        added = sum(1 for f in futures if f.result() is not None)
        logger.info("Diffed %d/%d pairs in %.1fs", added, len(pairs), time.time() - start)
        return added

    def _begin_alpha_masks(self) -> None:
        # Capability query happens once per differ, before any pair is diffed
        with self._dir_lock:
            self._claimed_paths.clear()
        if self.difference_dir is None:
            self._alpha_capable = [False] * len(self.differs)
            return
        self._alpha_capable = [d.enable_poi_alpha_mask() for d in self.differs]

    def _end_alpha_masks(self) -> None:
        # Mask generation is scoped to one batch
        for differ, alpha_capable in zip(self.differs, self._alpha_capable):
            if alpha_capable:
                differ.disable_poi_alpha_mask()
        self._alpha_capable = [False] * len(self.differs)

    def _run_task(self, pair: ImagePair) -> Optional[DiffRecord]:
        try:
            return self.diff_pair(pair)
        except Exception:
            logger.exception("Diff of \"%s\" and \"%s\" failed",
                             pair.baseline_path, pair.test_path)
            return None

    def diff_pair(self, pair: ImagePair) -> Optional[DiffRecord]:
        """Decode a pair, run the differ chain and store the finished record."""
        baseline = self.codec.decode(pair.baseline_path)
        if baseline is None:
            return None
        test = self.codec.decode(pair.test_path)
        if test is None:
            return None

        record = DiffRecord(
            baseline_path=pair.baseline_path,
            test_path=pair.test_path,
            common_name=common_name(
                os.path.basename(pair.baseline_path), os.path.basename(pair.test_path)
            ),
        )

        for differ, alpha_capable in zip(self.differs, self._alpha_capable):
            try:
                self._run_differ(differ, alpha_capable, record, baseline, test)
            except Exception:
                logger.exception("Differ %s failed on \"%s\"", differ.name, record.common_name)

        self.store.append(record)
        logger.debug("Diffed %s (%d result(s))", record.common_name, len(record.diffs))
        return record

    def _run_differ(
        self,
        differ: Differ,
        alpha_capable: bool,
        record: DiffRecord,
        baseline: Image.Image,
        test: Image.Image,
    ) -> None:
        with queued_diff(differ, baseline, test) as diff_id:
            if diff_id is None:
                logger.debug("%s not applicable to %s", differ.name, record.common_name)
                return

            count = differ.get_points_of_interest_count(diff_id)
            data = DiffData(
                differ_name=differ.name,
                result=differ.get_result(diff_id),
                points_of_interest=differ.get_points_of_interest(diff_id)[:count],
            )
            record.diffs.append(data)

            if (alpha_capable
                    and record.difference_path is None
                    and data.result != differ.result_correct):
                self._write_difference(record, differ, diff_id)

    def _write_difference(self, record: DiffRecord, differ: Differ, diff_id: int) -> None:
        mask = differ.get_points_of_interest_alpha_mask(diff_id)
        if mask is None:
            logger.debug("%s produced no alpha mask for %s", differ.name, record.common_name)
            return

        if not record.common_name:
            logger.warning("No common name for \"%s\" and \"%s\", difference image not written",
                           record.baseline_path, record.test_path)
            return

        path = os.path.join(str(self.difference_dir), record.common_name)
        with self._dir_lock:
            if path in self._claimed_paths:
                logger.warning("Difference image \"%s\" already written in this batch, "
                               "overwriting it for \"%s\"", path, record.baseline_path)
            self._claimed_paths.add(path)
        try:
            self._ensure_difference_dir()
            self.codec.encode(_as_rgba_mask(mask), path,
                              format=self.alpha_mask_format, quality=self.alpha_mask_quality)
        except (OSError, ValueError) as e:
            logger.warning("Failed to write difference image \"%s\": %s", path, e)
            return
        record.set_difference_path(path)

    def _ensure_difference_dir(self) -> None:
        with self._dir_lock:
            if not self._dir_ready:
                self.difference_dir.mkdir(parents=True, exist_ok=True)
                self._dir_ready = True
