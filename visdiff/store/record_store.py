"""Record store — append-only, thread-safe collection of diff records."""

from __future__ import annotations

import threading
from typing import Iterator

from visdiff.models.diff_record import DiffRecord


class RecordStore:
    """Collects records from concurrent workers for a later single-threaded read."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: list[DiffRecord] = []

    def append(self, record: DiffRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> list[DiffRecord]:
        """Snapshot of the records in append order."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[DiffRecord]:
        return iter(self.records())
