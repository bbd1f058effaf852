"""Differ protocol — the contract every comparison algorithm implements.

A differ compares two decoded images and keeps the outcome under an opaque
diff id until the caller releases it. The engine only ever talks to differs
through :func:`queued_diff`, which guarantees the id is released.
"""

from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol, runtime_checkable

from PIL import Image

# Result sentinels shared by the bundled differs
RESULT_CORRECT = 1.0
RESULT_INCORRECT = 0.0

Point = tuple[int, int]


@runtime_checkable
class Differ(Protocol):
    """Capability set of a comparison algorithm.

    Implementations must be safe to call from several worker threads at once;
    the scheduler never serializes calls to one differ across pairs.
    """

    name: str
    result_correct: float  # result reported for identical images

    def queue_diff(self, baseline: Image.Image, test: Image.Image) -> Optional[int]:
        """Compare two images. Returns a diff id, or None if not applicable."""
        ...

    def get_result(self, diff_id: int) -> float: ...

    def get_points_of_interest_count(self, diff_id: int) -> int: ...

    def get_points_of_interest(self, diff_id: int) -> list[Point]: ...

    def enable_poi_alpha_mask(self) -> bool:
        """Turn on alpha-mask generation. Returns False if unsupported."""
        ...

    def disable_poi_alpha_mask(self) -> None: ...

    def get_points_of_interest_alpha_mask(self, diff_id: int) -> Optional[Image.Image]: ...

    def delete_diff(self, diff_id: int) -> None: ...


@dataclass
class DiffEntry:
    result: float
    points_of_interest: list[Point] = field(default_factory=list)
    alpha_mask: Optional[Image.Image] = None


class DiffBook:
    """Thread-safe table of live diffs keyed by diff id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[int, DiffEntry] = {}
        self._ids = itertools.count()

    def add(self, entry: DiffEntry) -> int:
        with self._lock:
            diff_id = next(self._ids)
            self._entries[diff_id] = entry
        return diff_id

    def get(self, diff_id: int) -> DiffEntry:
        with self._lock:
            try:
                return self._entries[diff_id]
            except KeyError:
                raise KeyError(f"Unknown or released diff id: {diff_id}") from None

    def remove(self, diff_id: int) -> None:
        with self._lock:
            self._entries.pop(diff_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class BaseDiffer:
    """Shared diff-id bookkeeping for the bundled differs.

    Subclasses implement :meth:`compare`; everything else in the protocol is
    answered from the :class:`DiffBook`.
    """

    name = "base"
    result_correct = RESULT_CORRECT
    supports_alpha_mask = False

    def __init__(self):
        self._book = DiffBook()
        self._alpha_mask_enabled = False

    def compare(self, baseline: Image.Image, test: Image.Image) -> Optional[DiffEntry]:
        raise NotImplementedError

    def queue_diff(self, baseline: Image.Image, test: Image.Image) -> Optional[int]:
        entry = self.compare(baseline, test)
        if entry is None:
            return None
        return self._book.add(entry)

    def get_result(self, diff_id: int) -> float:
        return self._book.get(diff_id).result

    def get_points_of_interest_count(self, diff_id: int) -> int:
        return len(self._book.get(diff_id).points_of_interest)

    def get_points_of_interest(self, diff_id: int) -> list[Point]:
        return list(self._book.get(diff_id).points_of_interest)

    def enable_poi_alpha_mask(self) -> bool:
        if self.supports_alpha_mask:
            self._alpha_mask_enabled = True
        return self.supports_alpha_mask

    def disable_poi_alpha_mask(self) -> None:
        self._alpha_mask_enabled = False

    def get_points_of_interest_alpha_mask(self, diff_id: int) -> Optional[Image.Image]:
        return self._book.get(diff_id).alpha_mask

    def delete_diff(self, diff_id: int) -> None:
        self._book.remove(diff_id)

    @property
    def live_diff_count(self) -> int:
        return len(self._book)


@contextmanager
def queued_diff(differ: Differ, baseline: Image.Image, test: Image.Image) -> Iterator[Optional[int]]:
    """Queue a diff and release it on exit. Yields None if the differ declined."""
    diff_id = differ.queue_diff(baseline, test)
    if diff_id is None:
        yield None
        return
    try:
        yield diff_id
    finally:
        differ.delete_diff(diff_id)
