"""Pairing engine — discovers (baseline, test) image pairs."""

from __future__ import annotations

import glob
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePair:
    baseline_path: str
    test_path: str


def common_name(baseline_name: str, test_name: str) -> str:
    """Longest shared prefix of two basenames.

    If one name is a prefix of the other, the shorter name is returned whole.
    Comparison is per character, so multi-byte characters are never split.
    """
    if not baseline_name or not test_name:
        raise ValueError("Cannot derive a common name from an empty basename")
    for index, (a, b) in enumerate(zip(baseline_name, test_name)):
        if a != b:
            return baseline_name[:index]
    return min(baseline_name, test_name, key=len)


def pair_directories(baseline_root: str, test_root: str) -> list[ImagePair] | None:
    """Pair every baseline file with the same-named file under ``test_root``.

    Returns None when the baseline root cannot be listed. Baseline entries
    without a regular test counterpart are logged and skipped.
    """
    try:
        entries = os.listdir(baseline_root)
    except OSError as e:
        logger.error("Unable to open path \"%s\": %s", baseline_root, e)
        return None

    pairs = []
    for entry in entries:
        baseline_file = os.path.join(baseline_root, entry)
        if os.path.isdir(baseline_file):
            logger.debug("Skipping baseline directory \"%s\"", baseline_file)
            continue
        test_file = os.path.join(test_root, entry)
        if os.path.exists(test_file) and not os.path.isdir(test_file):
            pairs.append(ImagePair(baseline_file, test_file))
        else:
            logger.warning("Baseline file \"%s\" has no corresponding test file", baseline_file)

    logger.debug("Discovered %d pairs from %d baseline entries", len(pairs), len(entries))
    return pairs


def pair_patterns(baseline_pattern: str, test_pattern: str) -> list[ImagePair] | None:
    """Pair the sorted matches of two glob patterns by index.

    Malformed or unreadable patterns simply match nothing. Returns None (batch
    aborted) when the two patterns match a different number of paths.
    """
    baseline_entries = sorted(glob.glob(baseline_pattern))
    test_entries = sorted(glob.glob(test_pattern))

    if len(baseline_entries) != len(test_entries):
        logger.error(
            "Baseline and test patterns do not yield corresponding number of files "
            "(%d vs %d)", len(baseline_entries), len(test_entries),
        )
        return None

    return [ImagePair(b, t) for b, t in zip(baseline_entries, test_entries)]
