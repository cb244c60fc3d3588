"""Word learning statuses and helpers for per-status count maps."""
from __future__ import annotations

from enum import IntEnum
from typing import Any, Iterable, Mapping

from loguru import logger


class WordStatus(IntEnum):
    """Learning progress of a single word, from unknown to mastered."""

    NOT_LEARNED = 1
    BEGINNER = 2
    BASIC = 3
    INTERMEDIATE = 4
    ADVANCED = 5
    WELL_KNOWN = 6
    MASTERED = 7


STATUS_VALUES: tuple[int, ...] = tuple(int(status) for status in WordStatus)

# Pre-numeric string tags and the level each one becomes
LEGACY_STATUS_MAP: dict[str, int] = {
    "to_learn": WordStatus.NOT_LEARNED,
    "want_repeat": WordStatus.INTERMEDIATE,
    "well_known": WordStatus.WELL_KNOWN,
    "unset": WordStatus.NOT_LEARNED,
}
DEFAULT_LEGACY_STATUS = int(WordStatus.NOT_LEARNED)

StatusCounts = dict[int, int]


def is_valid_status(value: Any) -> bool:
    """Return True for an ``int`` in 1..7 (booleans excluded)."""

    return isinstance(value, int) and not isinstance(value, bool) and value in STATUS_VALUES


def map_legacy_status(tag: Any) -> int:
    """Translate a legacy tag to its numeric status, defaulting unknown tags to 1."""

    if isinstance(tag, str) and tag in LEGACY_STATUS_MAP:
        return int(LEGACY_STATUS_MAP[tag])
    logger.warning("Unknown legacy word status, using default", tag=repr(tag))
    return DEFAULT_LEGACY_STATUS


def empty_counts() -> StatusCounts:
    return {status: 0 for status in STATUS_VALUES}


def tally_statuses(statuses: Iterable[Any]) -> StatusCounts:
    """Count statuses into seven buckets, ignoring anything outside 1..7."""

    counts = empty_counts()
    for status in statuses:
        if is_valid_status(status):
            counts[status] += 1
    return counts


def counts_from_json(raw: Mapping[Any, Any] | None) -> StatusCounts:
    """Read a stored aggregate (string keys) into a full seven-bucket map."""

    counts = empty_counts()
    for key, value in (raw or {}).items():
        try:
            status = int(key)
        except (TypeError, ValueError):
            continue
        if status in counts:
            counts[status] = int(value or 0)
    return counts


def counts_to_json(counts: Mapping[int, int]) -> dict[str, int]:
    return {str(status): int(counts.get(status, 0)) for status in STATUS_VALUES}


def apply_transition(
    counts: Mapping[int, int], *, old_status: int | None, new_status: int | None
) -> StatusCounts:
    """Move one word between buckets; decrements never go below zero."""

    updated = {status: int(counts.get(status, 0)) for status in STATUS_VALUES}
    if old_status is not None:
        updated[old_status] = max(0, updated[old_status] - 1)
    if new_status is not None:
        updated[new_status] += 1
    return updated
