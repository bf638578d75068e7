"""Service for detecting overlapping frames of one employee."""

from __future__ import annotations

from typing import Iterable

from shiftboard.domain.models import ConflictKind, Interval
from shiftboard.services.intervals import in_scan_order

CONFLICT_MESSAGES = {
    ConflictKind.CONTAINED_WITHIN: "This frame is inside an existing frame.",
    ConflictKind.END_OVERLAPS: "This frame's ending is inside another frame.",
    ConflictKind.START_OVERLAPS: "This frame's start is inside another frame.",
    ConflictKind.ENCLOSES: "There is a conflict with the selected time frame.",
}


def classify_overlap(candidate: Interval, existing: Interval) -> ConflictKind | None:
    """Classify how *candidate* overlaps *existing*, first matching rule wins.

    Rule 1 is inclusive on both ends, so identical intervals are
    CONTAINED_WITHIN. Intervals that only touch (candidate.end ==
    existing.start or candidate.start == existing.end) do not conflict.
    ENCLOSES includes a shared end, otherwise a candidate starting earlier
    and ending with the existing frame would match no rule.
    """
    c, e = candidate, existing
    if c.start >= e.start and c.end <= e.end:
        return ConflictKind.CONTAINED_WITHIN
    if e.start < c.end < e.end:
        return ConflictKind.END_OVERLAPS
    if e.start <= c.start < e.end:
        return ConflictKind.START_OVERLAPS
    if c.start < e.start and c.end >= e.end:
        return ConflictKind.ENCLOSES
    return None


def find_conflict(candidate: Interval, existing: Iterable[Interval]) -> ConflictKind | None:
    """Return the kind of the first existing interval the candidate collides with.

    *existing* must already exclude the frame being updated. It is scanned in
    ascending start order so the reported kind is reproducible.
    """
    located = find_conflicting_interval(candidate, existing)
    return located[1] if located else None


def find_conflicting_interval(
    candidate: Interval, existing: Iterable[Interval]
) -> tuple[Interval, ConflictKind] | None:
    """Like ``find_conflict`` but also return the interval that was hit."""
    for interval in in_scan_order(existing):
        kind = classify_overlap(candidate, interval)
        if kind is not None:
            return interval, kind
    return None
