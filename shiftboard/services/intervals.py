"""Time helpers shared by the availability and conflict checks."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable

from dateutil import tz

from shiftboard.config import get_settings
from shiftboard.domain.models import Interval, Weekday

# Indexed by datetime.weekday(), which starts on Monday
_WEEKDAY_BY_INDEX = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
]


def schedule_tz() -> tzinfo:
    """Return the zone in which weekdays and hours of a shift are read."""
    name = get_settings().schedule_timezone
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown SCHEDULE_TIMEZONE {name!r}")
    return zone


def normalize(dt: datetime) -> datetime:
    """Return *dt* as an aware datetime in the schedule timezone.

    Naive timestamps are taken to already be in the schedule timezone.
    """
    zone = schedule_tz()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=zone)
    return dt.astimezone(zone)


def weekday_name(dt: datetime) -> Weekday:
    return _WEEKDAY_BY_INDEX[normalize(dt).weekday()]


def hour_of_day(dt: datetime) -> int:
    return normalize(dt).hour


def is_well_formed(interval: Interval) -> bool:
    return interval.start < interval.end


def exclude_frame(intervals: Iterable[Interval], frame_id: str | None) -> list[Interval]:
    """Drop the interval belonging to *frame_id*, used when validating an update."""
    if frame_id is None:
        return list(intervals)
    return [i for i in intervals if i.frame_id != frame_id]


def in_scan_order(intervals: Iterable[Interval]) -> list[Interval]:
    """Sort ascending by start, then end, then frame id for stable diagnostics."""
    return sorted(intervals, key=lambda i: (i.start, i.end, i.frame_id or ""))
