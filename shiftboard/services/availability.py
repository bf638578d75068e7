"""Service for checking a shift against an employee's weekly availability."""

from __future__ import annotations

from typing import Iterable

from shiftboard.domain.models import AvailabilityWindow, Interval
from shiftboard.services.intervals import hour_of_day, weekday_name


def is_available(candidate: Interval, windows: Iterable[AvailabilityWindow]) -> bool:
    """Return True if some window covers the candidate's hours on a matching day.

    A window matches when its day is the weekday of either the start or the
    end of the candidate, it opens at or before the start hour and closes at
    or after the end hour. Days are matched by name only: a shift crossing
    midnight passes if either weekday has a window wide enough for both hours.

    An employee with no windows is never available.
    """
    start_day = weekday_name(candidate.start)
    end_day = weekday_name(candidate.end)
    start_hour = hour_of_day(candidate.start)
    end_hour = hour_of_day(candidate.end)

    return any(
        w.day in (start_day, end_day) and w.start <= start_hour and w.end >= end_hour
        for w in windows
    )
