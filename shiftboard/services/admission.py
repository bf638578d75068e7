"""Admission rules for creating or updating a frame.

A frame is admitted when its interval is well formed and, if an employee is
assigned, the employee is available for it and none of the employee's other
frames overlap it. Every refusal is an ``AdmissionError``; the API layer
turns these into 422 responses.
"""

from __future__ import annotations

import logging
from typing import Iterable

from shiftboard.domain.models import ConflictKind, Employee, Interval
from shiftboard.services.availability import is_available
from shiftboard.services.conflicts import CONFLICT_MESSAGES, find_conflicting_interval
from shiftboard.services.intervals import exclude_frame, is_well_formed

logger = logging.getLogger(__name__)


class AdmissionError(Exception):
    """Base class for an expected, user-facing refusal of a frame."""

    code = "rejected"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInterval(AdmissionError):
    code = "invalid_interval"


class UnknownEmployee(AdmissionError):
    code = "unknown_employee"


class NotAvailable(AdmissionError):
    code = "not_available"

    def __init__(self, employee_id: str) -> None:
        super().__init__("The employee is not available during these times")
        self.employee_id = employee_id


class FrameConflict(AdmissionError):
    code = "conflict"

    def __init__(self, kind: ConflictKind, conflicting_frame_id: str | None = None) -> None:
        super().__init__(CONFLICT_MESSAGES[kind])
        self.kind = kind
        self.conflicting_frame_id = conflicting_frame_id


def admit(
    candidate: Interval,
    employee: Employee | None,
    existing: Iterable[Interval],
) -> None:
    """Raise an ``AdmissionError`` unless *candidate* may be stored.

    *existing* holds the employee's current frames; the candidate's own
    ``frame_id`` is excluded before the overlap scan so an update is never
    compared with itself.
    """
    if not is_well_formed(candidate):
        raise InvalidInterval("end_time must be later than start_time")

    if employee is None:
        return

    if not is_available(candidate, employee.availability):
        logger.info(
            "employee %s not available for %s - %s",
            employee.id,
            candidate.start.isoformat(),
            candidate.end.isoformat(),
        )
        raise NotAvailable(employee.id)

    hit = find_conflicting_interval(candidate, exclude_frame(existing, candidate.frame_id))
    if hit is not None:
        interval, kind = hit
        logger.info(
            "frame for employee %s conflicts with frame %s (%s)",
            employee.id,
            interval.frame_id,
            kind,
        )
        raise FrameConflict(kind, interval.frame_id)
