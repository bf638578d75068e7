"""Domain events emitted as frames and employees change."""

from __future__ import annotations

from pydantic import BaseModel

from shiftboard.domain.models import ConflictKind


class FrameCreated(BaseModel):
    """Fired when a new Frame is persisted."""

    frame_id: str
    admin_id: str
    employee_id: str | None = None


class FrameUpdated(BaseModel):
    """Fired after a frame update has been admitted and stored."""

    frame_id: str
    admin_id: str
    changed_fields: list[str]


class FrameDeleted(BaseModel):
    frame_id: str
    admin_id: str


class FrameRejected(BaseModel):
    """Fired when admission refuses a create or update."""

    admin_id: str
    employee_id: str | None
    reason: str
    frame_id: str | None = None
    conflict_kind: ConflictKind | None = None


class EmployeeDeleted(BaseModel):
    """Fired when an employee is removed; their frames become unassigned."""

    employee_id: str
    admin_id: str
