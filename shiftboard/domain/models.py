"""Domain models for the shift scheduling service."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator


class Weekday(StrEnum):
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"


class ConflictKind(StrEnum):
    CONTAINED_WITHIN = "contained_within"
    END_OVERLAPS = "end_overlaps"
    START_OVERLAPS = "start_overlaps"
    ENCLOSES = "encloses"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Email = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$"),
]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


# ---------------------------------------------------------------------------
# Core scheduling values
# ---------------------------------------------------------------------------


class Interval(BaseModel):
    """A start/end pair, optionally tagged with the frame it came from.

    No ordering check here: the detectors evaluate degenerate intervals
    literally, and admission rejects them before they reach storage.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    frame_id: str | None = None


class AvailabilityWindow(BaseModel):
    """Hours of one weekday an employee may be scheduled, e.g. monday 9-17."""

    day: Weekday
    start: int = Field(ge=0, le=24)
    end: int = Field(ge=0, le=24)

    @model_validator(mode="after")
    def _end_after_start(self) -> AvailabilityWindow:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


# ---------------------------------------------------------------------------
# Stored entities
# ---------------------------------------------------------------------------


class Admin(BaseModel):
    id: str = Field(default_factory=_new_id)
    username: str
    email: str
    company_name: str
    phone_number: str
    created_at: datetime = Field(default_factory=_utcnow)


class Employee(BaseModel):
    id: str = Field(default_factory=_new_id)
    admin_id: str
    firstname: str
    lastname: str
    img: str | None = None
    email: str
    phone_number: str
    availability: list[AvailabilityWindow] = Field(default_factory=list)


class Frame(BaseModel):
    id: str = Field(default_factory=_new_id)
    admin_id: str
    employee_id: str | None = None
    start_time: datetime
    end_time: datetime
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Frame:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start_time, end=self.end_time, frame_id=self.id)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class EmployeeCreate(BaseModel):
    firstname: Name
    lastname: Name
    img: str | None = None
    email: Email
    phone_number: Phone
    availability: list[AvailabilityWindow] = Field(default_factory=list)


class EmployeeUpdate(BaseModel):
    """Fields an admin may change on an employee; unset fields are kept."""

    firstname: Name | None = None
    lastname: Name | None = None
    img: str | None = None
    email: Email | None = None
    phone_number: Phone | None = None
    availability: list[AvailabilityWindow] | None = None


class FrameCreate(BaseModel):
    employee_id: str | None = None
    start_time: datetime
    end_time: datetime


class FramePatch(BaseModel):
    """The only frame fields an update may touch.

    ``employee_id`` may be set explicitly to ``null`` to unassign the frame,
    so callers must use ``model_dump(exclude_unset=True)``.
    """

    model_config = ConfigDict(frozen=True)

    start_time: datetime | None = None
    end_time: datetime | None = None
    employee_id: str | None = None


class FrameView(Frame):
    """A frame with its assigned employee embedded, for list views."""

    employee: Employee | None = None


class TokenResponse(BaseModel):
    auth_token: str
