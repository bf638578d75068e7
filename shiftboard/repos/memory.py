"""In-memory repositories for admins, employees and frames."""

from __future__ import annotations

import threading
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone
from typing import ContextManager

from shiftboard.domain.models import Admin, AvailabilityWindow, Employee, Frame, Weekday
from shiftboard.services.intervals import normalize


class AdminRepository:
    """Dict-backed store for Admin instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Admin] = {}

    def add(self, admin: Admin) -> None:
        self._store[admin.id] = admin

    def get(self, admin_id: str) -> Admin | None:
        return self._store.get(admin_id)

    def list_all(self) -> list[Admin]:
        return list(self._store.values())


class EmployeeRepository:
    """Dict-backed store for Employee instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Employee] = {}

    def add(self, employee: Employee) -> None:
        self._store[employee.id] = employee

    def get(self, employee_id: str) -> Employee | None:
        return self._store.get(employee_id)

    def get_for_admin(self, admin_id: str, employee_id: str) -> Employee | None:
        employee = self._store.get(employee_id)
        if employee is None or employee.admin_id != admin_id:
            return None
        return employee

    def list_for_admin(self, admin_id: str) -> list[Employee]:
        """Return the admin's employees ordered by last name."""
        return sorted(
            (e for e in self._store.values() if e.admin_id == admin_id),
            key=lambda e: (e.lastname.lower(), e.firstname.lower()),
        )

    def find_by_email(self, email: str) -> Employee | None:
        wanted = email.lower()
        for employee in self._store.values():
            if employee.email.lower() == wanted:
                return employee
        return None

    def delete(self, employee_id: str) -> None:
        self._store.pop(employee_id, None)


class FrameRepository:
    """Dict-backed store for Frame instances, keyed by id.

    ``lock_for`` hands out one lock per employee. Callers hold it around
    "read existing frames, check, write" so admission decisions for the same
    employee are serialised. ``replace`` and ``delete`` are atomic with
    respect to each other, so a stale copy can never bring back a deleted
    frame.
    """

    def __init__(self) -> None:
        self._store: dict[str, Frame] = {}
        self._store_guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def add(self, frame: Frame) -> None:
        self._store[frame.id] = frame

    def replace(self, frame: Frame) -> bool:
        """Overwrite a stored frame; return False if it has been deleted."""
        with self._store_guard:
            if frame.id not in self._store:
                return False
            self._store[frame.id] = frame
            return True

    def get(self, frame_id: str) -> Frame | None:
        return self._store.get(frame_id)

    def get_for_admin(self, admin_id: str, frame_id: str) -> Frame | None:
        frame = self._store.get(frame_id)
        if frame is None or frame.admin_id != admin_id:
            return None
        return frame

    def list_for_admin(
        self,
        admin_id: str,
        start_from: datetime | None = None,
        start_until: datetime | None = None,
    ) -> list[Frame]:
        """Return the admin's frames ordered by start, optionally bounded on start."""
        frames = [f for f in self._store.values() if f.admin_id == admin_id]
        if start_from is not None:
            frames = [f for f in frames if f.start_time >= start_from]
        if start_until is not None:
            frames = [f for f in frames if f.start_time <= start_until]
        return sorted(frames, key=lambda f: (f.start_time, f.end_time))

    def list_for_employee(self, employee_id: str) -> list[Frame]:
        return sorted(
            (f for f in self._store.values() if f.employee_id == employee_id),
            key=lambda f: (f.start_time, f.end_time),
        )

    def delete(self, frame_id: str) -> None:
        with self._store_guard:
            self._store.pop(frame_id, None)

    def unassign_employee(self, employee_id: str) -> list[str]:
        """Detach every frame from the given employee; return the frame ids."""
        touched: list[str] = []
        with self._store_guard:
            for frame_id, frame in self._store.items():
                if frame.employee_id == employee_id:
                    self._store[frame_id] = frame.model_copy(
                        update={"employee_id": None, "updated_at": datetime.now(timezone.utc)}
                    )
                    touched.append(frame_id)
        return touched

    def lock_for(self, employee_id: str | None) -> ContextManager:
        if employee_id is None:
            return nullcontext()
        with self._locks_guard:
            return self._locks.setdefault(employee_id, threading.Lock())

    def discard_lock(self, employee_id: str) -> None:
        """Forget the lock of an employee that no longer exists."""
        with self._locks_guard:
            self._locks.pop(employee_id, None)


# ---------------------------------------------------------------------------
# Seed data: one admin, a small team with availability, and a week of frames
# ---------------------------------------------------------------------------

_WEEKDAYS = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
]


def seed_repositories(
    admin_repo: AdminRepository,
    employee_repo: EmployeeRepository,
    frame_repo: FrameRepository,
    now: datetime | None = None,
) -> Admin:
    """Populate the repositories with sample data and return the admin."""
    now = now or datetime.now(timezone.utc)

    admin = Admin(
        username="demo",
        email="demo@example.com",
        company_name="Demo Diner",
        phone_number="9999999999",
    )
    admin_repo.add(admin)

    day_shift = Employee(
        admin_id=admin.id,
        firstname="Ada",
        lastname="Lovelace",
        email="ada@example.com",
        phone_number="5550100",
        availability=[AvailabilityWindow(day=d, start=8, end=18) for d in _WEEKDAYS],
    )
    evening_shift = Employee(
        admin_id=admin.id,
        firstname="Grace",
        lastname="Hopper",
        email="grace@example.com",
        phone_number="5550101",
        availability=[AvailabilityWindow(day=d, start=14, end=23) for d in Weekday],
    )
    employee_repo.add(day_shift)
    employee_repo.add(evening_shift)

    # Next Monday, midnight in the schedule timezone
    local_now = normalize(now)
    monday = (local_now + timedelta(days=(7 - local_now.weekday()) % 7 or 7)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    for offset in range(5):
        day = monday + timedelta(days=offset)
        frame_repo.add(
            Frame(
                admin_id=admin.id,
                employee_id=day_shift.id,
                start_time=day + timedelta(hours=9),
                end_time=day + timedelta(hours=13),
            )
        )
        frame_repo.add(
            Frame(
                admin_id=admin.id,
                employee_id=evening_shift.id,
                start_time=day + timedelta(hours=17),
                end_time=day + timedelta(hours=22),
            )
        )
    # An open shift nobody is assigned to yet
    frame_repo.add(
        Frame(
            admin_id=admin.id,
            start_time=monday + timedelta(days=5, hours=10),
            end_time=monday + timedelta(days=5, hours=16),
        )
    )
    return admin
