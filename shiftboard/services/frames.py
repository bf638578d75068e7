"""Create, update and delete frames through the admission rules."""

from __future__ import annotations

from datetime import datetime, timezone

from shiftboard.domain.bus import EventBus
from shiftboard.domain.events import FrameCreated, FrameDeleted, FrameRejected, FrameUpdated
from shiftboard.domain.models import Employee, Frame, FrameCreate, FramePatch, Interval
from shiftboard.repos.memory import EmployeeRepository, FrameRepository
from shiftboard.services.admission import AdmissionError, FrameConflict, UnknownEmployee, admit
from shiftboard.services.intervals import normalize


class FrameNotFound(LookupError):
    """The frame being changed no longer exists."""


class FrameService:
    """Runs admission and persistence for frames as one step per employee."""

    def __init__(
        self,
        bus: EventBus,
        employee_repo: EmployeeRepository,
        frame_repo: FrameRepository,
    ) -> None:
        self.bus = bus
        self.employee_repo = employee_repo
        self.frame_repo = frame_repo

    def create(self, admin_id: str, payload: FrameCreate) -> Frame:
        candidate = Interval(start=normalize(payload.start_time), end=normalize(payload.end_time))

        with self.frame_repo.lock_for(payload.employee_id):
            # Resolved under the lock so a concurrent employee delete is seen
            employee = self._resolve_employee(admin_id, payload.employee_id)
            self._admit(admin_id, candidate, employee)
            frame = Frame(
                admin_id=admin_id,
                employee_id=payload.employee_id,
                start_time=candidate.start,
                end_time=candidate.end,
            )
            self.frame_repo.add(frame)

        self.bus.publish(
            FrameCreated(frame_id=frame.id, admin_id=admin_id, employee_id=frame.employee_id)
        )
        return frame

    def update(self, frame: Frame, patch: FramePatch) -> Frame:
        """Apply *patch* to the stored copy of *frame* if the result is admissible.

        Raises ``FrameNotFound`` if the frame was deleted in the meantime.
        """
        changes = patch.model_dump(exclude_unset=True)
        current = frame
        while True:
            employee_id = changes.get("employee_id", current.employee_id)
            with self.frame_repo.lock_for(employee_id):
                current = self.frame_repo.get(frame.id)
                if current is None:
                    raise FrameNotFound(frame.id)
                if changes.get("employee_id", current.employee_id) != employee_id:
                    # Reassigned concurrently; retry under the new employee's lock
                    continue

                candidate = Interval(
                    start=normalize(changes.get("start_time") or current.start_time),
                    end=normalize(changes.get("end_time") or current.end_time),
                    frame_id=current.id,
                )
                employee = self._resolve_employee(current.admin_id, employee_id)
                self._admit(current.admin_id, candidate, employee)
                updated = current.model_copy(
                    update={
                        "employee_id": employee_id,
                        "start_time": candidate.start,
                        "end_time": candidate.end,
                        "updated_at": datetime.now(timezone.utc),
                    }
                )
                if not self.frame_repo.replace(updated):
                    raise FrameNotFound(frame.id)
                break

        self.bus.publish(
            FrameUpdated(
                frame_id=updated.id, admin_id=updated.admin_id, changed_fields=sorted(changes)
            )
        )
        return updated

    def delete(self, frame: Frame) -> None:
        with self.frame_repo.lock_for(frame.employee_id):
            self.frame_repo.delete(frame.id)
        self.bus.publish(FrameDeleted(frame_id=frame.id, admin_id=frame.admin_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_employee(self, admin_id: str, employee_id: str | None) -> Employee | None:
        if employee_id is None:
            return None
        employee = self.employee_repo.get_for_admin(admin_id, employee_id)
        if employee is None:
            raise UnknownEmployee(f"The employee id {employee_id} is not valid")
        return employee

    def _admit(self, admin_id: str, candidate: Interval, employee: Employee | None) -> None:
        existing = (
            [f.interval for f in self.frame_repo.list_for_employee(employee.id)]
            if employee is not None
            else []
        )
        try:
            admit(candidate, employee, existing)
        except AdmissionError as exc:
            self.bus.publish(
                FrameRejected(
                    admin_id=admin_id,
                    employee_id=employee.id if employee else None,
                    frame_id=candidate.frame_id,
                    reason=exc.code,
                    conflict_kind=exc.kind if isinstance(exc, FrameConflict) else None,
                )
            )
            raise
