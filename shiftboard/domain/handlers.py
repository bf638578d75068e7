"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from shiftboard.domain.bus import EventBus
from shiftboard.domain.events import (
    EmployeeDeleted,
    FrameCreated,
    FrameDeleted,
    FrameRejected,
    FrameUpdated,
)
from shiftboard.repos.memory import FrameRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the frame store."""

    def __init__(self, bus: EventBus, frame_repo: FrameRepository) -> None:
        self.bus = bus
        self.frame_repo = frame_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(FrameCreated, self.on_frame_created)
        self.bus.subscribe(FrameUpdated, self.on_frame_updated)
        self.bus.subscribe(FrameDeleted, self.on_frame_deleted)
        self.bus.subscribe(FrameRejected, self.on_frame_rejected)
        self.bus.subscribe(EmployeeDeleted, self.on_employee_deleted)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_frame_created(self, event: FrameCreated) -> None:
        logger.info(
            "frame %s created by admin %s (employee=%s)",
            event.frame_id,
            event.admin_id,
            event.employee_id,
        )

    def on_frame_updated(self, event: FrameUpdated) -> None:
        logger.info(
            "frame %s updated by admin %s: %s",
            event.frame_id,
            event.admin_id,
            ", ".join(event.changed_fields) or "no changes",
        )

    def on_frame_deleted(self, event: FrameDeleted) -> None:
        logger.info("frame %s deleted by admin %s", event.frame_id, event.admin_id)

    def on_frame_rejected(self, event: FrameRejected) -> None:
        logger.info(
            "frame rejected for admin %s: %s%s",
            event.admin_id,
            event.reason,
            f" ({event.conflict_kind})" if event.conflict_kind else "",
        )

    def on_employee_deleted(self, event: EmployeeDeleted) -> None:
        # Frames outlive the employee; they go back to being open shifts
        with self.frame_repo.lock_for(event.employee_id):
            frame_ids = self.frame_repo.unassign_employee(event.employee_id)
        self.frame_repo.discard_lock(event.employee_id)
        if frame_ids:
            logger.info(
                "unassigned %d frame(s) from deleted employee %s",
                len(frame_ids),
                event.employee_id,
            )
