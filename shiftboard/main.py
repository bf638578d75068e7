"""FastAPI application: entry point for the shift scheduling service."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shiftboard.config import get_settings
from shiftboard.domain.bus import EventBus
from shiftboard.domain.events import EmployeeDeleted
from shiftboard.domain.handlers import HandlerRegistry
from shiftboard.domain.models import (
    Admin,
    Employee,
    EmployeeCreate,
    EmployeeUpdate,
    Frame,
    FrameCreate,
    FramePatch,
    FrameView,
    TokenResponse,
)
from shiftboard.repos.memory import (
    AdminRepository,
    EmployeeRepository,
    FrameRepository,
    seed_repositories,
)
from shiftboard.services.admission import AdmissionError, FrameConflict
from shiftboard.services.auth import create_auth_token, verify_token
from shiftboard.services.frames import FrameNotFound, FrameService
from shiftboard.services.intervals import normalize

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Shift Scheduling Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.client_origin],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
admin_repo = AdminRepository()
employee_repo = EmployeeRepository()
frame_repo = FrameRepository()

handler_registry = HandlerRegistry(bus=event_bus, frame_repo=frame_repo)
frame_service = FrameService(bus=event_bus, employee_repo=employee_repo, frame_repo=frame_repo)

if settings.seed_data:
    _demo_admin = seed_repositories(admin_repo, employee_repo, frame_repo)
    logger.info(
        "seeded demo admin %s; bearer token: %s",
        _demo_admin.username,
        create_auth_token(_demo_admin),
    )


# ── Auth ──────────────────────────────────────────────────────────────

bearer = HTTPBearer(auto_error=False)


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Admin:
    """Resolve the admin named by the bearer token, or fail with 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = verify_token(credentials.credentials)
    admin = admin_repo.get(payload["sub"])
    if admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
    return admin


@app.exception_handler(AdmissionError)
async def admission_error_handler(request: Request, exc: AdmissionError) -> JSONResponse:
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, FrameConflict):
        body["conflict_kind"] = str(exc.kind)
        body["conflicting_frame_id"] = exc.conflicting_frame_id
    return JSONResponse(status_code=422, content=body)


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/api/refresh", response_model=TokenResponse)
def refresh_token(admin: Admin = Depends(get_current_admin)) -> TokenResponse:
    """Exchange a still-valid token for a fresh one."""
    return TokenResponse(auth_token=create_auth_token(admin))


# Employees


@app.get("/api/employees", response_model=list[Employee])
def list_employees(admin: Admin = Depends(get_current_admin)) -> list[Employee]:
    return employee_repo.list_for_admin(admin.id)


@app.get("/api/employees/{employee_id}", response_model=Employee)
def get_employee(employee_id: str, admin: Admin = Depends(get_current_admin)) -> Employee:
    employee = employee_repo.get_for_admin(admin.id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee


@app.post("/api/employees", response_model=Employee, status_code=201)
def create_employee(
    body: EmployeeCreate,
    response: Response,
    admin: Admin = Depends(get_current_admin),
) -> Employee:
    if employee_repo.find_by_email(body.email) is not None:
        raise HTTPException(status_code=400, detail="The email already exists")
    employee = Employee(admin_id=admin.id, **body.model_dump())
    employee_repo.add(employee)
    response.headers["Location"] = f"/api/employees/{employee.id}"
    return employee


@app.put("/api/employees/{employee_id}", response_model=Employee)
def update_employee(
    employee_id: str,
    body: EmployeeUpdate,
    admin: Admin = Depends(get_current_admin),
) -> Employee:
    """Apply the fields present in the body; availability is replaced wholesale."""
    employee = employee_repo.get_for_admin(admin.id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    # Only img may be cleared; a null for any other field leaves it as is
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None or k == "img"
    }
    if "email" in changes:
        other = employee_repo.find_by_email(changes["email"])
        if other is not None and other.id != employee.id:
            raise HTTPException(status_code=400, detail="The email already exists")

    updated = Employee.model_validate({**employee.model_dump(), **changes})
    employee_repo.add(updated)
    return updated


@app.delete("/api/employees/{employee_id}", status_code=204, response_class=Response)
def delete_employee(employee_id: str, admin: Admin = Depends(get_current_admin)) -> Response:
    employee = employee_repo.get_for_admin(admin.id, employee_id)
    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    employee_repo.delete(employee_id)
    event_bus.publish(EmployeeDeleted(employee_id=employee_id, admin_id=admin.id))
    return Response(status_code=204)


# Frames


@app.get("/api/frames", response_model=list[FrameView])
def list_frames(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    admin: Admin = Depends(get_current_admin),
) -> list[FrameView]:
    """Return the admin's frames by start time, each with its employee embedded.

    ``start_date``/``end_date`` bound the frame's start, inclusive.
    """
    frames = frame_repo.list_for_admin(
        admin.id,
        start_from=normalize(start_date) if start_date else None,
        start_until=normalize(end_date) if end_date else None,
    )
    return [
        FrameView(
            **frame.model_dump(),
            employee=employee_repo.get(frame.employee_id) if frame.employee_id else None,
        )
        for frame in frames
    ]


@app.get("/api/frames/frame/{frame_id}", response_model=Frame)
def get_frame(frame_id: str, admin: Admin = Depends(get_current_admin)) -> Frame:
    frame = frame_repo.get_for_admin(admin.id, frame_id)
    if frame is None:
        raise HTTPException(status_code=404, detail="Frame not found")
    return frame


@app.get("/api/frames/{employee_id}", response_model=list[Frame])
def list_employee_frames(
    employee_id: str, admin: Admin = Depends(get_current_admin)
) -> list[Frame]:
    if employee_repo.get_for_admin(admin.id, employee_id) is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return [f for f in frame_repo.list_for_employee(employee_id) if f.admin_id == admin.id]


@app.post("/api/frames/frame", response_model=Frame, status_code=201)
def create_frame(
    body: FrameCreate,
    response: Response,
    admin: Admin = Depends(get_current_admin),
) -> Frame:
    """Create a frame; 422 if the employee is unavailable or double-booked."""
    frame = frame_service.create(admin.id, body)
    response.headers["Location"] = f"/api/frames/frame/{frame.id}"
    return frame


@app.put("/api/frames/frame/{frame_id}", response_model=Frame)
def update_frame(
    frame_id: str,
    body: FramePatch,
    admin: Admin = Depends(get_current_admin),
) -> Frame:
    frame = frame_repo.get_for_admin(admin.id, frame_id)
    if frame is None:
        raise HTTPException(status_code=404, detail="Frame not found")
    try:
        return frame_service.update(frame, body)
    except FrameNotFound:
        raise HTTPException(status_code=404, detail="Frame not found") from None


@app.delete("/api/frames/frame/{frame_id}", status_code=204, response_class=Response)
def delete_frame(frame_id: str, admin: Admin = Depends(get_current_admin)) -> Response:
    frame = frame_repo.get_for_admin(admin.id, frame_id)
    if frame is None:
        raise HTTPException(status_code=404, detail="Frame not found")
    frame_service.delete(frame)
    return Response(status_code=204)
