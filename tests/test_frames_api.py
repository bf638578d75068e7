"""API tests for creating, updating and deleting frames."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from shiftboard.domain.models import Admin, AvailabilityWindow, Employee, Frame, Weekday
from shiftboard.main import admin_repo, app, employee_repo, frame_repo
from shiftboard.services.auth import create_auth_token

# 2025-01-06 is a Monday
_MONDAY = datetime(2025, 1, 6, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0, day: int = 0) -> datetime:
    return _MONDAY + timedelta(days=day, hours=hour, minutes=minute)


@pytest.fixture(autouse=True)
def _clear_repos():
    admin_repo._store.clear()
    employee_repo._store.clear()
    frame_repo._store.clear()
    yield
    admin_repo._store.clear()
    employee_repo._store.clear()
    frame_repo._store.clear()


@pytest.fixture()
def admin() -> Admin:
    admin = Admin(
        username="manager",
        email="manager@example.com",
        company_name="Corner Cafe",
        phone_number="5550000",
    )
    admin_repo.add(admin)
    return admin


@pytest.fixture()
def client(admin: Admin) -> TestClient:
    client = TestClient(app)
    client.headers["Authorization"] = f"Bearer {create_auth_token(admin)}"
    return client


@pytest.fixture()
def employee(admin: Admin) -> Employee:
    employee = Employee(
        admin_id=admin.id,
        firstname="Ada",
        lastname="Lovelace",
        email="ada@example.com",
        phone_number="5550100",
        availability=[AvailabilityWindow(day=Weekday.MONDAY, start=8, end=20)],
    )
    employee_repo.add(employee)
    return employee


def _seed_frame(admin: Admin, employee: Employee | None, start: datetime, end: datetime) -> Frame:
    frame = Frame(
        admin_id=admin.id,
        employee_id=employee.id if employee else None,
        start_time=start,
        end_time=end,
    )
    frame_repo.add(frame)
    return frame


def _body(start: datetime, end: datetime, employee: Employee | None = None) -> dict:
    body = {"start_time": start.isoformat(), "end_time": end.isoformat()}
    if employee is not None:
        body["employee_id"] = employee.id
    return body


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_open_frame(client: TestClient, admin: Admin):
    resp = client.post("/api/frames/frame", json=_body(_at(10), _at(12)))

    assert resp.status_code == 201
    body = resp.json()
    assert body["admin_id"] == admin.id
    assert body["employee_id"] is None
    assert resp.headers["location"] == f"/api/frames/frame/{body['id']}"
    assert frame_repo.get(body["id"]) is not None


def test_create_assigned_frame(client: TestClient, employee: Employee):
    resp = client.post("/api/frames/frame", json=_body(_at(10), _at(12), employee))

    assert resp.status_code == 201
    assert resp.json()["employee_id"] == employee.id


def test_create_rejects_end_before_start(client: TestClient):
    resp = client.post("/api/frames/frame", json=_body(_at(12), _at(10)))

    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_interval"
    assert resp.json()["detail"] == "end_time must be later than start_time"


def test_create_requires_start_and_end(client: TestClient):
    resp = client.post("/api/frames/frame", json={"start_time": _at(10).isoformat()})
    assert resp.status_code == 422


def test_create_rejects_unknown_employee(client: TestClient):
    body = _body(_at(10), _at(12))
    body["employee_id"] = "nobody"

    resp = client.post("/api/frames/frame", json=body)

    assert resp.status_code == 422
    assert resp.json()["code"] == "unknown_employee"


def test_create_rejects_employee_of_another_admin(client: TestClient):
    stranger = Employee(
        admin_id="other-admin",
        firstname="Eve",
        lastname="Else",
        email="eve@example.com",
        phone_number="5550199",
        availability=[AvailabilityWindow(day=Weekday.MONDAY, start=0, end=24)],
    )
    employee_repo.add(stranger)

    resp = client.post("/api/frames/frame", json=_body(_at(10), _at(12), stranger))

    assert resp.status_code == 422
    assert resp.json()["code"] == "unknown_employee"


def test_create_rejects_when_employee_unavailable(client: TestClient, employee: Employee):
    resp = client.post("/api/frames/frame", json=_body(_at(6), _at(9), employee))

    assert resp.status_code == 422
    assert resp.json() == {
        "detail": "The employee is not available during these times",
        "code": "not_available",
    }
    assert frame_repo.list_for_employee(employee.id) == []


@pytest.mark.parametrize(
    ("start", "end", "kind", "message"),
    [
        (_at(10, 30), _at(11, 30), "contained_within", "This frame is inside an existing frame."),
        (_at(9), _at(10, 30), "end_overlaps", "This frame's ending is inside another frame."),
        (_at(11, 30), _at(12, 30), "start_overlaps", "This frame's start is inside another frame."),
        (_at(9), _at(13), "encloses", "There is a conflict with the selected time frame."),
    ],
)
def test_create_rejects_overlapping_frame(
    client: TestClient, admin: Admin, employee: Employee, start, end, kind, message
):
    existing = _seed_frame(admin, employee, _at(10), _at(12))

    resp = client.post("/api/frames/frame", json=_body(start, end, employee))

    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "conflict"
    assert body["conflict_kind"] == kind
    assert body["detail"] == message
    assert body["conflicting_frame_id"] == existing.id


def test_create_allows_abutting_frame(client: TestClient, admin: Admin, employee: Employee):
    _seed_frame(admin, employee, _at(10), _at(12))

    resp = client.post("/api/frames/frame", json=_body(_at(12), _at(13), employee))

    assert resp.status_code == 201


def test_overlap_with_open_frame_is_allowed(client: TestClient, admin: Admin, employee: Employee):
    _seed_frame(admin, None, _at(10), _at(12))

    resp = client.post("/api/frames/frame", json=_body(_at(10), _at(12), employee))

    assert resp.status_code == 201


def test_naive_timestamps_use_schedule_timezone(client: TestClient, employee: Employee):
    resp = client.post(
        "/api/frames/frame",
        json={
            "employee_id": employee.id,
            "start_time": "2025-01-06T10:00:00",
            "end_time": "2025-01-06T12:00:00",
        },
    )

    assert resp.status_code == 201
    stored = frame_repo.get(resp.json()["id"])
    assert stored.start_time == _at(10)


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def test_update_without_changes_does_not_self_conflict(
    client: TestClient, admin: Admin, employee: Employee
):
    frame = _seed_frame(admin, employee, _at(10), _at(12))

    resp = client.put(f"/api/frames/frame/{frame.id}", json=_body(_at(10), _at(12), employee))

    assert resp.status_code == 200
    assert resp.json()["id"] == frame.id


def test_update_end_onto_next_frame_start(client: TestClient, admin: Admin, employee: Employee):
    frame = _seed_frame(admin, employee, _at(10), _at(12))
    _seed_frame(admin, employee, _at(14), _at(16))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"end_time": _at(14).isoformat()})

    assert resp.status_code == 200
    assert frame_repo.get(frame.id).end_time == _at(14)


def test_update_into_other_frame_is_rejected(
    client: TestClient, admin: Admin, employee: Employee
):
    frame = _seed_frame(admin, employee, _at(10), _at(12))
    other = _seed_frame(admin, employee, _at(14), _at(16))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"end_time": _at(15).isoformat()})

    assert resp.status_code == 422
    assert resp.json()["conflict_kind"] == "end_overlaps"
    assert resp.json()["conflicting_frame_id"] == other.id
    assert frame_repo.get(frame.id).end_time == _at(12)


def test_update_assigning_busy_employee_is_rejected(
    client: TestClient, admin: Admin, employee: Employee
):
    _seed_frame(admin, employee, _at(10), _at(12))
    open_frame = _seed_frame(admin, None, _at(11), _at(13))

    resp = client.put(f"/api/frames/frame/{open_frame.id}", json={"employee_id": employee.id})

    assert resp.status_code == 422
    assert resp.json()["conflict_kind"] == "start_overlaps"
    assert frame_repo.get(open_frame.id).employee_id is None


def test_update_checks_availability(client: TestClient, admin: Admin, employee: Employee):
    frame = _seed_frame(admin, employee, _at(10), _at(12))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"start_time": _at(6).isoformat()})

    assert resp.status_code == 422
    assert resp.json()["code"] == "not_available"


def test_update_rejects_inverted_interval(client: TestClient, admin: Admin):
    frame = _seed_frame(admin, None, _at(10), _at(12))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"start_time": _at(13).isoformat()})

    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_interval"


def test_update_can_unassign_employee(client: TestClient, admin: Admin, employee: Employee):
    frame = _seed_frame(admin, employee, _at(10), _at(12))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"employee_id": None})

    assert resp.status_code == 200
    assert resp.json()["employee_id"] is None


def test_update_ignores_fields_outside_patch(client: TestClient, admin: Admin):
    frame = _seed_frame(admin, None, _at(10), _at(12))

    resp = client.put(f"/api/frames/frame/{frame.id}", json={"admin_id": "someone-else"})

    assert resp.status_code == 200
    assert frame_repo.get(frame.id).admin_id == admin.id


def test_update_missing_frame_404(client: TestClient):
    resp = client.put("/api/frames/frame/missing", json={"end_time": _at(14).isoformat()})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Frame not found"


# ---------------------------------------------------------------------------
# Read / delete
# ---------------------------------------------------------------------------


def test_list_frames_sorted_with_employee(client: TestClient, admin: Admin, employee: Employee):
    later = _seed_frame(admin, None, _at(14), _at(16))
    earlier = _seed_frame(admin, employee, _at(10), _at(12))
    _seed_frame(
        Admin(username="x", email="x@example.com", company_name="X", phone_number="1"),
        None,
        _at(8),
        _at(9),
    )

    resp = client.get("/api/frames")

    assert resp.status_code == 200
    body = resp.json()
    assert [f["id"] for f in body] == [earlier.id, later.id]
    assert body[0]["employee"]["id"] == employee.id
    assert body[1]["employee"] is None


def test_list_frames_filters_on_start(client: TestClient, admin: Admin):
    _seed_frame(admin, None, _at(10), _at(12))
    tuesday = _seed_frame(admin, None, _at(10, day=1), _at(12, day=1))

    resp = client.get(
        "/api/frames",
        params={"start_date": _at(0, day=1).isoformat(), "end_date": _at(23, day=1).isoformat()},
    )

    assert resp.status_code == 200
    assert [f["id"] for f in resp.json()] == [tuesday.id]


def test_list_frames_for_employee(client: TestClient, admin: Admin, employee: Employee):
    mine = _seed_frame(admin, employee, _at(10), _at(12))
    _seed_frame(admin, None, _at(13), _at(14))

    resp = client.get(f"/api/frames/{employee.id}")

    assert resp.status_code == 200
    assert [f["id"] for f in resp.json()] == [mine.id]


def test_get_frame_of_other_admin_404(client: TestClient):
    foreign = Frame(admin_id="other-admin", start_time=_at(10), end_time=_at(12))
    frame_repo.add(foreign)

    resp = client.get(f"/api/frames/frame/{foreign.id}")

    assert resp.status_code == 404


def test_delete_frame(client: TestClient, admin: Admin):
    frame = _seed_frame(admin, None, _at(10), _at(12))

    resp = client.delete(f"/api/frames/frame/{frame.id}")

    assert resp.status_code == 204
    assert frame_repo.get(frame.id) is None


def test_frames_require_token():
    resp = TestClient(app).get("/api/frames")
    assert resp.status_code == 401
