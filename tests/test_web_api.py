from __future__ import annotations

import base64
from types import SimpleNamespace

import pytest
from flask import Flask

from src.police_attendance.police_attendance.attendance import controller as attendance_controller
from src.police_attendance.police_attendance.attendance.service import AttendanceService
from src.police_attendance.police_attendance.capture.service import PunchService
from src.police_attendance.police_attendance.common.web import register_error_handlers, status_for
from src.police_attendance.police_attendance.core.exceptions import (
    DataIntegrityError,
    DomainError,
    InvalidTransitionError,
    LocationTimeoutError,
    PermissionDeniedError,
)


@pytest.fixture
def app(events_repo, state_store, photos, clock):
    attendance = AttendanceService(events_repo)
    container = SimpleNamespace(
        attendance_service=attendance,
        punch_service=PunchService(
            attendance=attendance,
            events=events_repo,
            store=state_store,
            photos=photos,
            clock=clock,
        ),
    )
    app = Flask(__name__)
    app.config.update(TESTING=True, SECRET_KEY="test")
    register_error_handlers(app)
    attendance_controller.register(app, container)
    return app


@pytest.fixture
def client(app):
    client = app.test_client()
    with client.session_transaction() as sess:
        sess["user_id"] = 1
        sess["role"] = "staff"
    return client


@pytest.fixture
def payload(jpeg_bytes):
    return {
        "latitude": 10.7769,
        "longitude": 106.7009,
        "accuracy": 12,
        "photo": "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode("ascii"),
    }


@pytest.mark.parametrize(
    "error, status",
    [
        (PermissionDeniedError("x"), 403),
        (LocationTimeoutError("x"), 408),
        (InvalidTransitionError("x"), 409),
        (DataIntegrityError("x"), 422),
        (DomainError("x"), 400),
    ],
)
def test_status_for(error, status):
    assert status_for(error) == status


def test_requires_sign_in(app):
    resp = app.test_client().get("/api/attendance/state")
    assert resp.status_code == 401
    assert resp.get_json()["ok"] is False


def test_punch_cycle(client, payload):
    resp = client.post("/api/attendance/punch", json=payload)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["event"]["punch_type"] == "IN"
    assert body["state"]["next_punch_type"] == "OUT"
    assert body["geofence"] is None

    state = client.get("/api/attendance/state").get_json()["state"]
    assert state["is_punched_in"] is True

    history = client.get("/api/attendance/history").get_json()
    assert history["records"][0]["status"] == "PRESENT"
    assert history["summary"]["present"] == 1


def test_double_submission_is_a_conflict(client, payload):
    assert client.post("/api/attendance/punch", json={**payload, "punch_type": "IN"}).status_code == 201

    resp = client.post("/api/attendance/punch", json={**payload, "punch_type": "IN"})
    assert resp.status_code == 409
    assert resp.get_json()["kind"] == "InvalidTransitionError"


def test_bad_punch_type(client, payload):
    assert client.post("/api/attendance/punch", json={**payload, "punch_type": "LUNCH"}).status_code == 400


def test_location_and_camera_failures(client, payload, events_repo):
    assert client.post("/api/attendance/punch", json={**payload, "location_error": "timeout"}).status_code == 408
    assert client.post("/api/attendance/punch", json={**payload, "location_error": "denied"}).status_code == 403
    assert client.post("/api/attendance/punch", json={**payload, "camera_error": "denied"}).status_code == 403
    assert client.post("/api/attendance/punch", json={**payload, "photo": ""}).status_code == 400
    assert events_repo.events == []
