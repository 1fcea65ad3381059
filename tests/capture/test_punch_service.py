from __future__ import annotations

import base64
from datetime import datetime, timedelta

import pytest

from src.police_attendance.police_attendance.attendance.service import AttendanceService
from src.police_attendance.police_attendance.capture.service import PunchService
from src.police_attendance.police_attendance.capture.submitted import SubmittedCamera, SubmittedLocation
from src.police_attendance.police_attendance.core.enums import ComplianceStatus, PunchType
from src.police_attendance.police_attendance.core.exceptions import InvalidTransitionError, PermissionDeniedError
from src.police_attendance.police_attendance.geofence.model import Geofence
from src.police_attendance.police_attendance.geofence.service import GeofenceService
from src.police_attendance.police_attendance.shifts.model import Shift
from src.police_attendance.police_attendance.shifts.service import ShiftService

STATION = Geofence(
    geofence_id=1,
    station_id="ST-1",
    station_name="Central Station",
    center_latitude=10.7769,
    center_longitude=106.7009,
    radius_meters=200.0,
)


class InMemoryGeofences:
    def __init__(self, fences):
        self.fences = list(fences)
        self.violations = []

    def list_active(self, *, station_id=None):
        return [f for f in self.fences if station_id is None or f.station_id == station_id]

    def log_violation(self, **kwargs):
        self.violations.append(kwargs)
        return len(self.violations)


class InMemoryShifts:
    def __init__(self, shifts):
        self.shifts = list(shifts)

    def list_between(self, *, start=None, end=None, user_id=None):
        out = [
            s
            for s in self.shifts
            if (start is None or s.shift_end >= start)
            and (end is None or s.shift_start <= end)
            and (user_id is None or user_id in s.assigned_users)
        ]
        return sorted(out, key=lambda s: s.shift_start)


def _photo(jpeg: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


@pytest.fixture
def service_factory(events_repo, state_store, photos, clock):
    def _make(*, geofences=None, shifts=None):
        return PunchService(
            attendance=AttendanceService(events_repo),
            events=events_repo,
            store=state_store,
            photos=photos,
            geofences=GeofenceService(geofences, clock=clock) if geofences is not None else None,
            shifts=ShiftService(shifts, clock=clock) if shifts is not None else None,
            clock=clock,
        )

    return _make


def test_punch_in_then_punch_out_same_day(service_factory, clock, jpeg_bytes, events_repo):
    svc = service_factory()

    assert svc.current_state(1).is_punched_in is False

    first = svc.punch(
        user_id=1,
        location=SubmittedLocation(10.7769, 106.7009, 15.0),
        camera=SubmittedCamera(_photo(jpeg_bytes)),
    )
    assert first.event.punch_type == PunchType.IN
    assert first.state.is_punched_in is True
    assert svc.next_punch_type(1) == PunchType.OUT

    clock.advance(hours=8, minutes=45)
    second = svc.punch(
        user_id=1,
        location=SubmittedLocation(10.7769, 106.7009),
        camera=SubmittedCamera(_photo(jpeg_bytes)),
    )
    assert second.event.punch_type == PunchType.OUT
    assert svc.next_punch_type(1) == PunchType.IN

    history = AttendanceService(events_repo).history(1)
    assert len(history) == 1
    assert history[0].hours_worked == pytest.approx(8.75)


def test_repeated_punch_in_is_rejected(service_factory, jpeg_bytes, events_repo):
    svc = service_factory()
    svc.punch(user_id=1, location=SubmittedLocation(10.0, 106.0), camera=SubmittedCamera(_photo(jpeg_bytes)))

    with pytest.raises(InvalidTransitionError):
        svc.punch(
            user_id=1,
            location=SubmittedLocation(10.0, 106.0),
            camera=SubmittedCamera(_photo(jpeg_bytes)),
            punch_type=PunchType.IN,
        )
    assert len(events_repo.events) == 1


def test_camera_denied_leaves_state_untouched(service_factory, events_repo):
    svc = service_factory()
    camera = SubmittedCamera(None, error="denied")

    with pytest.raises(PermissionDeniedError):
        svc.punch(user_id=1, location=SubmittedLocation(10.0, 106.0), camera=camera)

    assert events_repo.events == []
    assert svc.next_punch_type(1) == PunchType.IN


def test_outside_station_is_logged_but_not_blocked(service_factory, jpeg_bytes, events_repo):
    fences = InMemoryGeofences([STATION])
    svc = service_factory(geofences=fences)

    result = svc.punch(
        user_id=1,
        location=SubmittedLocation(10.80, 106.70),
        camera=SubmittedCamera(_photo(jpeg_bytes)),
    )

    assert len(events_repo.events) == 1
    assert result.geofence.is_valid is False
    assert result.geofence.distance_meters > 200
    assert result.violation_id == 1
    assert fences.violations[0]["user_id"] == 1


def test_inside_station_logs_nothing(service_factory, jpeg_bytes):
    fences = InMemoryGeofences([STATION])
    svc = service_factory(geofences=fences)

    result = svc.punch(
        user_id=1,
        location=SubmittedLocation(10.7770, 106.7010),
        camera=SubmittedCamera(_photo(jpeg_bytes)),
    )

    assert result.geofence.is_valid is True
    assert result.violation_id is None
    assert fences.violations == []


def test_shift_compliance_is_attached(service_factory, clock, jpeg_bytes):
    day = clock.now.date()
    shift = Shift(
        shift_id=7,
        station_id="ST-1",
        shift_name="Day",
        shift_start=datetime.combine(day, datetime.min.time()) + timedelta(hours=8),
        shift_end=datetime.combine(day, datetime.min.time()) + timedelta(hours=16),
        assigned_users=(1,),
    )
    svc = service_factory(shifts=InMemoryShifts([shift]))

    result = svc.punch(user_id=1, location=SubmittedLocation(10.0, 106.0), camera=SubmittedCamera(_photo(jpeg_bytes)))

    # Grace ends at 08:20.
    assert result.compliance.shift.shift_id == 7
    assert result.compliance.status == ComplianceStatus.LATE
    assert result.compliance.minutes_late == 30
