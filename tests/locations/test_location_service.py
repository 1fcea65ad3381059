from __future__ import annotations

import pytest

from src.police_attendance.police_attendance.core.exceptions import ValidationError
from src.police_attendance.police_attendance.locations.model import UserLocation
from src.police_attendance.police_attendance.locations.service import LocationService


class InMemoryLocations:
    def __init__(self):
        self.rows: list[UserLocation] = []

    def add(self, *, user_id, latitude, longitude, accuracy, recorded_at):
        loc = UserLocation(
            location_id=len(self.rows) + 1,
            user_id=user_id,
            latitude=latitude,
            longitude=longitude,
            recorded_at=recorded_at,
            accuracy=accuracy,
        )
        self.rows.append(loc)
        return loc.location_id

    def latest(self, user_id):
        mine = [r for r in self.rows if r.user_id == user_id]
        return mine[-1] if mine else None

    def history(self, user_id, *, limit=50):
        return [r for r in reversed(self.rows) if r.user_id == user_id][:limit]


@pytest.fixture
def repo():
    return InMemoryLocations()


@pytest.fixture
def svc(repo, clock):
    return LocationService(repo, interval_seconds=30, clock=clock)


def test_reports_inside_window_are_dropped(svc, repo, clock):
    assert svc.report(user_id=1, latitude=10.0, longitude=106.0, accuracy="5") == 1
    clock.advance(seconds=29)
    assert svc.report(user_id=1, latitude=10.1, longitude=106.1) is None
    clock.advance(seconds=1)
    assert svc.report(user_id=1, latitude=10.2, longitude=106.2) == 2

    assert [r.latitude for r in repo.rows] == [10.0, 10.2]
    assert repo.rows[0].accuracy == 5.0


def test_throttle_is_per_officer(svc):
    assert svc.report(user_id=1, latitude=10.0, longitude=106.0) == 1
    assert svc.report(user_id=2, latitude=10.0, longitude=106.0) == 2


def test_rejected_report_does_not_start_window(svc):
    with pytest.raises(ValidationError):
        svc.report(user_id=1, latitude=95.0, longitude=106.0)
    assert svc.report(user_id=1, latitude=10.0, longitude=106.0) == 1


def test_latest_and_history(svc, clock):
    svc.report(user_id=1, latitude=10.0, longitude=106.0)
    clock.advance(minutes=1)
    svc.report(user_id=1, latitude=10.5, longitude=106.5)

    assert svc.latest(1).latitude == 10.5
    assert [r.latitude for r in svc.history(1, limit=1)] == [10.5]
    assert LocationService.to_dict(svc.latest(1))["recorded_at"] == "2026-03-02T08:31:00"
