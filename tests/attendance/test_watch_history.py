from __future__ import annotations

from datetime import timedelta

import pytest

from src.police_attendance.police_attendance.attendance.model import NewPunchEvent
from src.police_attendance.police_attendance.attendance.service import AttendanceService
from src.police_attendance.police_attendance.common.events import ChangeFeed
from src.police_attendance.police_attendance.core.enums import PunchType


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def service(events_repo, feed):
    return AttendanceService(events_repo, feed=feed)


def test_history_refetches_on_the_officers_own_punches(service, feed, fixed_now):
    query = service.watch_history(feed, 1)
    refreshes = []
    query.on_update(refreshes.append)
    assert query.data == []

    service.record_punch(NewPunchEvent(user_id=1, punch_type=PunchType.IN, timestamp=fixed_now))

    assert len(refreshes) == 1
    assert len(query.data) == 1
    assert query.data[0].punch_in.timestamp == fixed_now


def test_other_officers_punches_do_not_refetch(service, feed, fixed_now):
    query = service.watch_history(feed, 1)
    refreshes = []
    query.on_update(refreshes.append)

    service.record_punch(NewPunchEvent(user_id=2, punch_type=PunchType.IN, timestamp=fixed_now))

    assert refreshes == []
    assert query.data == []


def test_stopped_query_ignores_new_punches(service, feed, fixed_now):
    query = service.watch_history(feed, 1)
    service.record_punch(NewPunchEvent(user_id=1, punch_type=PunchType.IN, timestamp=fixed_now))
    query.stop()

    service.record_punch(
        NewPunchEvent(user_id=1, punch_type=PunchType.OUT, timestamp=fixed_now + timedelta(hours=8))
    )

    assert query.data[0].punch_out is None
