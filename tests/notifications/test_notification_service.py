from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.police_attendance.police_attendance.common.events import ChangeFeed
from src.police_attendance.police_attendance.core.enums import LeaveStatus, NotificationType, Role
from src.police_attendance.police_attendance.core.exceptions import AuthorizationError, NotFoundError
from src.police_attendance.police_attendance.leave.model import LeaveRequest
from src.police_attendance.police_attendance.leave.service import LeaveService
from src.police_attendance.police_attendance.notifications.model import Notification
from src.police_attendance.police_attendance.notifications.service import NotificationService
from src.police_attendance.police_attendance.shifts.model import Shift


class InMemoryNotifications:
    def __init__(self):
        self.items: list[Notification] = []
        self._keys: set = set()

    def create(self, *, user_id, notification_type, title, message, metadata=None, dedupe_key=None):
        if dedupe_key is not None:
            if (user_id, dedupe_key) in self._keys:
                return None
            self._keys.add((user_id, dedupe_key))
        nid = len(self.items) + 1
        self.items.append(
            Notification(
                notification_id=nid,
                user_id=user_id,
                notification_type=notification_type,
                title=title,
                message=message,
                created_at=datetime(2026, 3, 2, 8, 0) + timedelta(seconds=nid),
                metadata=dict(metadata or {}),
            )
        )
        return nid

    def list_for_user(self, user_id, *, limit=50):
        mine = [n for n in self.items if n.user_id == user_id]
        return sorted(mine, key=lambda n: n.created_at, reverse=True)[:limit]

    def unread_count(self, user_id):
        return sum(1 for n in self.items if n.user_id == user_id and not n.is_read)

    def mark_read(self, notification_id, *, user_id, at):
        for i, n in enumerate(self.items):
            if n.notification_id == notification_id and n.user_id == user_id and not n.is_read:
                self.items[i] = replace(n, is_read=True, read_at=at)
                return True
        return False

    def mark_all_read(self, user_id, *, at):
        count = 0
        for i, n in enumerate(self.items):
            if n.user_id == user_id and not n.is_read:
                self.items[i] = replace(n, is_read=True, read_at=at)
                count += 1
        return count


class Leaves:
    def __init__(self):
        self.items: dict[int, LeaveRequest] = {}

    def add(self, request_id, user_id, start, end, status=LeaveStatus.PENDING, reject_reason=None):
        self.items[request_id] = LeaveRequest(
            request_id=request_id,
            user_id=user_id,
            start_date=start,
            end_date=end,
            reason="Family",
            status=status,
            created_at=datetime(2026, 3, 1, 9, 0),
            reject_reason=reject_reason,
        )

    def create(self, *, user_id, start_date, end_date, reason, attachment_url):
        rid = len(self.items) + 1
        self.add(rid, user_id, start_date, end_date)
        return rid

    def get(self, *, request_id):
        return self.items.get(int(request_id))

    def decide(self, *, request_id, status, approver_id, reject_reason=None):
        req = self.items[int(request_id)]
        if req.status != LeaveStatus.PENDING:
            return False
        self.items[int(request_id)] = replace(req, status=status, approver_id=approver_id, reject_reason=reject_reason)
        return True

    def list_overlapping(self, *, start, end, status=None):
        return [
            r
            for r in self.items.values()
            if r.start_date <= end and r.end_date >= start and (status is None or r.status == status)
        ]


class Shifts:
    def __init__(self, shifts=()):
        self.shifts = list(shifts)

    def list_between(self, *, start=None, end=None, user_id=None):
        return [
            s
            for s in self.shifts
            if (start is None or s.shift_end >= start) and (end is None or s.shift_start <= end)
        ]


NOW = datetime(2026, 3, 2, 7, 57)


@pytest.fixture
def notifications():
    return InMemoryNotifications()


@pytest.fixture
def leaves():
    return Leaves()


@pytest.fixture
def shifts():
    return Shifts(
        [
            Shift(1, "ST-01", "Morning", datetime(2026, 3, 2, 8, 0), datetime(2026, 3, 2, 16, 0), (1, 2, 3)),
            Shift(2, "ST-01", "Late", datetime(2026, 3, 2, 14, 0), datetime(2026, 3, 2, 22, 0), (4,)),
            # Already running: no reminder.
            Shift(3, "ST-02", "Night", datetime(2026, 3, 1, 22, 0), datetime(2026, 3, 2, 8, 0), (5,)),
        ]
    )


@pytest.fixture
def service(notifications, leaves, shifts):
    return NotificationService(notifications, leaves=leaves, shifts=shifts, clock=lambda: NOW)


def test_shift_reminders_skip_officers_on_approved_leave(service, notifications, leaves):
    leaves.add(10, 2, date(2026, 3, 1), date(2026, 3, 3), status=LeaveStatus.APPROVED)
    leaves.add(11, 3, date(2026, 3, 2), date(2026, 3, 2), status=LeaveStatus.PENDING)

    sent = service.send_shift_reminders(current_role=Role.ADMIN)

    assert sent == 2
    assert sorted(n.user_id for n in notifications.items) == [1, 3]
    first = notifications.items[0]
    assert first.notification_type == NotificationType.SHIFT_REMINDER
    assert '"Morning" starts in 3 minutes' in first.message
    assert first.metadata["shift_id"] == 1


def test_shift_reminders_are_sent_once_per_shift(service, notifications):
    service.send_shift_reminders(current_role=Role.ADMIN)

    assert service.send_shift_reminders(current_role=Role.ADMIN, at=NOW + timedelta(minutes=1)) == 0
    assert len(notifications.items) == 2


def test_shift_reminders_require_admin(service):
    with pytest.raises(AuthorizationError):
        service.send_shift_reminders(current_role=Role.STAFF)


def test_leave_decisions_notify_the_requesting_officer(service, notifications, leaves):
    feed = ChangeFeed()
    service.watch_leave_decisions(feed)
    leave_service = LeaveService(leaves, feed=feed)
    approved = leave_service.create_leave(user_id=7, start_date=date(2026, 3, 9), end_date=date(2026, 3, 10), reason="Trip")
    rejected = leave_service.create_leave(user_id=8, start_date=date(2026, 3, 9), end_date=date(2026, 3, 9), reason="Trip")
    assert notifications.items == []

    leave_service.approve_leave(current_role=Role.ADMIN, admin_user_id=1, request_id=approved)
    leave_service.reject_leave(
        current_role=Role.ADMIN, admin_user_id=1, request_id=rejected, reject_reason="Short staffed"
    )

    by_user = {n.user_id: n for n in notifications.items}
    assert by_user[7].notification_type == NotificationType.LEAVE_APPROVED
    assert "2026-03-09 to 2026-03-10" in by_user[7].message
    assert by_user[8].notification_type == NotificationType.LEAVE_REJECTED
    assert by_user[8].message.endswith("Reason: Short staffed")
    assert by_user[8].metadata["reject_reason"] == "Short staffed"


def test_pending_leave_produces_no_notification(service, notifications, leaves):
    leaves.add(5, 7, date(2026, 3, 9), date(2026, 3, 9))

    assert service.notify_leave_decision(5) is None
    assert notifications.items == []


def test_mark_read_and_unread_count(service, notifications):
    for key in ("a", "b", "c"):
        notifications.create(
            user_id=1, notification_type=NotificationType.LATE_WARNING, title="t", message="m", dedupe_key=key
        )
    assert service.unread_count(1) == 3

    service.mark_read(user_id=1, notification_id=2)
    assert service.unread_count(1) == 2
    with pytest.raises(NotFoundError):
        service.mark_read(user_id=1, notification_id=2)
    with pytest.raises(NotFoundError):
        service.mark_read(user_id=9, notification_id=1)

    assert service.mark_all_read(user_id=1) == 2
    assert service.unread_count(1) == 0
    assert [n.notification_id for n in service.list_for_user(1)] == [3, 2, 1]
    assert service.to_dict(service.list_for_user(1)[0])["read_at"] == NOW.isoformat()
