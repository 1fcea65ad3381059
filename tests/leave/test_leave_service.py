from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.police_attendance.police_attendance.common.events import ChangeFeed
from src.police_attendance.police_attendance.core.enums import LeaveStatus, Role
from src.police_attendance.police_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.police_attendance.police_attendance.leave.model import LeaveRequest
from src.police_attendance.police_attendance.leave.service import LeaveService


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, LeaveRequest] = {}

    def create(self, *, user_id, start_date, end_date, reason, attachment_url):
        rid = self._next_id
        self._next_id += 1
        self.items[rid] = LeaveRequest(
            request_id=rid,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=datetime(2026, 3, 1, 9, 0, 0),
            attachment_url=attachment_url,
            full_name=f"Officer {user_id}",
            badge_number=f"PC{user_id}",
        )
        return rid

    def get(self, *, request_id):
        return self.items.get(int(request_id))

    def decide(self, *, request_id, status, approver_id, reject_reason=None):
        req = self.items.get(int(request_id))
        if not req or req.status != LeaveStatus.PENDING:
            return False
        self.items[int(request_id)] = replace(req, status=status, approver_id=approver_id, reject_reason=reject_reason)
        return True

    def list(self, *, user_id=None, status=None, limit=200):
        out = [
            r
            for r in self.items.values()
            if (user_id is None or r.user_id == user_id) and (status is None or r.status == status)
        ]
        return sorted(out, key=lambda r: r.created_at, reverse=True)[:limit]

    def list_overlapping(self, *, start, end, status=None):
        return [
            r
            for r in self.items.values()
            if r.start_date <= end and r.end_date >= start and (status is None or r.status == status)
        ]


class FakeAudit:
    def __init__(self):
        self.entries = []

    def record(self, *, user_id, action, details=None):
        self.entries.append((user_id, action, dict(details or {})))
        return len(self.entries)


@pytest.fixture
def repo():
    return FakeLeaveRepo()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def svc(repo, audit, feed):
    return LeaveService(repo, audit=audit, feed=feed)


def test_create_leave_validates_range_and_reason(svc):
    with pytest.raises(ValidationError):
        svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 4), reason="Family")
    with pytest.raises(ValidationError):
        svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 6), reason="   ")


def test_create_leave_is_pending_and_published(svc, repo, feed):
    seen = []
    feed.subscribe("leave_requests", seen.append, column_filter={"user_id": 1})

    rid = svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 7), reason=" Family ")

    req = repo.get(request_id=rid)
    assert req.status == LeaveStatus.PENDING
    assert req.reason == "Family"
    assert req.attachment_url is None
    assert req.days == 3
    assert seen[0].event == "INSERT"


def test_only_admin_can_decide(svc):
    rid = svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 5), reason="Sick")
    with pytest.raises(AuthorizationError):
        svc.approve_leave(current_role=Role.STAFF, admin_user_id=1, request_id=rid)


def test_approve_records_audit_and_publishes_update(svc, repo, audit, feed):
    seen = []
    feed.subscribe("leave_requests", seen.append)
    rid = svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 5), reason="Sick")

    svc.approve_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=rid)

    assert repo.get(request_id=rid).status == LeaveStatus.APPROVED
    assert audit.entries == [(99, "leave.approved", {"request_id": rid, "officer_id": 1})]
    assert [c.event for c in seen] == ["INSERT", "UPDATE"]
    assert seen[-1].row["status"] == "APPROVED"


def test_reject_requires_reason(svc):
    rid = svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 5), reason="Sick")
    with pytest.raises(ValidationError):
        svc.reject_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=rid, reject_reason="")

    svc.reject_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=rid, reject_reason="Short staffed")
    assert svc.list_my_requests(user_id=1)[0].reject_reason == "Short staffed"


def test_decided_request_cannot_be_decided_again(svc):
    rid = svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 5), reason="Sick")
    svc.approve_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=rid)

    with pytest.raises(ValidationError):
        svc.reject_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=rid, reject_reason="No")


def test_missing_request(svc):
    with pytest.raises(NotFoundError):
        svc.approve_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=404)


def test_list_pending_is_admin_only(svc):
    svc.create_leave(user_id=1, start_date=date(2026, 3, 5), end_date=date(2026, 3, 5), reason="Sick")
    assert len(svc.list_pending(current_role=Role.ADMIN)) == 1
    with pytest.raises(AuthorizationError):
        svc.list_pending(current_role=Role.STAFF)


def test_month_calendar_shows_only_approved_leaves(svc):
    approved = svc.create_leave(user_id=1, start_date=date(2026, 3, 9), end_date=date(2026, 3, 11), reason="Trip")
    svc.create_leave(user_id=2, start_date=date(2026, 3, 10), end_date=date(2026, 3, 10), reason="Pending")
    svc.approve_leave(current_role=Role.ADMIN, admin_user_id=99, request_id=approved)

    grid = svc.month_calendar(year=2026, month=3)
    by_day = {cell.day: cell for cell in grid}

    assert [lv.request_id for lv in by_day[date(2026, 3, 10)].leaves] == [approved]
    first, middle, last = (by_day[date(2026, 3, d)].leaves[0] for d in (9, 10, 11))
    assert first.is_start and not first.is_end
    assert middle.is_continuing
    assert last.is_end and not last.is_start


def test_month_calendar_rejects_bad_month(svc):
    with pytest.raises(ValidationError):
        svc.month_calendar(year=2026, month=13)
