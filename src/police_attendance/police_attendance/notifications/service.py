from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.events import Change, ChangeFeed, Unsubscribe
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT, SHIFT_REMINDER_LEAD_MINUTES
from ..core.enums import LeaveStatus, NotificationType, Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..leave.repository import LeaveRepository
from ..leave.service import LEAVE_REQUESTS_TABLE
from ..shifts.repository import ShiftRepository
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """In-app notices: leave decisions and upcoming-shift reminders."""

    def __init__(
        self,
        notifications: NotificationRepository,
        *,
        leaves: LeaveRepository,
        shifts: ShiftRepository,
        reminder_lead: timedelta = timedelta(minutes=SHIFT_REMINDER_LEAD_MINUTES),
        clock: Callable[[], datetime] = now_local,
    ):
        self._notifications = notifications
        self._leaves = leaves
        self._shifts = shifts
        self._reminder_lead = reminder_lead
        self._clock = clock

    def watch_leave_decisions(self, feed: ChangeFeed) -> Unsubscribe:
        return feed.subscribe(LEAVE_REQUESTS_TABLE, self._on_leave_change)

    def _on_leave_change(self, change: Change) -> None:
        if change.event != "UPDATE":
            return
        status = change.row.get("status")
        if status not in (LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value):
            return
        self.notify_leave_decision(int(change.row["request_id"]))

    def notify_leave_decision(self, request_id: int) -> Optional[int]:
        req = self._leaves.get(request_id=int(request_id))
        if req is None:
            raise NotFoundError("Leave request not found")

        period = f"{req.start_date.isoformat()} to {req.end_date.isoformat()}"
        metadata = {
            "request_id": req.request_id,
            "start_date": req.start_date.isoformat(),
            "end_date": req.end_date.isoformat(),
        }
        if req.status == LeaveStatus.APPROVED:
            kind = NotificationType.LEAVE_APPROVED
            title = "Leave Approved"
            message = f"Your leave request for {period} has been approved."
        elif req.status == LeaveStatus.REJECTED:
            kind = NotificationType.LEAVE_REJECTED
            title = "Leave Rejected"
            message = f"Your leave request for {period} has been rejected."
            if req.reject_reason:
                message += f" Reason: {req.reject_reason}"
                metadata["reject_reason"] = req.reject_reason
        else:
            return None

        return self._notifications.create(
            user_id=req.user_id,
            notification_type=kind,
            title=title,
            message=message,
            metadata=metadata,
            dedupe_key=f"leave:{req.request_id}",
        )

    def send_shift_reminders(self, *, current_role: Role, at: Optional[datetime] = None) -> int:
        """Remind officers whose shift starts within the lead time. Safe to call repeatedly."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        now = at or self._clock()
        horizon = now + self._reminder_lead
        upcoming = [s for s in self._shifts.list_between(start=now, end=horizon) if now <= s.shift_start <= horizon]

        sent = 0
        for shift in upcoming:
            day = shift.shift_start.date()
            on_leave = {
                lr.user_id for lr in self._leaves.list_overlapping(start=day, end=day, status=LeaveStatus.APPROVED)
            }
            minutes = max(0, int((shift.shift_start - now) // timedelta(minutes=1)))
            for user_id in shift.assigned_users:
                if user_id in on_leave:
                    continue
                created = self._notifications.create(
                    user_id=user_id,
                    notification_type=NotificationType.SHIFT_REMINDER,
                    title="Shift Starting Soon",
                    message=f'Your shift "{shift.shift_name}" starts in {minutes} minutes. Please prepare to punch in.',
                    metadata={"shift_id": shift.shift_id, "shift_start": shift.shift_start.isoformat()},
                    dedupe_key=f"shift:{shift.shift_id}",
                )
                if created is not None:
                    sent += 1
        logger.info("sent %d shift reminders for %d upcoming shifts", sent, len(upcoming))
        return sent

    def list_for_user(self, user_id: int, *, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> Sequence[Notification]:
        return self._notifications.list_for_user(int(user_id), limit=limit)

    def unread_count(self, user_id: int) -> int:
        return self._notifications.unread_count(int(user_id))

    def mark_read(self, *, user_id: int, notification_id: int) -> None:
        if not self._notifications.mark_read(int(notification_id), user_id=int(user_id), at=self._clock()):
            raise NotFoundError("Notification not found or already read")

    def mark_all_read(self, *, user_id: int) -> int:
        return self._notifications.mark_all_read(int(user_id), at=self._clock())

    @staticmethod
    def to_dict(n: Notification) -> dict:
        return {
            "notification_id": n.notification_id,
            "notification_type": n.notification_type.value,
            "title": n.title,
            "message": n.message,
            "is_read": n.is_read,
            "read_at": n.read_at.isoformat() if n.read_at else None,
            "metadata": dict(n.metadata),
            "created_at": n.created_at.isoformat(),
        }
