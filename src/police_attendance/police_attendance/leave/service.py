from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence

from ..audit.repository import AuditLogRepository
from ..common.events import ChangeFeed
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_ADMIN_LIMIT
from ..core.enums import LeaveStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .calendar import CalendarDay, build_month_grid, grid_bounds
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

LEAVE_REQUESTS_TABLE = "leave_requests"


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        *,
        audit: Optional[AuditLogRepository] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        self._leaves = leaves
        self._audit = audit
        self._feed = feed

    def _publish(self, event: str, request_id: int, user_id: int, status: LeaveStatus) -> None:
        if self._feed is not None:
            self._feed.publish(
                LEAVE_REQUESTS_TABLE,
                event,
                {"request_id": int(request_id), "user_id": int(user_id), "status": status.value},
            )

    def create_leave(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: str = "",
    ) -> int:
        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        reason = require_non_empty(reason, "Reason")
        request_id = self._leaves.create(
            user_id=int(user_id),
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            attachment_url=(attachment_url or "").strip() or None,
        )
        logger.info("leave request %s created by user %s (%s..%s)", request_id, user_id, start_date, end_date)
        self._publish("INSERT", request_id, user_id, LeaveStatus.PENDING)
        return request_id

    def _decide(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        request_id: int,
        status: LeaveStatus,
        reject_reason: Optional[str] = None,
    ) -> LeaveRequest:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        req = self._leaves.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if req.status != LeaveStatus.PENDING:
            raise ValidationError("Leave request has already been decided")

        ok = self._leaves.decide(
            request_id=int(request_id),
            status=status,
            approver_id=int(admin_user_id),
            reject_reason=reject_reason,
        )
        if not ok:
            raise ValidationError("Leave request has already been decided")

        if self._audit:
            details = {"request_id": int(request_id), "officer_id": req.user_id}
            if reject_reason:
                details["reject_reason"] = reject_reason
            self._audit.record(user_id=int(admin_user_id), action=f"leave.{status.value.lower()}", details=details)

        self._publish("UPDATE", request_id, req.user_id, status)
        return req

    def approve_leave(self, *, current_role: Role, admin_user_id: int, request_id: int) -> None:
        self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            request_id=request_id,
            status=LeaveStatus.APPROVED,
        )

    def reject_leave(self, *, current_role: Role, admin_user_id: int, request_id: int, reject_reason: str) -> None:
        reject_reason = require_non_empty(reject_reason, "Reject reason")
        self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            request_id=request_id,
            status=LeaveStatus.REJECTED,
            reject_reason=reject_reason,
        )

    def list_my_requests(self, *, user_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list(user_id=int(user_id), limit=200)

    def list_all(self, *, current_role: Role, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequest]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._leaves.list(status=status, limit=DEFAULT_ADMIN_LIMIT)

    def list_pending(self, *, current_role: Role) -> Sequence[LeaveRequest]:
        return self.list_all(current_role=current_role, status=LeaveStatus.PENDING)

    def month_calendar(self, *, year: int, month: int) -> List[CalendarDay]:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")
        start, end = grid_bounds(int(year), int(month))
        leaves = self._leaves.list_overlapping(start=start, end=end, status=LeaveStatus.APPROVED)
        return build_month_grid(int(year), int(month), leaves)

    @staticmethod
    def to_dict(lr: LeaveRequest) -> dict:
        return {
            "request_id": lr.request_id,
            "user_id": lr.user_id,
            "full_name": lr.full_name,
            "badge_number": lr.badge_number,
            "department": lr.department,
            "start_date": lr.start_date.isoformat(),
            "end_date": lr.end_date.isoformat(),
            "days": lr.days,
            "reason": lr.reason,
            "attachment_url": lr.attachment_url,
            "status": lr.status.value,
            "approver_name": lr.approver_name,
            "reject_reason": lr.reject_reason,
            "created_at": lr.created_at.isoformat() if lr.created_at else None,
        }
