from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approver_id: int,
        reject_reason: Optional[str] = None,
    ) -> bool:
        """Set the decision; only PENDING requests are updated."""

        raise NotImplementedError

    def list(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_overlapping(self, *, start: date, end: date, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequest]:
        raise NotImplementedError
