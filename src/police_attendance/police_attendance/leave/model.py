from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    user_id: int
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    created_at: datetime
    attachment_url: Optional[str] = None
    approver_id: Optional[int] = None
    reject_reason: Optional[str] = None
    updated_at: Optional[datetime] = None
    # Joined from the officer profile for admin views.
    full_name: Optional[str] = None
    badge_number: Optional[str] = None
    department: Optional[str] = None
    approver_name: Optional[str] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
