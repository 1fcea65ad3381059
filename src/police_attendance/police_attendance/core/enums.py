from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Officer role used for authorization."""

    ADMIN = "admin"
    STAFF = "staff"


class PunchType(str, Enum):
    """Direction of a punch event as stored in the database."""

    IN = "IN"
    OUT = "OUT"

    @property
    def opposite(self) -> "PunchType":
        return PunchType.OUT if self is PunchType.IN else PunchType.IN


class DisplayStatus(str, Enum):
    """Derived per-day attendance status shown in history and logs."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"


class LeaveStatus(str, Enum):
    """Approval workflow state of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CaptureState(str, Enum):
    IDLE = "IDLE"
    LOCATING = "LOCATING"
    CAMERA_READY = "CAMERA_READY"
    CONFIRMING = "CONFIRMING"
    SUBMITTING = "SUBMITTING"
    DONE = "DONE"
    FAILED = "FAILED"


class ComplianceStatus(str, Enum):
    """Shift compliance of a punch (informational only)."""

    ON_TIME = "on_time"
    LATE = "late"
    EARLY_DEPARTURE = "early_departure"
    OVERTIME = "overtime"
    ABSENT = "absent"


class NotificationType(str, Enum):
    SHIFT_REMINDER = "shift_reminder"
    LEAVE_APPROVED = "leave_approved"
    LEAVE_REJECTED = "leave_rejected"
    LATE_WARNING = "late_warning"
    ABSENT_MARKED = "absent_marked"
