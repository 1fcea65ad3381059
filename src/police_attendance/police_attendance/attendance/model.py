from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import DisplayStatus, PunchType


@dataclass(frozen=True)
class GeoFix:
    """A location reading as reported by the device."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class PunchEvent:
    """Domain entity: one punch in or out. Immutable once persisted."""

    event_id: int
    user_id: int
    punch_type: PunchType
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photo_url: Optional[str] = None
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class NewPunchEvent:
    """Payload persisted by the capture flow (id assigned by the repository)."""

    user_id: int
    punch_type: PunchType
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    photo_url: Optional[str] = None


@dataclass(frozen=True)
class DayAttendanceRecord:
    """Derived read-model: one officer, one calendar day. Never persisted."""

    work_date: date
    display_status: DisplayStatus
    punch_in: Optional[PunchEvent] = None
    punch_out: Optional[PunchEvent] = None
    hours_worked: Optional[float] = None


@dataclass(frozen=True)
class AttendanceLogRow:
    """Admin log row: a punch event joined with the officer profile."""

    event: PunchEvent
    full_name: str
    badge_number: str
    department: Optional[str] = None
