from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import ComplianceStatus


@dataclass(frozen=True)
class Shift:
    """Domain entity: a duty shift at one station with its assigned officers."""

    shift_id: int
    station_id: str
    shift_name: str
    shift_start: datetime
    shift_end: datetime
    assigned_users: Tuple[int, ...] = field(default_factory=tuple)
    created_by: Optional[int] = None

    def covers(self, moment: datetime) -> bool:
        return self.shift_start <= moment <= self.shift_end


@dataclass(frozen=True)
class ShiftCompliance:
    """Informational result shown with a punch; never blocks it."""

    is_valid: bool
    shift: Optional[Shift]
    status: ComplianceStatus
    message: str
    minutes_late: int = 0
    minutes_early: int = 0
    overtime_minutes: int = 0
    grace_period_used: bool = False
