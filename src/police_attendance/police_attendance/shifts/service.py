from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import PunchType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Shift, ShiftCompliance
from .repository import ShiftRepository
from .validator import ShiftValidator

logger = logging.getLogger(__name__)


class ShiftService:
    """Use case: schedule shifts and check punches against them."""

    def __init__(
        self,
        shifts: ShiftRepository,
        *,
        validator: Optional[ShiftValidator] = None,
        audit: Optional[AuditLogRepository] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._shifts = shifts
        self._validator = validator or ShiftValidator()
        self._audit = audit
        self._clock = clock

    def create_shift(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        station_id: str,
        shift_name: str,
        shift_start: datetime,
        shift_end: datetime,
        assigned_users: Sequence[int] = (),
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        station_id = require_non_empty(station_id, "Station")
        shift_name = require_non_empty(shift_name, "Shift name")
        if shift_end <= shift_start:
            raise ValidationError("Shift end must be after shift start")

        users = sorted({int(u) for u in assigned_users})
        shift_id = self._shifts.create(
            station_id=station_id,
            shift_name=shift_name,
            shift_start=shift_start,
            shift_end=shift_end,
            assigned_users=users,
            created_by=int(admin_user_id),
        )
        logger.info("shift %s (%s) created with %d officers", shift_id, shift_name, len(users))
        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="shift.create",
                details={"shift_id": shift_id, "station_id": station_id, "assigned_users": users},
            )
        return shift_id

    def delete_shift(self, *, current_role: Role, admin_user_id: int, shift_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        if not self._shifts.delete(int(shift_id)):
            raise NotFoundError("Shift not found")
        if self._audit:
            self._audit.record(user_id=int(admin_user_id), action="shift.delete", details={"shift_id": int(shift_id)})

    def list_shifts(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[Shift]:
        return self._shifts.list_between(start=start, end=end, user_id=user_id)

    def current_shift(self, user_id: int, at: Optional[datetime] = None) -> Optional[Shift]:
        moment = at or self._clock()
        active = [s for s in self._shifts.list_between(start=moment, end=moment, user_id=int(user_id)) if s.covers(moment)]
        # Latest-starting shift wins when shifts overlap.
        return max(active, key=lambda s: s.shift_start) if active else None

    def upcoming_shift(self, user_id: int, at: Optional[datetime] = None) -> Optional[Shift]:
        moment = at or self._clock()
        future = [s for s in self._shifts.list_between(start=moment, user_id=int(user_id)) if s.shift_start > moment]
        return min(future, key=lambda s: s.shift_start) if future else None

    def check_punch(
        self,
        *,
        user_id: int,
        punch_type: PunchType,
        punch_time: datetime,
        punch_in_time: Optional[datetime] = None,
    ) -> Optional[ShiftCompliance]:
        """Compliance of a punch, or None when the officer has no shift at that time."""

        if punch_type == PunchType.IN:
            shift = self.current_shift(user_id, at=punch_time)
            if shift is None:
                # Early arrivals match the shift that starts next today.
                shift = self.upcoming_shift(user_id, at=punch_time)
                if shift is None or shift.shift_start.date() != punch_time.date():
                    return None
            return self._validator.validate_punch_in(shift, punch_time)

        if punch_in_time is None:
            return None
        shift = self.current_shift(user_id, at=punch_in_time) or self.current_shift(user_id, at=punch_time)
        if shift is None:
            return None
        return self._validator.validate_punch_out(shift, punch_time, punch_in_time)

    @staticmethod
    def to_dict(shift: Shift) -> dict:
        return {
            "shift_id": shift.shift_id,
            "station_id": shift.station_id,
            "shift_name": shift.shift_name,
            "shift_start": shift.shift_start.isoformat(),
            "shift_end": shift.shift_end.isoformat(),
            "assigned_users": list(shift.assigned_users),
            "duration_hours": int((shift.shift_end - shift.shift_start) // timedelta(hours=1)),
        }

    @staticmethod
    def compliance_to_dict(result: Optional[ShiftCompliance]) -> Optional[dict]:
        if result is None:
            return None
        return {
            "is_valid": result.is_valid,
            "status": result.status.value,
            "message": result.message,
            "minutes_late": result.minutes_late,
            "minutes_early": result.minutes_early,
            "overtime_minutes": result.overtime_minutes,
            "grace_period_used": result.grace_period_used,
            "shift_id": result.shift.shift_id if result.shift else None,
        }
