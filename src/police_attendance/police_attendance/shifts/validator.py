"""Punch compliance against an officer's scheduled shift."""

from __future__ import annotations

from datetime import datetime, timedelta

from ..core.constants import EARLY_DEPARTURE_THRESHOLD_MINUTES, SHIFT_GRACE_PERIOD_MINUTES
from ..core.enums import ComplianceStatus
from .model import Shift, ShiftCompliance


def _whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


class ShiftValidator:
    def __init__(
        self,
        *,
        grace_period_minutes: int = SHIFT_GRACE_PERIOD_MINUTES,
        early_departure_minutes: int = EARLY_DEPARTURE_THRESHOLD_MINUTES,
    ):
        self.grace_period = timedelta(minutes=int(grace_period_minutes))
        self.early_departure_minutes = int(early_departure_minutes)

    def grace_period_end(self, shift: Shift) -> datetime:
        return shift.shift_start + self.grace_period

    def validate_punch_in(self, shift: Shift, punch_time: datetime) -> ShiftCompliance:
        if punch_time <= shift.shift_start:
            early = _whole_minutes(shift.shift_start - punch_time)
            message = f"Punched in {early} minutes early" if early else "Punched in on time"
            return ShiftCompliance(
                is_valid=True,
                shift=shift,
                status=ComplianceStatus.ON_TIME,
                message=message,
                minutes_early=early,
            )

        minutes_late = _whole_minutes(punch_time - shift.shift_start)
        grace_end = self.grace_period_end(shift)
        if punch_time <= grace_end:
            remaining = _whole_minutes(grace_end - punch_time)
            return ShiftCompliance(
                is_valid=True,
                shift=shift,
                status=ComplianceStatus.ON_TIME,
                message=f"Within grace period. {remaining} minutes remaining",
                minutes_late=minutes_late,
                grace_period_used=True,
            )

        if punch_time > shift.shift_end:
            return ShiftCompliance(
                is_valid=False,
                shift=shift,
                status=ComplianceStatus.ABSENT,
                message="Shift has ended",
                minutes_late=minutes_late,
            )

        return ShiftCompliance(
            is_valid=True,
            shift=shift,
            status=ComplianceStatus.LATE,
            message=f"Punched in {minutes_late} minutes late",
            minutes_late=minutes_late,
        )

    def validate_punch_out(self, shift: Shift, punch_time: datetime, punch_in_time: datetime) -> ShiftCompliance:
        if punch_time < punch_in_time:
            return ShiftCompliance(
                is_valid=False,
                shift=shift,
                status=ComplianceStatus.ON_TIME,
                message="Cannot punch out before punch in time",
            )

        if punch_time < shift.shift_end:
            early = _whole_minutes(shift.shift_end - punch_time)
            if early > self.early_departure_minutes:
                return ShiftCompliance(
                    is_valid=True,
                    shift=shift,
                    status=ComplianceStatus.EARLY_DEPARTURE,
                    message=f"Early departure: {early} minutes before shift end",
                    minutes_early=early,
                )
            return ShiftCompliance(
                is_valid=True,
                shift=shift,
                status=ComplianceStatus.ON_TIME,
                message="Punched out on time",
            )

        overtime = _whole_minutes(punch_time - shift.shift_end)
        return ShiftCompliance(
            is_valid=True,
            shift=shift,
            status=ComplianceStatus.OVERTIME,
            message=f"Overtime: {overtime} minutes",
            overtime_minutes=overtime,
        )
