from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.model import DayAttendanceRecord
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..leave.repository import LeaveRepository
from ..users.repository import OfficerRepository
from .csv_export import write_csv
from .pdf_export import build_attendance_pdf

logger = logging.getLogger(__name__)

ATTENDANCE_CSV_FIELDS = (
    "Officer Name",
    "Badge Number",
    "Department",
    "Punch Type",
    "Date",
    "Time",
    "Latitude",
    "Longitude",
)

LEAVE_CSV_FIELDS = (
    "Officer Name",
    "Badge Number",
    "Department",
    "Start Date",
    "End Date",
    "Days",
    "Reason",
    "Status",
    "Reject Reason",
    "Submitted Date",
)


@dataclass(frozen=True)
class ExportFile:
    filename: str
    mimetype: str
    content: bytes


def _location_label(record: DayAttendanceRecord) -> str:
    e = record.punch_in
    if e is None or e.latitude is None or e.longitude is None:
        return "-"
    return f"{e.latitude:.5f}, {e.longitude:.5f}"


class ExportService:
    """Use case: CSV and PDF exports for admins and officers."""

    def __init__(
        self,
        attendance: AttendanceService,
        leaves: LeaveRepository,
        officers: OfficerRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._leaves = leaves
        self._officers = officers
        self._clock = clock

    @staticmethod
    def _check_range(start: date, end: date) -> None:
        if end < start:
            raise ValidationError("End date must be on or after start date")

    def attendance_csv(self, *, current_role: Role, start: date, end: date) -> ExportFile:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        self._check_range(start, end)

        rows = []
        for row in self._attendance.admin_logs(start=start, end=end):
            e = row.event
            rows.append(
                {
                    "Officer Name": row.full_name,
                    "Badge Number": row.badge_number,
                    "Department": row.department,
                    "Punch Type": e.punch_type.value,
                    "Date": e.timestamp.strftime("%Y-%m-%d"),
                    "Time": e.timestamp.strftime("%H:%M:%S"),
                    "Latitude": e.latitude,
                    "Longitude": e.longitude,
                }
            )
        logger.info("attendance export %s..%s: %d rows", start, end, len(rows))
        return ExportFile(
            filename=f"attendance_{start:%Y-%m-%d}_to_{end:%Y-%m-%d}.csv",
            mimetype="text/csv",
            content=write_csv(ATTENDANCE_CSV_FIELDS, rows),
        )

    def leave_csv(self, *, current_role: Role, start: date, end: date) -> ExportFile:
        """Leave requests whose date range overlaps [start, end]."""

        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        self._check_range(start, end)

        rows = [
            {
                "Officer Name": lr.full_name,
                "Badge Number": lr.badge_number,
                "Department": lr.department,
                "Start Date": lr.start_date.isoformat(),
                "End Date": lr.end_date.isoformat(),
                "Days": lr.days,
                "Reason": lr.reason,
                "Status": lr.status.value,
                "Reject Reason": lr.reject_reason,
                "Submitted Date": lr.created_at.strftime("%Y-%m-%d %H:%M:%S") if lr.created_at else None,
            }
            for lr in self._leaves.list_overlapping(start=start, end=end)
        ]
        return ExportFile(
            filename=f"leave_requests_{start:%Y-%m-%d}_to_{end:%Y-%m-%d}.csv",
            mimetype="text/csv",
            content=write_csv(LEAVE_CSV_FIELDS, rows),
        )

    def attendance_pdf(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        user_id: int,
        start: date,
        end: date,
    ) -> ExportFile:
        """Per-day report for one officer; officers may only export their own."""

        if current_role != Role.ADMIN and int(user_id) != int(current_user_id):
            raise AuthorizationError("You do not have permission")
        self._check_range(start, end)

        officer = self._officers.get_profile(int(user_id))
        if officer is None:
            raise NotFoundError("Officer not found")

        records = self._attendance.history_with_gaps(officer.user_id, start=start, end=end)
        rows = [
            (
                r.work_date.strftime("%Y-%m-%d"),
                r.punch_in.timestamp.strftime("%H:%M") if r.punch_in else "-",
                r.punch_out.timestamp.strftime("%H:%M") if r.punch_out else "-",
                f"{r.hours_worked:.2f}" if r.hours_worked is not None else "-",
                r.display_status.value,
                _location_label(r),
            )
            for r in records
        ]
        generated_at = self._clock()
        content = build_attendance_pdf(
            full_name=officer.full_name,
            badge_number=officer.badge_number,
            rank=officer.rank,
            department=officer.department,
            rows=rows,
            title=f"Attendance Report {start:%Y-%m-%d} to {end:%Y-%m-%d}",
            generated_at=generated_at,
        )
        return ExportFile(
            filename=f"attendance_{officer.badge_number}_{generated_at:%Y-%m-%d}.pdf",
            mimetype="application/pdf",
            content=content,
        )
