from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from ..common.datetime_utils import start_of_day
from ..common.events import ChangeFeed
from ..common.live_query import LiveQuery
from ..core.constants import DEFAULT_ADMIN_LIMIT
from ..core.enums import DisplayStatus, PunchType
from ..core.exceptions import ValidationError
from .aggregator import AttendanceAggregator, fill_gaps
from .model import AttendanceLogRow, DayAttendanceRecord, NewPunchEvent, PunchEvent
from .repository import PunchEventRepository

logger = logging.getLogger(__name__)

PUNCH_EVENTS_TABLE = "punch_events"


@dataclass(frozen=True)
class AttendanceSummary:
    present: int
    late: int
    absent: int
    total_hours: float


class AttendanceService:
    def __init__(
        self,
        events: PunchEventRepository,
        *,
        aggregator: Optional[AttendanceAggregator] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        self._events = events
        self._aggregator = aggregator or AttendanceAggregator()
        self._feed = feed

    def record_punch(self, event: NewPunchEvent) -> PunchEvent:
        """Persist a punch event and announce it on the change feed."""

        saved = self._events.create(event)
        logger.info("punch %s recorded for user %s (event %s)", saved.punch_type.value, saved.user_id, saved.event_id)
        if self._feed is not None:
            self._feed.publish(
                PUNCH_EVENTS_TABLE,
                "INSERT",
                {"event_id": saved.event_id, "user_id": saved.user_id, "punch_type": saved.punch_type.value},
            )
        return saved

    def history(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[DayAttendanceRecord]:
        """Per-day records, newest first. Raises DataIntegrityError on corrupted days."""

        events = self._events.list_for_user(
            int(user_id),
            start=start_of_day(start) if start else None,
            end=start_of_day(end + timedelta(days=1)) if end else None,
        )
        return list(self._aggregator.aggregate(events))

    def history_with_gaps(self, user_id: int, *, start: date, end: date) -> List[DayAttendanceRecord]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return fill_gaps(self.history(user_id, start=start, end=end), start=start, end=end)

    def watch_history(self, feed: ChangeFeed, user_id: int) -> LiveQuery[List[DayAttendanceRecord]]:
        """History that refetches whenever one of the officer's punch events changes."""

        return LiveQuery(
            lambda: self.history(user_id),
            feed,
            table=PUNCH_EVENTS_TABLE,
            column_filter={"user_id": int(user_id)},
        ).start()

    def summarize(self, records: Sequence[DayAttendanceRecord]) -> AttendanceSummary:
        counts = {s: 0 for s in DisplayStatus}
        total = 0.0
        for r in records:
            counts[r.display_status] += 1
            total += r.hours_worked or 0.0
        return AttendanceSummary(
            present=counts[DisplayStatus.PRESENT],
            late=counts[DisplayStatus.LATE],
            absent=counts[DisplayStatus.ABSENT],
            total_hours=round(total, 2),
        )

    def admin_logs(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        punch_type: Optional[PunchType] = None,
        limit: int = DEFAULT_ADMIN_LIMIT,
    ) -> Sequence[AttendanceLogRow]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._events.list_log_rows(
            start=start_of_day(start),
            end=start_of_day(end + timedelta(days=1)),
            user_id=user_id,
            punch_type=punch_type,
            limit=limit,
        )

    @staticmethod
    def to_ui(r: DayAttendanceRecord) -> dict:
        css = {
            DisplayStatus.PRESENT: "bg-success",
            DisplayStatus.LATE: "bg-warning text-dark",
            DisplayStatus.ABSENT: "bg-secondary",
        }.get(r.display_status, "bg-secondary")

        return {
            "date": r.work_date.strftime("%Y-%m-%d"),
            "punch_in": r.punch_in.timestamp.strftime("%H:%M:%S") if r.punch_in else "-",
            "punch_out": r.punch_out.timestamp.strftime("%H:%M:%S") if r.punch_out else "-",
            "hours_worked": round(r.hours_worked, 2) if r.hours_worked is not None else None,
            "status": r.display_status.value,
            "css_class": css,
            "photo_url": r.punch_in.photo_url if r.punch_in else None,
        }

    @staticmethod
    def log_row_to_dict(row: AttendanceLogRow) -> dict:
        e = row.event
        return {
            "event_id": e.event_id,
            "user_id": e.user_id,
            "full_name": row.full_name,
            "badge_number": row.badge_number,
            "department": row.department or "-",
            "punch_type": e.punch_type.value,
            "timestamp": e.timestamp.isoformat(),
            "latitude": e.latitude,
            "longitude": e.longitude,
            "photo_url": e.photo_url,
        }
