"""Per-day attendance derivation from raw punch events.

Records are a pure function of the events: nothing here is cached or persisted.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, time, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from ..common.datetime_utils import hours_between, local_date, to_local
from ..core.constants import LATE_CUTOFF
from ..core.enums import DisplayStatus, PunchType
from ..core.exceptions import DataIntegrityError
from .factory import DisplayStatusFactory
from .model import DayAttendanceRecord, PunchEvent


def _event_order(e: PunchEvent):
    return (to_local(e.timestamp), e.event_id)


class DayRecords:
    """Lazy, finite, restartable sequence of DayAttendanceRecord (newest date first).

    Each iteration recomputes from the captured events.
    """

    def __init__(self, aggregator: "AttendanceAggregator", events: Sequence[PunchEvent]):
        self._aggregator = aggregator
        self._events = tuple(events)

    def __iter__(self) -> Iterator[DayAttendanceRecord]:
        buckets: Dict[date, List[PunchEvent]] = defaultdict(list)
        for e in self._events:
            buckets[local_date(e.timestamp)].append(e)

        for work_date in sorted(buckets, reverse=True):
            yield self._aggregator.build_day(work_date, buckets[work_date])


class AttendanceAggregator:
    def __init__(self, *, late_cutoff: time = LATE_CUTOFF, factory: Optional[DisplayStatusFactory] = None):
        self._late_cutoff = late_cutoff
        self._factory = factory or DisplayStatusFactory()

    @property
    def late_cutoff(self) -> time:
        return self._late_cutoff

    def aggregate(self, events: Iterable[PunchEvent]) -> DayRecords:
        return DayRecords(self, list(events))

    def build_day(self, work_date: date, day_events: Sequence[PunchEvent]) -> DayAttendanceRecord:
        ordered = sorted(day_events, key=_event_order)
        punch_in = next((e for e in ordered if e.punch_type == PunchType.IN), None)
        punch_out = next((e for e in ordered if e.punch_type == PunchType.OUT), None)

        hours = None
        if punch_in and punch_out:
            hours = hours_between(punch_in.timestamp, punch_out.timestamp)
            if hours < 0:
                raise DataIntegrityError(
                    f"Punch-out before punch-in for user {punch_in.user_id} on {work_date.isoformat()} "
                    f"(events {punch_in.event_id}, {punch_out.event_id})"
                )

        strategy = self._factory.for_day(punch_in=punch_in, late_cutoff=self._late_cutoff)
        status = strategy.decide(punch_in=punch_in, punch_out=punch_out, late_cutoff=self._late_cutoff)

        return DayAttendanceRecord(
            work_date=work_date,
            display_status=status,
            punch_in=punch_in,
            punch_out=punch_out,
            hours_worked=hours,
        )


def fill_gaps(records: Iterable[DayAttendanceRecord], *, start: date, end: date) -> List[DayAttendanceRecord]:
    """Full coverage of [start, end], newest first; days without events become ABSENT."""

    by_date = {r.work_date: r for r in records}
    out: List[DayAttendanceRecord] = []
    day = end
    while day >= start:
        out.append(by_date.get(day) or DayAttendanceRecord(work_date=day, display_status=DisplayStatus.ABSENT))
        day -= timedelta(days=1)
    return out
