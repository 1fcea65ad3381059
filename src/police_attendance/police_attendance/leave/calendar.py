"""Month grid for the leave calendar: 6 weeks x 7 days, weeks starting on Sunday."""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List

from ..core.constants import CALENDAR_GRID_CELLS
from ..core.enums import LeaveStatus
from .model import LeaveRequest


@dataclass(frozen=True)
class CalendarLeave:
    request_id: int
    user_name: str
    badge_number: str
    is_start: bool
    is_end: bool
    is_continuing: bool


@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_current_month: bool
    leaves: List[CalendarLeave] = field(default_factory=list)


def _leading_days(first: date) -> int:
    # date.weekday(): Monday=0 .. Sunday=6; the grid starts on Sunday.
    return (first.weekday() + 1) % 7


def overlapping_leaves(leaves: Iterable[LeaveRequest], day: date) -> List[LeaveRequest]:
    """Approved leaves covering `day`."""

    return [lr for lr in leaves if lr.status == LeaveStatus.APPROVED and lr.covers(day)]


def build_month_grid(year: int, month: int, leaves: Iterable[LeaveRequest]) -> List[CalendarDay]:
    """42 cells; only days of the requested month carry leave entries."""

    leaves = list(leaves)
    first = date(year, month, 1)
    days_in_month = monthrange(year, month)[1]

    grid: List[CalendarDay] = []
    lead = _leading_days(first)
    for i in range(lead, 0, -1):
        grid.append(CalendarDay(day=first - timedelta(days=i), is_current_month=False))

    for n in range(days_in_month):
        day = first + timedelta(days=n)
        grid.append(
            CalendarDay(
                day=day,
                is_current_month=True,
                leaves=[
                    CalendarLeave(
                        request_id=lr.request_id,
                        user_name=lr.full_name or "Unknown",
                        badge_number=lr.badge_number or "--",
                        is_start=lr.start_date == day,
                        is_end=lr.end_date == day,
                        is_continuing=lr.start_date != day and lr.end_date != day,
                    )
                    for lr in overlapping_leaves(leaves, day)
                ],
            )
        )

    next_day = first + timedelta(days=days_in_month)
    while len(grid) < CALENDAR_GRID_CELLS:
        grid.append(CalendarDay(day=next_day, is_current_month=False))
        next_day += timedelta(days=1)

    return grid


def grid_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    start = first - timedelta(days=_leading_days(first))
    return start, start + timedelta(days=CALENDAR_GRID_CELLS - 1)
