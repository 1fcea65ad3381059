from __future__ import annotations

from datetime import date, datetime, time


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def parse_hhmm(value: str) -> time:
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local(value: datetime) -> datetime:
    """Naive local datetime for `value`.

    Aware values are converted to the host timezone; naive values are assumed local already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def local_date(value: datetime) -> date:
    return to_local(value).date()


def is_same_day(a: datetime, b: datetime) -> bool:
    return local_date(a) == local_date(b)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def hours_between(start: datetime, end: datetime) -> float:
    return (to_local(end) - to_local(start)).total_seconds() / 3600.0
