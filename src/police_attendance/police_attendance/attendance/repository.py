from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PunchType
from .model import AttendanceLogRow, NewPunchEvent, PunchEvent


class PunchEventRepository(Protocol):
    """Repository interface for punch events.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def create(self, event: NewPunchEvent) -> PunchEvent:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Sequence[PunchEvent]:
        """Events newest first, optionally bounded to [start, end)."""

        raise NotImplementedError

    def latest_for_user_since(self, user_id: int, since: datetime) -> Optional[PunchEvent]:
        raise NotImplementedError

    def list_log_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        punch_type: Optional[PunchType] = None,
        limit: int = 500,
    ) -> Sequence[AttendanceLogRow]:
        raise NotImplementedError
