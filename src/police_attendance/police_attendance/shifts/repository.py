from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Shift


class ShiftRepository(Protocol):
    def create(
        self,
        *,
        station_id: str,
        shift_name: str,
        shift_start: datetime,
        shift_end: datetime,
        assigned_users: Sequence[int],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def delete(self, shift_id: int) -> bool:
        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def list_between(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[Shift]:
        """Shifts ordered by start, optionally restricted to one officer's assignments."""

        raise NotImplementedError
