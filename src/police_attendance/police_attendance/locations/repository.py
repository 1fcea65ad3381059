from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import UserLocation


class LocationRepository(Protocol):
    def add(
        self,
        *,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        recorded_at: datetime,
    ) -> int:
        raise NotImplementedError

    def latest(self, user_id: int) -> Optional[UserLocation]:
        raise NotImplementedError

    def history(self, user_id: int, *, limit: int = 50) -> Sequence[UserLocation]:
        """Newest first."""
        raise NotImplementedError
