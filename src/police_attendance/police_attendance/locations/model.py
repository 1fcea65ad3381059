from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UserLocation:
    location_id: int
    user_id: int
    latitude: float
    longitude: float
    recorded_at: datetime
    accuracy: Optional[float] = None
    is_active: bool = True
