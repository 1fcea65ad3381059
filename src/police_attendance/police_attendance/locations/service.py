from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_float, require_coordinates
from ..core.constants import DEFAULT_HISTORY_LIMIT, LOCATION_UPDATE_INTERVAL_SECONDS
from .model import UserLocation
from .repository import LocationRepository

logger = logging.getLogger(__name__)


class LocationService:
    """Live location reports, throttled per officer."""

    def __init__(
        self,
        locations: LocationRepository,
        *,
        interval_seconds: float = LOCATION_UPDATE_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._locations = locations
        self._interval = timedelta(seconds=float(interval_seconds))
        self._clock = clock
        self._last_report: Dict[int, datetime] = {}
        self._lock = threading.Lock()

    def report(
        self,
        *,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
    ) -> Optional[int]:
        """Store a report; returns None when it arrives inside the throttle window."""

        lat, lon = require_coordinates(latitude, longitude)
        now = self._clock()
        with self._lock:
            last = self._last_report.get(int(user_id))
            if last is not None and now - last < self._interval:
                logger.debug("location report for user %s throttled", user_id)
                return None
            location_id = self._locations.add(
                user_id=int(user_id),
                latitude=lat,
                longitude=lon,
                accuracy=optional_float(accuracy, "Accuracy"),
                recorded_at=now,
            )
            self._last_report[int(user_id)] = now
        return location_id

    def latest(self, user_id: int) -> Optional[UserLocation]:
        return self._locations.latest(int(user_id))

    def history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[UserLocation]:
        return self._locations.history(int(user_id), limit=limit)

    @staticmethod
    def to_dict(loc: UserLocation) -> dict:
        return {
            "user_id": loc.user_id,
            "latitude": loc.latitude,
            "longitude": loc.longitude,
            "accuracy": loc.accuracy,
            "recorded_at": loc.recorded_at.isoformat(),
        }
