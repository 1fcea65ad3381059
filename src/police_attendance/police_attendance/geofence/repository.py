from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import BoundaryViolation, Geofence, Polygon


class GeofenceRepository(Protocol):
    def create_geofence(
        self,
        *,
        station_id: str,
        station_name: str,
        center_latitude: float,
        center_longitude: float,
        radius_meters: Optional[float],
        polygon: Polygon,
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def list_active(self, *, station_id: Optional[str] = None) -> Sequence[Geofence]:
        """Active geofences, newest first."""
        raise NotImplementedError

    def set_active(self, geofence_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def log_violation(
        self,
        *,
        user_id: int,
        geofence_id: Optional[int],
        violation_time: datetime,
        latitude: float,
        longitude: float,
        distance_meters: Optional[float],
        shift_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def list_violations(self, *, user_id: Optional[int] = None, limit: int = 50) -> Sequence[BoundaryViolation]:
        raise NotImplementedError

    def acknowledge(self, violation_id: int, *, admin_id: int, at: datetime) -> bool:
        raise NotImplementedError
