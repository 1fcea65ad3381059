from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

# (longitude, latitude) vertices, GeoJSON order.
Polygon = Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class Geofence:
    geofence_id: int
    station_id: str
    station_name: str
    center_latitude: float
    center_longitude: float
    radius_meters: Optional[float] = None
    polygon: Polygon = field(default_factory=tuple)
    is_active: bool = True
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GeofenceCheck:
    """Where a fix falls relative to the active station boundaries."""

    is_valid: bool
    geofence: Optional[Geofence] = None
    distance_meters: Optional[float] = None


@dataclass(frozen=True)
class BoundaryViolation:
    violation_id: int
    user_id: int
    geofence_id: Optional[int]
    violation_time: datetime
    latitude: float
    longitude: float
    distance_meters: Optional[float] = None
    shift_id: Optional[int] = None
    acknowledged: bool = False
    acknowledged_by: Optional[int] = None
    acknowledged_at: Optional[datetime] = None
    full_name: Optional[str] = None
    badge_number: Optional[str] = None
    station_name: Optional[str] = None
