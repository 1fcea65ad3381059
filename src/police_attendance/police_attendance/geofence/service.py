from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_coordinates, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .geometry import haversine_meters, point_in_circle, point_in_polygon
from .model import BoundaryViolation, Geofence, GeofenceCheck
from .repository import GeofenceRepository

logger = logging.getLogger(__name__)


def contains(geofence: Geofence, latitude: float, longitude: float) -> bool:
    if geofence.radius_meters and point_in_circle(
        latitude, longitude, geofence.center_latitude, geofence.center_longitude, geofence.radius_meters
    ):
        return True
    return bool(geofence.polygon) and point_in_polygon(latitude, longitude, geofence.polygon)


class GeofenceService:
    """Use case: station boundaries and the violations logged against them."""

    def __init__(
        self,
        geofences: GeofenceRepository,
        *,
        audit: Optional[AuditLogRepository] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._geofences = geofences
        self._audit = audit
        self._clock = clock

    def validate_location(self, latitude: float, longitude: float, station_id: Optional[str] = None) -> GeofenceCheck:
        lat, lon = require_coordinates(latitude, longitude)
        fences = list(self._geofences.list_active(station_id=station_id))
        if not fences:
            return GeofenceCheck(is_valid=False)

        for fence in fences:
            if contains(fence, lat, lon):
                return GeofenceCheck(is_valid=True, geofence=fence, distance_meters=0.0)

        distances = [(haversine_meters(lat, lon, f.center_latitude, f.center_longitude), f) for f in fences]
        distance, nearest = min(distances, key=lambda pair: pair[0])
        return GeofenceCheck(is_valid=False, geofence=nearest, distance_meters=round(distance, 2))

    def log_violation(
        self,
        *,
        user_id: int,
        latitude: float,
        longitude: float,
        check: GeofenceCheck,
        shift_id: Optional[int] = None,
    ) -> int:
        violation_id = self._geofences.log_violation(
            user_id=int(user_id),
            geofence_id=check.geofence.geofence_id if check.geofence else None,
            violation_time=self._clock(),
            latitude=float(latitude),
            longitude=float(longitude),
            distance_meters=check.distance_meters,
            shift_id=shift_id,
        )
        logger.warning(
            "boundary violation %s: user %s at (%.6f, %.6f), %s m from %s",
            violation_id,
            user_id,
            latitude,
            longitude,
            check.distance_meters,
            check.geofence.station_name if check.geofence else "no station",
        )
        return violation_id

    def list_violations(self, *, user_id: Optional[int] = None, limit: int = 50) -> Sequence[BoundaryViolation]:
        return self._geofences.list_violations(user_id=user_id, limit=limit)

    def acknowledge_violation(self, *, current_role: Role, admin_user_id: int, violation_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        if not self._geofences.acknowledge(int(violation_id), admin_id=int(admin_user_id), at=self._clock()):
            raise NotFoundError("Violation not found or already acknowledged")
        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="violation.acknowledge",
                details={"violation_id": int(violation_id)},
            )

    def list_geofences(self, *, station_id: Optional[str] = None) -> Sequence[Geofence]:
        return self._geofences.list_active(station_id=station_id)

    def create_geofence(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        station_id: str,
        station_name: str,
        center_latitude: float,
        center_longitude: float,
        radius_meters: Optional[float] = None,
        polygon: Sequence[Sequence[float]] = (),
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        station_id = require_non_empty(station_id, "Station")
        station_name = require_non_empty(station_name, "Station name")
        lat, lon = require_coordinates(center_latitude, center_longitude)

        vertices = tuple((float(p[0]), float(p[1])) for p in polygon)
        if vertices and len(vertices) < 3:
            raise ValidationError("Boundary polygon needs at least 3 points")
        for lng, la in vertices:
            require_coordinates(la, lng)

        radius = float(radius_meters) if radius_meters is not None else None
        if radius is not None and radius <= 0:
            raise ValidationError("Radius must be positive")
        if radius is None and not vertices:
            raise ValidationError("A geofence needs a radius or a boundary polygon")

        geofence_id = self._geofences.create_geofence(
            station_id=station_id,
            station_name=station_name,
            center_latitude=lat,
            center_longitude=lon,
            radius_meters=radius,
            polygon=vertices,
            created_by=int(admin_user_id),
        )
        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="geofence.create",
                details={"geofence_id": geofence_id, "station_id": station_id},
            )
        return geofence_id

    def deactivate_geofence(self, *, current_role: Role, admin_user_id: int, geofence_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        if not self._geofences.set_active(int(geofence_id), is_active=False):
            raise NotFoundError("Geofence not found")
        if self._audit:
            self._audit.record(
                user_id=int(admin_user_id),
                action="geofence.deactivate",
                details={"geofence_id": int(geofence_id)},
            )

    @staticmethod
    def check_to_dict(check: Optional[GeofenceCheck]) -> Optional[dict]:
        if check is None:
            return None
        return {
            "is_valid": check.is_valid,
            "station_id": check.geofence.station_id if check.geofence else None,
            "station_name": check.geofence.station_name if check.geofence else None,
            "distance_meters": check.distance_meters,
        }

    @staticmethod
    def geofence_to_dict(fence: Geofence) -> dict:
        return {
            "geofence_id": fence.geofence_id,
            "station_id": fence.station_id,
            "station_name": fence.station_name,
            "center_latitude": fence.center_latitude,
            "center_longitude": fence.center_longitude,
            "radius_meters": fence.radius_meters,
            "polygon": [list(p) for p in fence.polygon],
            "is_active": fence.is_active,
        }

    @staticmethod
    def violation_to_dict(v: BoundaryViolation) -> dict:
        return {
            "violation_id": v.violation_id,
            "user_id": v.user_id,
            "full_name": v.full_name,
            "badge_number": v.badge_number,
            "station_name": v.station_name,
            "violation_time": v.violation_time.isoformat(),
            "latitude": v.latitude,
            "longitude": v.longitude,
            "distance_meters": v.distance_meters,
            "shift_id": v.shift_id,
            "acknowledged": v.acknowledged,
        }
