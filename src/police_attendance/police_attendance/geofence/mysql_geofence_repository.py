from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json, to_float
from .model import BoundaryViolation, Geofence, Polygon
from .repository import GeofenceRepository


def _polygon_from_geojson(value) -> Polygon:
    data = load_json(value)
    if not data:
        return ()
    rings = data.get("coordinates") if isinstance(data, dict) else data
    if not rings:
        return ()
    return tuple((float(p[0]), float(p[1])) for p in rings[0])


def _polygon_to_geojson(polygon: Polygon) -> Optional[str]:
    if not polygon:
        return None
    return dump_json({"type": "Polygon", "coordinates": [[list(p) for p in polygon]]})


class MySQLGeofenceRepository(GeofenceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO geofences(
                    station_id, station_name, center_latitude, center_longitude,
                    radius_meters, boundary, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    station_id,
                    station_name,
                    center_latitude,
                    center_longitude,
                    radius_meters,
                    _polygon_to_geojson(polygon),
                    created_by,
                ),
            )
            return int(cur.lastrowid)

    def list_active(self, *, station_id: Optional[str] = None) -> Sequence[Geofence]:
        sql = """
            SELECT geofence_id, station_id, station_name, center_latitude, center_longitude,
                   radius_meters, boundary, is_active, created_by, created_at
            FROM geofences
            WHERE is_active=1
        """
        params: list[object] = []
        if station_id:
            sql += " AND station_id=%s"
            params.append(station_id)
        sql += " ORDER BY created_at DESC, geofence_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                Geofence(
                    geofence_id=int(r["geofence_id"]),
                    station_id=r["station_id"],
                    station_name=r["station_name"],
                    center_latitude=float(r["center_latitude"]),
                    center_longitude=float(r["center_longitude"]),
                    radius_meters=to_float(r.get("radius_meters")),
                    polygon=_polygon_from_geojson(r.get("boundary")),
                    is_active=bool(r["is_active"]),
                    created_by=r.get("created_by"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def set_active(self, geofence_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE geofences SET is_active=%s WHERE geofence_id=%s",
                (1 if is_active else 0, int(geofence_id)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO boundary_violations(
                    user_id, geofence_id, violation_time, latitude, longitude, distance_meters, shift_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), geofence_id, violation_time, latitude, longitude, distance_meters, shift_id),
            )
            return int(cur.lastrowid)

    def list_violations(self, *, user_id: Optional[int] = None, limit: int = 50) -> Sequence[BoundaryViolation]:
        sql = """
            SELECT v.violation_id, v.user_id, v.geofence_id, v.violation_time, v.latitude, v.longitude,
                   v.distance_meters, v.shift_id, v.acknowledged, v.acknowledged_by, v.acknowledged_at,
                   o.full_name, o.badge_number, g.station_name
            FROM boundary_violations v
            JOIN officers o ON o.user_id = v.user_id
            LEFT JOIN geofences g ON g.geofence_id = v.geofence_id
        """
        params: list[object] = []
        if user_id is not None:
            sql += " WHERE v.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY v.violation_time DESC, v.violation_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                BoundaryViolation(
                    violation_id=int(r["violation_id"]),
                    user_id=int(r["user_id"]),
                    geofence_id=r.get("geofence_id"),
                    violation_time=r["violation_time"],
                    latitude=float(r["latitude"]),
                    longitude=float(r["longitude"]),
                    distance_meters=to_float(r.get("distance_meters")),
                    shift_id=r.get("shift_id"),
                    acknowledged=bool(r["acknowledged"]),
                    acknowledged_by=r.get("acknowledged_by"),
                    acknowledged_at=r.get("acknowledged_at"),
                    full_name=r.get("full_name"),
                    badge_number=r.get("badge_number"),
                    station_name=r.get("station_name"),
                )
                for r in fetchall(cur)
            ]

    def acknowledge(self, violation_id: int, *, admin_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE boundary_violations
                SET acknowledged=1, acknowledged_by=%s, acknowledged_at=%s
                WHERE violation_id=%s AND acknowledged=0
                """,
                (int(admin_id), at, int(violation_id)),
            )
            return cur.rowcount > 0
