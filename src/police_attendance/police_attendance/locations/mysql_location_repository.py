from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float
from .model import UserLocation
from .repository import LocationRepository

_COLUMNS = "location_id, user_id, latitude, longitude, accuracy, recorded_at, is_active"


def _row_to_location(r) -> UserLocation:
    return UserLocation(
        location_id=int(r["location_id"]),
        user_id=int(r["user_id"]),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        accuracy=to_float(r.get("accuracy")),
        recorded_at=r["recorded_at"],
        is_active=bool(r["is_active"]),
    )


class MySQLLocationRepository(LocationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        user_id: int,
        latitude: float,
        longitude: float,
        accuracy: Optional[float],
        recorded_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_locations(user_id, latitude, longitude, accuracy, recorded_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), latitude, longitude, accuracy, recorded_at),
            )
            return int(cur.lastrowid)

    def latest(self, user_id: int) -> Optional[UserLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM user_locations
                WHERE user_id=%s AND is_active=1
                ORDER BY recorded_at DESC, location_id DESC
                LIMIT 1
                """,
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_location(r) if r else None

    def history(self, user_id: int, *, limit: int = 50) -> Sequence[UserLocation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM user_locations
                WHERE user_id=%s
                ORDER BY recorded_at DESC, location_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_location(r) for r in fetchall(cur)]
