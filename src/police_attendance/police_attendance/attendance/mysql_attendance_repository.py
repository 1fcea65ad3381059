from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import PunchType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_float
from .model import AttendanceLogRow, NewPunchEvent, PunchEvent
from .repository import PunchEventRepository

_EVENT_COLUMNS = "pe.event_id, pe.user_id, pe.punch_type, pe.`timestamp`, pe.latitude, pe.longitude, pe.accuracy, pe.photo_url"


def _row_to_event(r: Dict[str, Any]) -> PunchEvent:
    return PunchEvent(
        event_id=int(r["event_id"]),
        user_id=int(r["user_id"]),
        punch_type=PunchType(r["punch_type"]),
        timestamp=r["timestamp"],
        latitude=to_float(r.get("latitude")),
        longitude=to_float(r.get("longitude")),
        accuracy=to_float(r.get("accuracy")),
        photo_url=r.get("photo_url"),
    )


class MySQLPunchEventRepository(PunchEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, event: NewPunchEvent) -> PunchEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO punch_events(user_id, punch_type, `timestamp`, latitude, longitude, accuracy, photo_url)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(event.user_id),
                    event.punch_type.value,
                    event.timestamp,
                    event.latitude,
                    event.longitude,
                    event.accuracy,
                    event.photo_url,
                ),
            )
            return PunchEvent(
                event_id=int(cur.lastrowid),
                user_id=event.user_id,
                punch_type=event.punch_type,
                timestamp=event.timestamp,
                latitude=event.latitude,
                longitude=event.longitude,
                accuracy=event.accuracy,
                photo_url=event.photo_url,
            )

    def list_for_user(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> Sequence[PunchEvent]:
        clauses = ["pe.user_id=%s"]
        params: list[object] = [int(user_id)]
        if start is not None:
            clauses.append("pe.`timestamp` >= %s")
            params.append(start)
        if end is not None:
            clauses.append("pe.`timestamp` < %s")
            params.append(end)

        sql = f"""
            SELECT {_EVENT_COLUMNS}
            FROM punch_events pe
            WHERE {" AND ".join(clauses)}
            ORDER BY pe.`timestamp` DESC, pe.event_id DESC
        """
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_event(r) for r in fetchall(cur)]

    def latest_for_user_since(self, user_id: int, since: datetime) -> Optional[PunchEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM punch_events pe
                WHERE pe.user_id=%s AND pe.`timestamp` >= %s
                ORDER BY pe.`timestamp` DESC, pe.event_id DESC
                LIMIT 1
                """,
                (int(user_id), since),
            )
            r = fetchone(cur)
            return _row_to_event(r) if r else None

    def list_log_rows(
        self,
        *,
        start: datetime,
        end: datetime,
        user_id: Optional[int] = None,
        punch_type: Optional[PunchType] = None,
        limit: int = 500,
    ) -> Sequence[AttendanceLogRow]:
        clauses = ["pe.`timestamp` >= %s", "pe.`timestamp` < %s"]
        params: list[object] = [start, end]

        if user_id is not None:
            clauses.append("pe.user_id=%s")
            params.append(int(user_id))
        if punch_type is not None:
            clauses.append("pe.punch_type=%s")
            params.append(punch_type.value)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_EVENT_COLUMNS}, o.full_name, o.badge_number, o.department
                FROM punch_events pe
                JOIN officers o ON o.user_id = pe.user_id
                WHERE {" AND ".join(clauses)}
                ORDER BY pe.`timestamp` DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                AttendanceLogRow(
                    event=_row_to_event(r),
                    full_name=r["full_name"],
                    badge_number=r["badge_number"],
                    department=r.get("department"),
                )
                for r in fetchall(cur)
            ]
