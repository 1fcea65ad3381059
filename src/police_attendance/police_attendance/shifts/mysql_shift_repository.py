from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Shift
from .repository import ShiftRepository


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(station_id, shift_name, shift_start, shift_end, created_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (station_id, shift_name, shift_start, shift_end, created_by),
            )
            shift_id = int(cur.lastrowid)
            if assigned_users:
                cur.executemany(
                    "INSERT INTO shift_assignments(shift_id, user_id) VALUES(%s,%s)",
                    [(shift_id, int(u)) for u in assigned_users],
                )
            return shift_id

    def delete(self, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE shift_id=%s", (int(shift_id),))
            return cur.rowcount > 0

    def _assignments(self, cur, shift_ids: List[int]) -> Dict[int, List[int]]:
        out: Dict[int, List[int]] = defaultdict(list)
        if not shift_ids:
            return out
        placeholders = ",".join(["%s"] * len(shift_ids))
        cur.execute(
            f"SELECT shift_id, user_id FROM shift_assignments WHERE shift_id IN ({placeholders}) ORDER BY user_id",
            tuple(shift_ids),
        )
        for r in fetchall(cur):
            out[int(r["shift_id"])].append(int(r["user_id"]))
        return out

    @staticmethod
    def _to_shift(r, assigned: List[int]) -> Shift:
        return Shift(
            shift_id=int(r["shift_id"]),
            station_id=r["station_id"],
            shift_name=r["shift_name"],
            shift_start=r["shift_start"],
            shift_end=r["shift_end"],
            assigned_users=tuple(assigned),
            created_by=r.get("created_by"),
        )

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT shift_id, station_id, shift_name, shift_start, shift_end, created_by
                FROM shifts
                WHERE shift_id=%s
                """,
                (int(shift_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            assigned = self._assignments(cur, [int(r["shift_id"])])
            return self._to_shift(r, assigned.get(int(r["shift_id"]), []))

    def list_between(
        self,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ) -> Sequence[Shift]:
        clauses = ["1=1"]
        params: list[object] = []
        if start is not None:
            clauses.append("s.shift_end >= %s")
            params.append(start)
        if end is not None:
            clauses.append("s.shift_start <= %s")
            params.append(end)
        if user_id is not None:
            clauses.append("EXISTS (SELECT 1 FROM shift_assignments sa WHERE sa.shift_id = s.shift_id AND sa.user_id=%s)")
            params.append(int(user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.shift_id, s.station_id, s.shift_name, s.shift_start, s.shift_end, s.created_by
                FROM shifts s
                WHERE {" AND ".join(clauses)}
                ORDER BY s.shift_start
                """,
                tuple(params),
            )
            rows = fetchall(cur)
            assigned = self._assignments(cur, [int(r["shift_id"]) for r in rows])
            return [self._to_shift(r, assigned.get(int(r["shift_id"]), [])) for r in rows]
