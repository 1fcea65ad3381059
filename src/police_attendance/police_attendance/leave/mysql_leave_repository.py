from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_SELECT = """
    SELECT lr.request_id, lr.user_id, lr.start_date, lr.end_date, lr.reason, lr.status,
           lr.created_at, lr.attachment_url, lr.approver_id, lr.reject_reason, lr.updated_at,
           o.full_name, o.badge_number, o.department, a.full_name AS approver_name
    FROM leave_requests lr
    JOIN officers o ON o.user_id = lr.user_id
    LEFT JOIN officers a ON a.user_id = lr.approver_id
"""


def _row_to_leave(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        attachment_url=r.get("attachment_url"),
        approver_id=r.get("approver_id"),
        reject_reason=r.get("reject_reason"),
        updated_at=r.get("updated_at"),
        full_name=r.get("full_name"),
        badge_number=r.get("badge_number"),
        department=r.get("department"),
        approver_name=r.get("approver_name"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        attachment_url: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(user_id, start_date, end_date, reason, attachment_url, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), start_date, end_date, reason, attachment_url, LeaveStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE lr.request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        approver_id: int,
        reject_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=%s, reject_reason=%s, updated_at=NOW()
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(approver_id), reject_reason, int(request_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("lr.user_id=%s")
            params.append(int(user_id))
        if status is not None:
            clauses.append("lr.status=%s")
            params.append(status.value)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY lr.created_at DESC LIMIT %s",
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def list_overlapping(self, *, start: date, end: date, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequest]:
        clauses = ["lr.start_date <= %s", "lr.end_date >= %s"]
        params: list[object] = [end, start]
        if status is not None:
            clauses.append("lr.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY lr.start_date",
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]
