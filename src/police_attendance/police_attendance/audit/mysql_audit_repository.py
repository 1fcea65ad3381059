from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import AuditEntry
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, *, user_id: int, action: str, details: Optional[Mapping[str, Any]] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO audit_logs(user_id, action, details) VALUES(%s,%s,%s)",
                (int(user_id), action, dump_json(dict(details or {}))),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int = 100) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, user_id, action, details, created_at
                FROM audit_logs
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                AuditEntry(
                    log_id=int(r["log_id"]),
                    user_id=int(r["user_id"]),
                    action=r["action"],
                    created_at=r["created_at"],
                    details=load_json(r.get("details")) or {},
                )
                for r in fetchall(cur)
            ]
