from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Notification
from .repository import NotificationRepository


def _row_to_notification(r: Dict[str, Any]) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        notification_type=NotificationType(r["notification_type"]),
        title=r["title"],
        message=r["message"],
        created_at=r["created_at"],
        is_read=bool(r["is_read"]),
        read_at=r.get("read_at"),
        metadata=load_json(r.get("metadata")) or {},
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        metadata: Optional[Mapping[str, Any]] = None,
        dedupe_key: Optional[str] = None,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO notifications(user_id, notification_type, title, message, metadata, dedupe_key)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    notification_type.value,
                    title,
                    message,
                    dump_json(dict(metadata or {})),
                    dedupe_key,
                ),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def list_for_user(self, user_id: int, *, limit: int = 50) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, notification_type, title, message,
                       is_read, read_at, metadata, created_at
                FROM notifications
                WHERE user_id=%s
                ORDER BY created_at DESC, notification_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def unread_count(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def mark_read(self, notification_id: int, *, user_id: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE notification_id=%s AND user_id=%s AND is_read=0",
                (at, int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: int, *, at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE user_id=%s AND is_read=0",
                (at, int(user_id)),
            )
            return int(cur.rowcount)
