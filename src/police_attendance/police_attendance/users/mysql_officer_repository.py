from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Account, Officer
from .repository import OfficerRepository

_PROFILE_COLUMNS = "user_id, badge_number, full_name, `rank`, role, department, phone, email, is_active"


def _row_to_officer(row: Dict[str, Any]) -> Officer:
    return Officer(
        user_id=int(row["user_id"]),
        badge_number=row["badge_number"],
        full_name=row["full_name"],
        rank=row["rank"],
        role=Role(row["role"]),
        department=row.get("department"),
        phone=row.get("phone"),
        email=row.get("email"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLOfficerRepository(OfficerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_account_by_badge(self, badge_number: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, badge_number, password_hash, is_active
                FROM officers
                WHERE badge_number=%s
                """,
                (badge_number,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Account(
                user_id=int(row["user_id"]),
                badge_number=row["badge_number"],
                password_hash=row["password_hash"],
                is_active=bool(row.get("is_active", True)),
            )

    def get_profile(self, user_id: int) -> Optional[Officer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROFILE_COLUMNS} FROM officers WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_officer(row) if row else None

    def create_officer(
        self,
        *,
        badge_number: str,
        full_name: str,
        rank: str,
        role: Role,
        department: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        password_hash: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO officers(badge_number, full_name, `rank`, role, department, phone, email, password_hash)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (badge_number, full_name, rank, role.value, department, phone, email, password_hash),
            )
            return int(cur.lastrowid)

    def list_officers(self) -> Sequence[Officer]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PROFILE_COLUMNS} FROM officers ORDER BY full_name")
            return [_row_to_officer(r) for r in fetchall(cur)]

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE officers SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0
