"""Schema setup and demo data for local development."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List

from werkzeug.security import generate_password_hash

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

# Statements that pin a database name; the configured database is used instead.
_DB_SELECTION = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)

_QUOTES = "'\"`"

DEMO_OFFICERS = (
    # badge, name, rank, role, password
    ("ADMIN001", "Admin Demo", "Inspector", "admin", "admin123"),
    ("PC1024", "Demo Constable", "Constable", "staff", "staff123"),
)


def split_sql(sql: str) -> Iterator[str]:
    """Statements of a schema file: `;` terminated, quote aware, `--` and `#` comments dropped."""

    buf: List[str] = []
    quote = None
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < n:
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in _QUOTES:
            quote = ch
        elif ch == "#" or sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = n if newline == -1 else newline
            continue
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf = []
            if stmt:
                yield stmt
            i += 1
            continue
        buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def schema_statements(sql: str) -> List[str]:
    return [stmt for stmt in split_sql(sql) if not _DB_SELECTION.match(stmt)]


def _factory(db_config: dict) -> DatabaseConnection:
    return DatabaseConnection(DBConfig.from_dict(db_config))


def ensure_database_exists(db_config: dict) -> None:
    factory = _factory(db_config)
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    statements = schema_statements(Path(schema_path).read_text(encoding="utf-8"))

    conn = _factory(db_config).connect()
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("applied %d schema statements from %s", len(statements), schema_path)


def ensure_demo_officers(db_config: dict) -> None:
    """Upsert one admin and one staff officer, resetting their passwords."""

    conn = _factory(db_config).connect()
    try:
        cur = conn.cursor()
        for badge_number, full_name, rank, role, password in DEMO_OFFICERS:
            cur.execute(
                """
                INSERT INTO officers (badge_number, full_name, `rank`, role, department, password_hash)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    full_name=VALUES(full_name),
                    `rank`=VALUES(`rank`),
                    role=VALUES(role),
                    password_hash=VALUES(password_hash),
                    is_active=1
                """,
                (badge_number, full_name, rank, role, "Central Station", generate_password_hash(password)),
            )
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> List[str]:
    conn = _factory(db_config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
