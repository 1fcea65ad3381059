from __future__ import annotations

from pathlib import Path

from src.police_attendance.police_attendance.database.bootstrap import schema_statements, split_sql

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_ignores_semicolons_in_quotes_and_comments():
    sql = """
    -- header; not a statement
    INSERT INTO t VALUES ('a;b', "c;d");  # trailing; comment
    SELECT `odd;name` FROM t;
    SELECT 'it\\'s;fine'
    """
    assert list(split_sql(sql)) == [
        "INSERT INTO t VALUES ('a;b', \"c;d\")",
        "SELECT `odd;name` FROM t",
        "SELECT 'it\\'s;fine'",
    ]


def test_schema_file_drops_database_selection():
    statements = schema_statements(SCHEMA.read_text(encoding="utf-8"))

    assert statements
    assert all(s.upper().startswith("CREATE TABLE") or s.upper().startswith("CREATE INDEX") for s in statements)
    assert any("punch_events" in s for s in statements)
