from __future__ import annotations

from pathlib import Path

from src.class_attendance.class_attendance.database.bootstrap import (
    _strip_comments,
    _strip_create_db_and_use,
    iter_sql_statements,
)
from src.class_attendance.class_attendance.database.mysql_base import in_clause

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_semicolons_inside_quotes_do_not_split():
    sql = "INSERT INTO t VALUES('a;b');\nINSERT INTO t VALUES(\"it\\'s;\");\nSELECT 1"
    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES('a;b')",
        "INSERT INTO t VALUES(\"it\\'s;\")",
        "SELECT 1",
    ]


def test_create_database_and_use_lines_are_removed():
    sql = "CREATE DATABASE IF NOT EXISTS foo;\nUSE foo;\nCREATE TABLE x (id INT);"
    assert list(iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE x (id INT)"]


def test_schema_file_declares_every_table():
    statements = list(iter_sql_statements(_strip_create_db_and_use(_strip_comments(SCHEMA.read_text("utf-8")))))
    created = [s.split("(")[0].split()[-1].strip("`") for s in statements if s.upper().startswith("CREATE TABLE")]
    assert created == [
        "users", "students", "classes", "class_students", "attendance_sheets", "attendance_records"
    ]


def test_in_clause_placeholders():
    assert in_clause([3, 1, 2]) == ("%s,%s,%s", (3, 1, 2))
