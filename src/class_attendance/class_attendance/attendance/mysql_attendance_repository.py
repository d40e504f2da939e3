from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import AttendanceEntry, AttendanceSheet, StudentHistoryRow
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_sheets(self, cur, where: str, params: tuple, *, record_filter: Optional[int] = None) -> list[AttendanceSheet]:
        cur.execute(
            f"""
            SELECT s.sheet_id, s.class_id, s.sheet_date
            FROM attendance_sheets s
            WHERE {where}
            ORDER BY s.sheet_date DESC, s.sheet_id DESC
            """,
            params,
        )
        sheets = fetchall(cur)
        if not sheets:
            return []

        placeholders, ids = in_clause(int(s["sheet_id"]) for s in sheets)
        record_sql = f"""
            SELECT sheet_id, student_id, status
            FROM attendance_records
            WHERE sheet_id IN ({placeholders})
        """
        record_params: tuple = ids
        if record_filter is not None:
            record_sql += " AND student_id=%s"
            record_params = ids + (int(record_filter),)
        cur.execute(record_sql + " ORDER BY sheet_id, position, student_id", record_params)

        by_sheet: dict[int, list[AttendanceEntry]] = defaultdict(list)
        for r in fetchall(cur):
            by_sheet[int(r["sheet_id"])].append(
                AttendanceEntry(student_id=int(r["student_id"]), status=AttendanceStatus(r["status"]))
            )

        return [
            AttendanceSheet(
                sheet_id=int(s["sheet_id"]),
                class_id=int(s["class_id"]),
                sheet_date=s["sheet_date"],
                records=tuple(by_sheet.get(int(s["sheet_id"]), [])),
            )
            for s in sheets
        ]

    def get_sheet(self, *, class_id: int, sheet_date: date) -> Optional[AttendanceSheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load_sheets(cur, "s.class_id=%s AND s.sheet_date=%s", (int(class_id), sheet_date))
            return found[0] if found else None

    @staticmethod
    def _write_records(cur, sheet_id: int, records: Sequence[AttendanceEntry], *, start: int) -> None:
        if not records:
            return
        cur.executemany(
            """
            INSERT INTO attendance_records(sheet_id, student_id, status, position)
            VALUES(%s,%s,%s,%s)
            ON DUPLICATE KEY UPDATE status=VALUES(status)
            """,
            [(int(sheet_id), int(r.student_id), r.status.value, start + i) for i, r in enumerate(records)],
        )

    def create_sheet(self, *, class_id: int, sheet_date: date, records: Sequence[AttendanceEntry]) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO attendance_sheets(class_id, sheet_date) VALUES(%s,%s)",
                    (int(class_id), sheet_date),
                )
                sheet_id = int(cur.lastrowid)
                self._write_records(cur, sheet_id, records, start=0)
                return sheet_id
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Attendance for this class and date already exists.") from e
            raise

    def upsert_records(self, *, sheet_id: int, records: Sequence[AttendanceEntry]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COALESCE(MAX(position), -1) AS last FROM attendance_records WHERE sheet_id=%s",
                (int(sheet_id),),
            )
            row = fetchone(cur)
            last = int(row["last"]) if row else -1
            self._write_records(cur, sheet_id, records, start=last + 1)

    def list_for_class(self, class_id: int, *, student_id: Optional[int] = None) -> Sequence[AttendanceSheet]:
        where = "s.class_id=%s"
        params: tuple = (int(class_id),)
        if student_id is not None:
            where += " AND EXISTS (SELECT 1 FROM attendance_records r WHERE r.sheet_id=s.sheet_id AND r.student_id=%s)"
            params += (int(student_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load_sheets(cur, where, params)

    def list_for_student(self, student_id: int) -> Sequence[AttendanceSheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load_sheets(
                cur,
                "EXISTS (SELECT 1 FROM attendance_records r WHERE r.sheet_id=s.sheet_id AND r.student_id=%s)",
                (int(student_id),),
                record_filter=int(student_id),
            )

    def history_for_student(self, student_id: int) -> Sequence[StudentHistoryRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    s.sheet_id, s.sheet_date, s.class_id,
                    c.name AS class_name, c.subject,
                    t.name AS teacher_name,
                    r.status
                FROM attendance_records r
                JOIN attendance_sheets s ON s.sheet_id = r.sheet_id
                LEFT JOIN classes c ON c.class_id = s.class_id
                LEFT JOIN users t ON t.user_id = c.teacher_id
                WHERE r.student_id=%s
                ORDER BY s.sheet_date DESC, s.sheet_id DESC
                """,
                (int(student_id),),
            )
            return [
                StudentHistoryRow(
                    sheet_id=int(r["sheet_id"]),
                    sheet_date=r["sheet_date"],
                    class_id=int(r["class_id"]),
                    class_name=r.get("class_name"),
                    subject=r.get("subject"),
                    teacher_name=r.get("teacher_name"),
                    status=AttendanceStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]
