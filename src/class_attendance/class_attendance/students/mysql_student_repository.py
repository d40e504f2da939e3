from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from ..core.enums import Department
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import Student, StudentView
from .repository import StudentRepository


def _to_student(row: dict[str, Any]) -> Student:
    return Student(
        student_id=int(row["student_id"]),
        user_id=int(row["user_id"]),
        roll_no=row["roll_no"],
        year=int(row["year"]),
        department=Department(row["department"]),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT student_id, user_id, roll_no, year, department FROM students WHERE {where}",
                params,
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._get_one("student_id=%s", (int(student_id),))

    def get_by_user_id(self, user_id: int) -> Optional[Student]:
        return self._get_one("user_id=%s", (int(user_id),))

    def create_student(self, *, user_id: int, roll_no: str, year: int, department: Department) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO students(user_id, roll_no, year, department)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(user_id), roll_no, int(year), department.value),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("This user already has a student profile.") from e
            raise

    def list_views(self, student_ids: Optional[Iterable[int]] = None) -> Sequence[StudentView]:
        where = "1=1"
        params: tuple = ()
        if student_ids is not None:
            ids = sorted({int(s) for s in student_ids})
            if not ids:
                return []
            placeholders, params = in_clause(ids)
            where = f"s.student_id IN ({placeholders})"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT s.student_id, s.user_id, s.roll_no, s.year, s.department, u.name, u.email
                FROM students s
                JOIN users u ON u.user_id = s.user_id
                WHERE {where}
                ORDER BY s.roll_no ASC, s.student_id ASC
                """,
                params,
            )
            return [StudentView(student=_to_student(r), name=r["name"], email=r["email"]) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM students")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
