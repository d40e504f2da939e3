from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable, Optional, Sequence

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import ClassSection
from .repository import ClassRepository

_DUPLICATE_MSG = "You have already created a class with this name and subject."


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, where: str, params: tuple, *, order: str = "c.class_id ASC") -> list[ClassSection]:
        cur.execute(
            f"""
            SELECT c.class_id, c.name, c.subject, c.teacher_id, c.created_at
            FROM classes c
            WHERE {where}
            ORDER BY {order}
            """,
            params,
        )
        rows = fetchall(cur)
        if not rows:
            return []

        placeholders, ids = in_clause(int(r["class_id"]) for r in rows)
        cur.execute(
            f"""
            SELECT class_id, student_id
            FROM class_students
            WHERE class_id IN ({placeholders})
            ORDER BY enrolled_at ASC, student_id ASC
            """,
            ids,
        )
        roster: dict[int, list[int]] = defaultdict(list)
        for link in fetchall(cur):
            roster[int(link["class_id"])].append(int(link["student_id"]))

        return [self._to_class(r, roster.get(int(r["class_id"]), [])) for r in rows]

    @staticmethod
    def _to_class(row: dict[str, Any], student_ids: list[int]) -> ClassSection:
        teacher_id = row.get("teacher_id")
        return ClassSection(
            class_id=int(row["class_id"]),
            name=row["name"],
            subject=row["subject"],
            teacher_id=int(teacher_id) if teacher_id is not None else None,
            student_ids=tuple(student_ids),
            created_at=row.get("created_at"),
        )

    def get_by_id(self, class_id: int) -> Optional[ClassSection]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, "c.class_id=%s", (int(class_id),))
            return found[0] if found else None

    def find_duplicate(
        self,
        *,
        teacher_id: int,
        name: str,
        subject: str,
        exclude_class_id: Optional[int] = None,
    ) -> Optional[ClassSection]:
        clauses = ["c.teacher_id=%s", "c.name=%s", "c.subject=%s"]
        params: list[object] = [int(teacher_id), name, subject]
        if exclude_class_id is not None:
            clauses.append("c.class_id<>%s")
            params.append(int(exclude_class_id))

        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, " AND ".join(clauses), tuple(params))
            return found[0] if found else None

    def create_class(self, *, name: str, subject: str, teacher_id: int) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO classes(name, subject, teacher_id) VALUES(%s,%s,%s)",
                    (name, subject, int(teacher_id)),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError(_DUPLICATE_MSG) from e
            raise

    def update_class(self, class_id: int, *, name: str, subject: str) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE classes SET name=%s, subject=%s WHERE class_id=%s",
                    (name, subject, int(class_id)),
                )
                return cur.rowcount > 0
        except Exception as e:
            if is_duplicate_key(e):
                raise ConflictError("Another class with this name and subject already exists.") from e
            raise

    def delete_class(self, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM class_students WHERE class_id=%s", (int(class_id),))
            cur.execute("DELETE FROM classes WHERE class_id=%s", (int(class_id),))
            return cur.rowcount > 0

    def list_for_teacher(self, teacher_id: int) -> Sequence[ClassSection]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, "c.teacher_id=%s", (int(teacher_id),), order="c.created_at DESC, c.class_id DESC")

    def list_all(self) -> Sequence[ClassSection]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, "1=1", ())

    def add_students(self, class_id: int, student_ids: Iterable[int]) -> int:
        ids = sorted({int(s) for s in student_ids})
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT IGNORE INTO class_students(class_id, student_id) VALUES(%s,%s)",
                [(int(class_id), sid) for sid in ids],
            )
            return max(int(cur.rowcount), 0)

    def detach_teacher(self, teacher_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE classes SET teacher_id=NULL WHERE teacher_id=%s", (int(teacher_id),))
            return int(cur.rowcount)

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM classes")
            row = fetchone(cur)
            return int(row["n"]) if row else 0
