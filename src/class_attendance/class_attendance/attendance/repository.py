from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceEntry, AttendanceSheet, StudentHistoryRow


class AttendanceRepository(Protocol):
    def get_sheet(self, *, class_id: int, sheet_date: date) -> Optional[AttendanceSheet]:
        raise NotImplementedError

    def create_sheet(self, *, class_id: int, sheet_date: date, records: Sequence[AttendanceEntry]) -> int:
        """Insert a new sheet. Raises ConflictError if one exists for (class, date)."""

        raise NotImplementedError

    def upsert_records(self, *, sheet_id: int, records: Sequence[AttendanceEntry]) -> None:
        """Overwrite statuses of existing entries and append the others."""

        raise NotImplementedError

    def list_for_class(self, class_id: int, *, student_id: Optional[int] = None) -> Sequence[AttendanceSheet]:
        """Sheets of a class; only those containing ``student_id`` when given."""

        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[AttendanceSheet]:
        """Every sheet, across all classes, that holds an entry for the student.

        Implementations may limit ``records`` to the student's own entry.
        """

        raise NotImplementedError

    def history_for_student(self, student_id: int) -> Sequence[StudentHistoryRow]:
        """Newest first."""

        raise NotImplementedError
