from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceEntry:
    """One student's status on one sheet."""

    student_id: int
    status: AttendanceStatus

    def to_dict(self) -> dict:
        return {"studentId": self.student_id, "status": self.status.value}


@dataclass(frozen=True)
class AttendanceSheet:
    """Domain entity: a class's attendance for one calendar day.

    At most one sheet exists per (class_id, sheet_date); entries are unique
    per student and kept in the order they were first recorded.
    """

    sheet_id: int
    class_id: int
    sheet_date: date
    records: tuple[AttendanceEntry, ...] = field(default_factory=tuple)

    def entry_for(self, student_id: int) -> Optional[AttendanceEntry]:
        for r in self.records:
            if r.student_id == int(student_id):
                return r
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.sheet_id,
            "classId": self.class_id,
            "date": self.sheet_date.strftime("%Y-%m-%d"),
            "records": [r.to_dict() for r in self.records],
        }


@dataclass(frozen=True)
class StudentHistoryRow:
    """Read-model: one sheet of a student's history joined with its class."""

    sheet_id: int
    sheet_date: date
    class_id: int
    class_name: Optional[str]
    subject: Optional[str]
    teacher_name: Optional[str]
    status: AttendanceStatus
