"""Attendance percentage aggregation.

Counts are derived from attendance sheets only; a student is "attending" when
marked Present or Late. Percentages are rounded half-up to one decimal place.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..core.constants import NO_HISTORY_PERCENTAGE
from ..core.enums import AttendanceStatus
from .model import AttendanceSheet

_ONE_DECIMAL = Decimal("0.1")


def attendance_percentage(attended: int, total: int) -> float:
    """(attended / total) * 100 rounded to 1dp; no history counts as full attendance."""
    if total <= 0:
        return NO_HISTORY_PERCENTAGE
    value = Decimal(int(attended)) * 100 / Decimal(int(total))
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AttendanceTally:
    present: int = 0
    absent: int = 0
    late: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late

    @property
    def percentage(self) -> float:
        return attendance_percentage(self.present + self.late, self.total)

    def add(self, status: AttendanceStatus) -> "AttendanceTally":
        if status == AttendanceStatus.PRESENT:
            return AttendanceTally(self.present + 1, self.absent, self.late)
        if status == AttendanceStatus.LATE:
            return AttendanceTally(self.present, self.absent, self.late + 1)
        return AttendanceTally(self.present, self.absent + 1, self.late)

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "total": self.total,
            "percentage": self.percentage,
        }


class PercentageAggregator:
    """Reduce attendance sheets to per-student tallies."""

    def tally(
        self,
        sheets: Iterable[AttendanceSheet],
        *,
        student_id: Optional[int] = None,
    ) -> dict[int, AttendanceTally]:
        tallies: dict[int, AttendanceTally] = {}
        for sheet in sheets:
            for record in sheet.records:
                if student_id is not None and record.student_id != int(student_id):
                    continue
                current = tallies.get(record.student_id, AttendanceTally())
                tallies[record.student_id] = current.add(record.status)
        return tallies

    def tally_student(self, sheets: Iterable[AttendanceSheet], student_id: int) -> AttendanceTally:
        return self.tally(sheets, student_id=student_id).get(int(student_id), AttendanceTally())
