from __future__ import annotations

import logging
from typing import Optional

from ..classes.repository import ClassRepository
from ..classes.service import load_owned_class
from ..core.enums import Role
from ..students.repository import StudentRepository
from .aggregator import AttendanceTally, PercentageAggregator
from .eligibility import EligibilityPolicy, ThresholdEligibilityPolicy
from .repository import AttendanceRepository
from .tally_cache import TallyCache

logger = logging.getLogger(__name__)


class ReportService:
    """Read-side reports built from attendance sheets.

    Class reports are computed from the class's sheets on every call. Whole
    history tallies go through the shared ``TallyCache``.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        students: StudentRepository,
        *,
        cache: TallyCache,
        aggregator: Optional[PercentageAggregator] = None,
        policy: Optional[EligibilityPolicy] = None,
    ):
        self._attendance = attendance
        self._classes = classes
        self._students = students
        self._cache = cache
        self._aggregator = aggregator or PercentageAggregator()
        self._policy = policy or ThresholdEligibilityPolicy()

    def class_report(self, *, current_role: Role, user_id: int, class_id: int) -> list[dict]:
        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="view reports for"
        )
        tallies = self._aggregator.tally(self._attendance.list_for_class(course.class_id))

        ordered = [sid for sid in course.student_ids if sid in tallies]
        ordered += sorted(sid for sid in tallies if sid not in course.student_ids)
        return [{"studentId": sid, **tallies[sid].to_dict()} for sid in ordered]

    def student_class_report(self, *, current_role: Role, user_id: int, class_id: int, student_id: int) -> dict:
        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="view reports for"
        )
        sheets = self._attendance.list_for_class(course.class_id, student_id=int(student_id))
        tally = self._aggregator.tally_student(sheets, int(student_id))
        return {"studentId": int(student_id), **tally.to_dict()}

    def overall_tally(self, student_id: int) -> AttendanceTally:
        cached = self._cache.get(student_id)
        if cached is not None:
            return cached

        generation = self._cache.generation
        tally = self._aggregator.tally_student(self._attendance.list_for_student(int(student_id)), int(student_id))
        if not self._cache.put(student_id, tally, generation=generation):
            logger.debug("discarded stale tally for student %s", student_id)
        return tally

    def roster_with_attendance(self) -> list[dict]:
        rows = []
        for view in self._students.list_views():
            percentage = self.overall_tally(view.student_id).percentage
            rows.append(
                {
                    "id": view.student_id,
                    "userId": view.student.user_id,
                    "name": view.name,
                    "email": view.email,
                    "rollNo": view.student.roll_no,
                    "department": view.student.department.value,
                    "year": view.student.year,
                    "overallPercentage": percentage,
                    "eligibility": self._policy.classify(percentage).value,
                }
            )
        return rows

    def detained_count(self) -> int:
        return sum(
            1
            for view in self._students.list_views()
            if self._policy.is_detained(self.overall_tally(view.student_id).percentage)
        )
