from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..classes.repository import ClassRepository
from ..classes.service import load_class, load_owned_class
from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_int
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..realtime.notifier import DashboardNotifier, NullNotifier
from ..students.repository import StudentRepository
from .model import AttendanceEntry, AttendanceSheet
from .repository import AttendanceRepository
from .tally_cache import TallyCache

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


def parse_status(value: Any) -> AttendanceStatus:
    text = str(value or "").strip()
    for status in AttendanceStatus:
        if text.lower() == status.value.lower():
            return status
    raise ValidationError(f"Invalid attendance status: {text or 'empty'}. Use Present, Absent or Late.")


def parse_records(raw: Any) -> list[AttendanceEntry]:
    """Validate a request's records; a student listed twice keeps its last status."""
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValidationError("Please provide class ID, date, and a non-empty records array.")

    by_student: dict[int, AttendanceStatus] = {}
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValidationError("Each attendance record must be an object with studentId and status.")
        sid = item.get("studentId", item.get("student_id"))
        try:
            student_id = require_int(sid, "studentId")
        except ValidationError:
            raise ValidationError("Each attendance record needs a valid studentId.")
        by_student[student_id] = parse_status(item.get("status"))

    return [AttendanceEntry(student_id=sid, status=status) for sid, status in by_student.items()]


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        students: StudentRepository,
        *,
        cache: TallyCache,
        notifier: Optional[DashboardNotifier] = None,
    ):
        self._attendance = attendance
        self._classes = classes
        self._students = students
        self._cache = cache
        self._notifier = notifier or NullNotifier()

    def _merge_or_create(self, *, class_id: int, sheet_date, entries: Sequence[AttendanceEntry]) -> None:
        sheet = self._attendance.get_sheet(class_id=class_id, sheet_date=sheet_date)
        if sheet is None:
            try:
                self._attendance.create_sheet(class_id=class_id, sheet_date=sheet_date, records=entries)
                return
            except ConflictError:
                # Another request created the sheet first; merge into it.
                sheet = self._attendance.get_sheet(class_id=class_id, sheet_date=sheet_date)
                if sheet is None:
                    raise
                logger.info("attendance sheet for class %s on %s created concurrently, merging", class_id, sheet_date)
        self._attendance.upsert_records(sheet_id=sheet.sheet_id, records=entries)

    def mark_attendance(
        self,
        *,
        current_role: Role,
        user_id: int,
        class_id: Any,
        date: Any,
        records: Any,
        actor: str = "System",
    ) -> dict:
        """Create or update the class's sheet for one day and return it.

        Entries already on the sheet get their status overwritten, new ones are
        appended, and students not mentioned keep what they had.
        """
        if class_id in (None, "") or not date:
            raise ValidationError("Please provide class ID, date, and a non-empty records array.")
        try:
            class_id = require_int(class_id, "classId")
        except ValidationError:
            raise ValidationError("Invalid class ID.")

        course = load_owned_class(
            self._classes, class_id=class_id, current_role=current_role, user_id=user_id, action="mark attendance for"
        )
        sheet_date = parse_iso_date(date)
        entries = parse_records(records)

        strangers = [e.student_id for e in entries if not course.has_student(e.student_id)]
        if strangers:
            raise ValidationError(
                "Students not enrolled in this class: " + ", ".join(str(s) for s in strangers)
            )

        self._merge_or_create(class_id=course.class_id, sheet_date=sheet_date, entries=entries)
        self._cache.invalidate(e.student_id for e in entries)

        sheet = self._attendance.get_sheet(class_id=course.class_id, sheet_date=sheet_date)
        if sheet is None:
            raise NotFoundError("Attendance sheet not found.")

        self._notifier.dashboard_changed(f"Attendance marked for {course.name}", actor=actor)
        return sheet.to_dict()

    def _with_names(self, sheet: AttendanceSheet) -> dict:
        views = {v.student_id: v for v in self._students.list_views([r.student_id for r in sheet.records])}
        data = sheet.to_dict()
        rows = []
        for r in sheet.records:
            row = r.to_dict()
            view = views.get(r.student_id)
            row["name"] = view.name if view else NOT_AVAILABLE
            row["rollNo"] = view.student.roll_no if view else NOT_AVAILABLE
            rows.append(row)
        data["records"] = rows
        return data

    def get_class_attendance(self, *, current_role: Role, user_id: int, class_id: int, date: Any) -> Optional[dict]:
        """One day's sheet with student names, or None when nothing was marked that day."""
        if not date:
            raise ValidationError("Please provide a date.")
        course = load_class(self._classes, class_id)
        if current_role == Role.TEACHER and not course.is_owned_by(user_id):
            raise AuthorizationError("Not authorized to view this class")

        sheet = self._attendance.get_sheet(class_id=course.class_id, sheet_date=parse_iso_date(date))
        return self._with_names(sheet) if sheet else None

    def get_student_history(self, *, current_role: Role, user_id: int, student_user_id: int) -> list[dict]:
        student = self._students.get_by_user_id(int(student_user_id))
        if not student:
            raise NotFoundError("Student profile not found.")
        if current_role == Role.STUDENT and int(user_id) != int(student_user_id):
            raise AuthorizationError("Not authorized to view this attendance history")

        return [
            {
                "id": row.sheet_id,
                "date": row.sheet_date.strftime("%Y-%m-%d"),
                "class": {
                    "id": row.class_id,
                    "name": row.class_name or NOT_AVAILABLE,
                    "subject": row.subject or NOT_AVAILABLE,
                    "teacher": row.teacher_name or NOT_AVAILABLE,
                },
                "records": [AttendanceEntry(student_id=student.student_id, status=row.status).to_dict()],
            }
            for row in self._attendance.history_for_student(student.student_id)
        ]
