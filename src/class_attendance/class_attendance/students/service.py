from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from werkzeug.security import generate_password_hash

from ..classes.repository import ClassRepository
from ..classes.service import load_owned_class
from ..common.validators import require_department, require_email, require_non_empty, require_year
from ..core.constants import BULK_BATCH_SIZE
from ..core.enums import Department, Role
from ..core.exceptions import ConflictError, DomainError, NotFoundError, ValidationError
from ..realtime.notifier import DashboardNotifier, NullNotifier
from ..users.model import User
from ..users.repository import UserRepository
from .model import Profiled, Student, StudentView, Unprofiled, UserProfile
from .repository import StudentRepository

logger = logging.getLogger(__name__)

MISSING_FIELDS_MSG = "Missing required fields (name, email, rollNo, year, department)."


@dataclass(frozen=True)
class NewStudent:
    name: str
    email: str
    roll_no: str
    year: int
    department: Department


@dataclass(frozen=True)
class RowError:
    row: Union[int, str]
    email: str
    reason: str

    def to_dict(self) -> dict:
        return {"row": self.row, "email": self.email, "reason": self.reason}


@dataclass(frozen=True)
class BulkImportResult:
    processed: int
    enrolled: int
    errors: tuple[RowError, ...]

    def to_dict(self) -> dict:
        return {
            "success": True,
            "msg": f"Bulk import complete. Processed {self.processed} records.",
            "summary": f"{self.enrolled} students enrolled successfully, {len(self.errors)} failed or were skipped.",
            "processed": self.processed,
            "enrolled": self.enrolled,
            "errors": [e.to_dict() for e in self.errors],
        }


def validate_new_student(*, name, email, roll_no, year, department) -> NewStudent:
    if not all(str(v).strip() if v is not None else "" for v in (name, email, roll_no, year, department)):
        raise ValidationError("Please provide name, email, roll number, year, and department.")
    return NewStudent(
        name=require_non_empty(name, "Name"),
        email=require_email(email),
        roll_no=require_non_empty(roll_no, "Roll number"),
        year=require_year(year),
        department=require_department(department),
    )


class EnrollmentService:
    """Use cases: enroll students into a class, one at a time or from a CSV."""

    def __init__(
        self,
        users: UserRepository,
        students: StudentRepository,
        classes: ClassRepository,
        *,
        default_password: str,
        notifier: Optional[DashboardNotifier] = None,
        batch_size: int = BULK_BATCH_SIZE,
        max_workers: Optional[int] = None,
    ):
        self._users = users
        self._students = students
        self._classes = classes
        self._default_password = default_password
        self._notifier = notifier or NullNotifier()
        self._batch_size = max(int(batch_size), 1)
        self._max_workers = max(int(max_workers), 1) if max_workers else self._batch_size

    def resolve_profile(self, user: User) -> UserProfile:
        student = self._students.get_by_user_id(user.user_id)
        return Profiled(user=user, student=student) if student else Unprofiled(user=user)

    def _promote(self, profile: UserProfile, data: NewStudent) -> Profiled:
        if isinstance(profile, Profiled):
            return profile
        student_id = self._students.create_student(
            user_id=profile.user.user_id,
            roll_no=data.roll_no,
            year=data.year,
            department=data.department,
        )
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student profile not found.")
        return Profiled(user=profile.user, student=student)

    def ensure_student(self, data: NewStudent) -> Profiled:
        """Find or create the user for ``data.email`` and make sure it has a student profile."""
        user = self._users.get_by_email(data.email)
        if not user:
            user_id = self._users.create_user(
                name=data.name,
                email=data.email,
                password_hash=generate_password_hash(self._default_password),
                role=Role.STUDENT,
            )
            user = self._users.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found.")
        return self._promote(self.resolve_profile(user), data)

    def add_student_to_class(
        self,
        *,
        current_role: Role,
        user_id: int,
        class_id: int,
        name: str,
        email: str,
        roll_no: str,
        year,
        department: str,
    ) -> dict:
        data = validate_new_student(name=name, email=email, roll_no=roll_no, year=year, department=department)
        course = load_owned_class(self._classes, class_id=class_id, current_role=current_role, user_id=user_id)

        profile = self.ensure_student(data)
        if course.has_student(profile.student.student_id):
            raise ConflictError("This student is already enrolled in this class.")

        self._classes.add_students(course.class_id, [profile.student.student_id])
        self._notifier.dashboard_changed(f"Student enrolled in {course.name}", actor=profile.user.name)

        return StudentView(student=profile.student, name=profile.user.name, email=profile.user.email).to_dict()

    def _check_row(self, row_no: int, row: Mapping[str, str], seen_emails: set[str]) -> Union[NewStudent, RowError]:
        name = row.get("name", "")
        email = (row.get("email") or "").strip().lower()
        roll_no = row.get("rollno", "")
        year = row.get("year", "")
        department = row.get("department", "")

        if not all((name, email, roll_no, year, department)):
            return RowError(row=row_no, email=email or "N/A", reason=MISSING_FIELDS_MSG)
        if email in seen_emails:
            return RowError(row=row_no, email=email, reason="Duplicate email within the CSV file. Skipping.")
        seen_emails.add(email)

        try:
            return validate_new_student(name=name, email=email, roll_no=roll_no, year=year, department=department)
        except ValidationError as e:
            return RowError(row=row_no, email=email, reason=str(e))

    def _enroll_row(self, row_no: int, data: NewStudent, roster: frozenset[int]) -> Union[int, RowError]:
        try:
            profile = self.ensure_student(data)
        except DomainError as e:
            return RowError(row=row_no, email=data.email, reason=str(e))
        except Exception as e:
            logger.warning("bulk import row %s (%s) failed: %s", row_no, data.email, e)
            return RowError(row=row_no, email=data.email, reason=f"Database error: {e}")

        if profile.student.student_id in roster:
            return RowError(row=row_no, email=data.email, reason="Student is already enrolled in this class.")
        return profile.student.student_id

    def bulk_register(
        self,
        *,
        current_role: Role,
        user_id: int,
        class_id: int,
        rows: Sequence[Mapping[str, str]],
    ) -> BulkImportResult:
        """Enroll every valid CSV row; failures are reported per row and never abort the import.

        Rows are handled in batches of ``batch_size``. Validation and the
        within-file duplicate check run in row order, then the store work of a
        batch runs concurrently on at most ``max_workers`` threads.
        """
        course = load_owned_class(self._classes, class_id=class_id, current_role=current_role, user_id=user_id)
        roster = frozenset(course.student_ids)

        enrolled: list[int] = []
        errors: list[RowError] = []
        seen_emails: set[str] = set()

        for start in range(0, len(rows), self._batch_size):
            batch = rows[start:start + self._batch_size]
            checked = [(start + i + 1, self._check_row(start + i + 1, row, seen_emails)) for i, row in enumerate(batch)]
            valid = [(row_no, data) for row_no, data in checked if isinstance(data, NewStudent)]
            errors.extend(data for _, data in checked if isinstance(data, RowError))
            if not valid:
                continue

            workers = min(len(valid), self._max_workers)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bulk-import") as pool:
                futures = [(row_no, data, pool.submit(self._enroll_row, row_no, data, roster)) for row_no, data in valid]
                for row_no, data, fut in futures:
                    try:
                        outcome = fut.result()
                    except Exception as e:
                        outcome = RowError(row="N/A", email="N/A", reason=f"An unexpected error occurred: {e}")
                    if isinstance(outcome, RowError):
                        errors.append(outcome)
                    elif outcome not in enrolled:
                        enrolled.append(outcome)

        if enrolled:
            self._classes.add_students(course.class_id, enrolled)
            self._notifier.dashboard_changed(f"{len(enrolled)} students imported into {course.name}")

        errors.sort(key=lambda e: e.row if isinstance(e.row, int) else len(rows) + 1)
        logger.info(
            "bulk import into class %s: %d rows, %d enrolled, %d errors",
            course.class_id, len(rows), len(enrolled), len(errors),
        )
        return BulkImportResult(processed=len(rows), enrolled=len(enrolled), errors=tuple(errors))


class StudentService:
    """Use cases: student profile reads."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def get_my_profile(self, *, user_id: int) -> Student:
        student = self._students.get_by_user_id(int(user_id))
        if not student:
            raise NotFoundError("Student profile not found.")
        return student

    def get_student_info(self, *, student_id: int) -> StudentView:
        views = self._students.list_views([int(student_id)])
        if not views:
            raise NotFoundError("Student not found")
        return views[0]
