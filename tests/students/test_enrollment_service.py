from __future__ import annotations

import threading
import time

import pytest
from werkzeug.security import check_password_hash

from src.class_attendance.class_attendance.core.enums import Department, Role
from src.class_attendance.class_attendance.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.class_attendance.class_attendance.students.model import Profiled, Unprofiled
from src.class_attendance.class_attendance.students.service import EnrollmentService, StudentService
from tests.fakes import RecordingNotifier, Store


@pytest.fixture()
def store():
    return Store()


@pytest.fixture()
def teacher(store):
    return store.add_user("Tina", "tina@example.com", Role.TEACHER)


@pytest.fixture()
def course(store, teacher):
    return store.add_class(teacher, "CS101", "Programming")


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def service(store, notifier):
    return EnrollmentService(
        store.users, store.students, store.classes, default_password="password123", notifier=notifier, batch_size=20
    )


def _add(service, teacher, course, **overrides):
    data = dict(name="Neo Student", email="neo@example.com", roll_no="CS-01", year="2", department="cse")
    data.update(overrides)
    return service.add_student_to_class(
        current_role=Role.TEACHER, user_id=teacher.user_id, class_id=course.class_id, **data
    )


def test_new_email_creates_user_and_student_and_enrolls(service, store, teacher, course, notifier):
    student = _add(service, teacher, course)

    user = store.users.get_by_email("neo@example.com")
    assert user.role == Role.STUDENT
    assert check_password_hash(user.password_hash, "password123")
    assert student["department"] == "CSE"
    assert student["year"] == 2
    assert store.classes.get_by_id(course.class_id).student_ids == (student["id"],)
    assert notifier.events == [("Student enrolled in CS101", "Neo Student")]


def test_repeat_enrollment_is_conflict(service, teacher, course, store):
    _add(service, teacher, course)
    with pytest.raises(ConflictError):
        _add(service, teacher, course)
    assert len(store.classes.get_by_id(course.class_id).student_ids) == 1


def test_existing_unprofiled_user_is_promoted(service, store, teacher, course):
    user = store.add_user("Existing", "existing@example.com")
    assert isinstance(service.resolve_profile(user), Unprofiled)

    _add(service, teacher, course, email="existing@example.com", name="Ignored Name")

    profile = service.resolve_profile(user)
    assert isinstance(profile, Profiled)
    assert profile.student.roll_no == "CS-01"
    assert store.users.count() == 2


def test_existing_student_joins_second_class(service, store, teacher, course):
    _add(service, teacher, course)
    second = store.add_class(teacher, "CS102", "Data Structures")
    _add(service, teacher, second)
    assert store.students.count() == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"email": ""},
        {"roll_no": "  "},
        {"year": None},
        {"department": ""},
        {"email": "not-an-email"},
        {"year": "5"},
        {"department": "ARTS"},
    ],
)
def test_invalid_fields_are_rejected(service, teacher, course, overrides):
    with pytest.raises(ValidationError):
        _add(service, teacher, course, **overrides)


def test_only_owner_may_enroll(service, store, course):
    other = store.add_user("Other", "other@example.com", Role.TEACHER)
    with pytest.raises(AuthorizationError):
        _add(service, other, course)


def _row(i, **overrides):
    row = {"name": f"Student {i}", "email": f"s{i}@example.com", "rollno": f"R{i}", "year": "1", "department": "ECE"}
    row.update(overrides)
    return row


def _bulk(service, teacher, course, rows):
    return service.bulk_register(current_role=Role.TEACHER, user_id=teacher.user_id, class_id=course.class_id, rows=rows)


def test_bulk_missing_field_reports_exactly_that_row(service, teacher, course, store):
    rows = [_row(1), _row(2, year=""), _row(3)]

    result = _bulk(service, teacher, course, rows)

    assert result.processed == 3
    assert result.enrolled == 2
    assert [e.to_dict() for e in result.errors] == [
        {"row": 2, "email": "s2@example.com", "reason": "Missing required fields (name, email, rollNo, year, department)."}
    ]
    assert len(store.classes.get_by_id(course.class_id).student_ids) == 2


def test_bulk_missing_email_is_reported_as_na(service, teacher, course):
    result = _bulk(service, teacher, course, [_row(1, email="")])
    assert result.errors[0].email == "N/A"


def test_bulk_duplicate_email_first_occurrence_wins(service, teacher, course, store):
    rows = [_row(1), _row(2, email="s1@example.com", name="Copy")]

    result = _bulk(service, teacher, course, rows)

    assert result.enrolled == 1
    assert result.errors[0].row == 2
    assert "Duplicate email" in result.errors[0].reason
    assert store.users.get_by_email("s1@example.com").name == "Student 1"


def test_bulk_invalid_year_department_and_already_enrolled(service, teacher, course):
    _add(service, teacher, course, email="s3@example.com")

    result = _bulk(service, teacher, course, [_row(1, year="9"), _row(2, department="XYZ"), _row(3)])

    assert result.enrolled == 0
    assert [e.row for e in result.errors] == [1, 2, 3]
    assert result.errors[2].reason == "Student is already enrolled in this class."


def test_bulk_spans_several_batches_and_notifies_once(service, teacher, course, store, notifier):
    rows = [_row(i) for i in range(1, 46)]

    result = _bulk(service, teacher, course, rows)

    assert result.processed == 45
    assert result.enrolled == 45
    assert result.errors == ()
    assert len(store.classes.get_by_id(course.class_id).student_ids) == 45
    assert notifier.events == [("45 students imported into CS101", "System")]


def test_bulk_with_nothing_enrolled_does_not_notify(service, teacher, course, notifier):
    _bulk(service, teacher, course, [_row(1, name="")])
    assert notifier.events == []


def test_bulk_store_failure_is_collected_per_row(store, teacher, course):
    class FlakyStudents(type(store.students)):
        def create_student(self, *, user_id, roll_no, year, department):
            if roll_no == "R2":
                raise RuntimeError("connection lost")
            return super().create_student(user_id=user_id, roll_no=roll_no, year=year, department=department)

    flaky = FlakyStudents(store.users)
    service = EnrollmentService(store.users, flaky, store.classes, default_password="password123")

    result = _bulk(service, teacher, course, [_row(1), _row(2), _row(3)])

    assert result.enrolled == 2
    assert result.errors[0].row == 2
    assert result.errors[0].reason == "Database error: connection lost"


def test_bulk_never_runs_more_store_calls_than_allowed_workers(store, teacher, course):
    class BorrowLimitedUsers(type(store.users)):
        def __init__(self, limit):
            super().__init__()
            self.limit = limit
            self.active = 0
            self.peak = 0
            self._gate = threading.Lock()

        def get_by_email(self, email):
            with self._gate:
                self.active += 1
                self.peak = max(self.peak, self.active)
                if self.active > self.limit:
                    self.active -= 1
                    raise RuntimeError("Failed getting connection; pool exhausted")
            try:
                time.sleep(0.01)
                return super().get_by_email(email)
            finally:
                with self._gate:
                    self.active -= 1

    users = BorrowLimitedUsers(limit=2)
    students = type(store.students)(users)
    service = EnrollmentService(users, students, store.classes, default_password="password123", max_workers=2)

    result = _bulk(service, teacher, course, [_row(i) for i in range(1, 21)])

    assert result.errors == ()
    assert result.enrolled == 20
    assert users.peak <= 2


def test_bulk_result_payload(service, teacher, course):
    payload = _bulk(service, teacher, course, [_row(1), _row(2, name="")]).to_dict()
    assert payload["success"] is True
    assert payload["processed"] == 2
    assert payload["enrolled"] == 1
    assert payload["summary"] == "1 students enrolled successfully, 1 failed or were skipped."


def test_bulk_requires_ownership(service, store, course):
    other = store.add_user("Other", "other@example.com", Role.TEACHER)
    with pytest.raises(AuthorizationError):
        _bulk(service, other, course, [_row(1)])


def test_student_profile_reads(store):
    s = store.add_student("Alice", "alice@example.com", roll_no="A1", department=Department.MECH)
    service = StudentService(store.students)

    assert service.get_my_profile(user_id=s.user_id) == s
    assert service.get_student_info(student_id=s.student_id).to_dict()["name"] == "Alice"
    with pytest.raises(NotFoundError):
        service.get_my_profile(user_id=999)
    with pytest.raises(NotFoundError):
        service.get_student_info(student_id=999)
