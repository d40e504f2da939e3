from __future__ import annotations

from datetime import date

import pytest

from src.class_attendance.class_attendance.attendance.aggregator import AttendanceTally
from src.class_attendance.class_attendance.attendance.model import AttendanceEntry
from src.class_attendance.class_attendance.attendance.service import AttendanceService
from src.class_attendance.class_attendance.attendance.tally_cache import TallyCache
from src.class_attendance.class_attendance.core.enums import AttendanceStatus, Role
from src.class_attendance.class_attendance.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from tests.fakes import InMemoryAttendance, RecordingNotifier, Store


@pytest.fixture()
def store():
    return Store()


@pytest.fixture()
def setup(store):
    teacher = store.add_user("Tina Teacher", "tina@example.com", Role.TEACHER)
    a = store.add_student("Alice", "alice@example.com", roll_no="A1")
    b = store.add_student("Bob", "bob@example.com", roll_no="B1")
    course = store.add_class(teacher, "CS101", "Programming", students=[a, b])
    cache = TallyCache()
    notifier = RecordingNotifier()
    service = AttendanceService(store.attendance, store.classes, store.students, cache=cache, notifier=notifier)
    return service, teacher, course, a, b, cache, notifier


def _mark(service, teacher, course, records, day="2026-03-02"):
    return service.mark_attendance(
        current_role=Role.TEACHER,
        user_id=teacher.user_id,
        class_id=course.class_id,
        date=day,
        records=records,
    )


def test_mark_creates_sheet_and_notifies(setup):
    service, teacher, course, a, b, _, notifier = setup

    sheet = _mark(service, teacher, course, [
        {"studentId": a.student_id, "status": "Present"},
        {"studentId": b.student_id, "status": "Absent"},
    ])

    assert sheet["classId"] == course.class_id
    assert sheet["date"] == "2026-03-02"
    assert sheet["records"] == [
        {"studentId": a.student_id, "status": "Present"},
        {"studentId": b.student_id, "status": "Absent"},
    ]
    assert notifier.events == [("Attendance marked for CS101", "System")]


def test_mark_is_idempotent_per_class_and_date(setup, store):
    service, teacher, course, a, b, _, _ = setup
    records = [{"studentId": a.student_id, "status": "Present"}]

    first = _mark(service, teacher, course, records)
    second = _mark(service, teacher, course, records)

    assert first == second
    assert len(store.attendance.sheets) == 1


def test_second_mark_changes_only_the_given_subset(setup):
    service, teacher, course, a, b, _, _ = setup
    _mark(service, teacher, course, [
        {"studentId": a.student_id, "status": "Present"},
        {"studentId": b.student_id, "status": "Present"},
    ])

    sheet = _mark(service, teacher, course, [{"studentId": b.student_id, "status": "Late"}])

    assert sheet["records"] == [
        {"studentId": a.student_id, "status": "Present"},
        {"studentId": b.student_id, "status": "Late"},
    ]


def test_datetime_input_is_truncated_to_the_day(setup, store):
    service, teacher, course, a, _, _, _ = setup
    _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}], day="2026-03-02T15:30:00Z")
    _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Absent"}], day="2026-03-02")

    assert len(store.attendance.sheets) == 1
    assert store.attendance.get_sheet(class_id=course.class_id, sheet_date=date(2026, 3, 2)) is not None


def test_duplicate_student_in_one_request_last_wins(setup):
    service, teacher, course, a, _, _, _ = setup
    sheet = _mark(service, teacher, course, [
        {"studentId": a.student_id, "status": "Present"},
        {"studentId": a.student_id, "status": "Absent"},
    ])
    assert sheet["records"] == [{"studentId": a.student_id, "status": "Absent"}]


@pytest.mark.parametrize(
    "records",
    [
        [],
        None,
        [{"studentId": 1, "status": "Excused"}],
        [{"status": "Present"}],
        ["not-an-object"],
        [{"studentId": 1.5, "status": "Present"}],
        [{"studentId": True, "status": "Present"}],
    ],
)
def test_invalid_records_are_rejected(setup, records):
    service, teacher, course, _, _, _, _ = setup
    with pytest.raises(ValidationError):
        _mark(service, teacher, course, records)


def test_student_not_on_roster_is_rejected(setup, store):
    service, teacher, course, a, _, _, _ = setup
    outsider = store.add_student("Olga", "olga@example.com")
    with pytest.raises(ValidationError):
        _mark(service, teacher, course, [
            {"studentId": a.student_id, "status": "Present"},
            {"studentId": outsider.student_id, "status": "Present"},
        ])
    assert store.attendance.sheets == {}


def test_invalid_date_is_rejected(setup):
    service, teacher, course, a, _, _, _ = setup
    with pytest.raises(ValidationError):
        _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}], day="02/03/2026")


@pytest.mark.parametrize("day", [20260302, ["2026-03-02"], {"d": 1}, "2026-03-02garbage"])
def test_malformed_date_is_a_validation_error(setup, store, day):
    service, teacher, course, a, _, _, _ = setup
    with pytest.raises(ValidationError):
        _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}], day=day)
    assert store.attendance.sheets == {}


def test_integral_float_student_id_is_accepted(setup):
    service, teacher, course, a, _, _, _ = setup
    sheet = _mark(service, teacher, course, [{"studentId": float(a.student_id), "status": "Present"}])
    assert sheet["records"][0]["studentId"] == a.student_id


def test_only_owner_may_mark(setup, store):
    service, _, course, a, _, _, _ = setup
    other = store.add_user("Other", "other@example.com", Role.TEACHER)
    with pytest.raises(AuthorizationError):
        _mark(service, other, course, [{"studentId": a.student_id, "status": "Present"}])


def test_unknown_class_is_not_found(setup):
    service, teacher, _, a, _, _, _ = setup
    with pytest.raises(NotFoundError):
        service.mark_attendance(
            current_role=Role.TEACHER,
            user_id=teacher.user_id,
            class_id=999,
            date="2026-03-02",
            records=[{"studentId": a.student_id, "status": "Present"}],
        )


def test_mark_invalidates_cached_tallies_of_touched_students(setup):
    service, teacher, course, a, b, cache, _ = setup
    cache.put(a.student_id, AttendanceTally(present=5))
    cache.put(b.student_id, AttendanceTally(present=5))

    _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Absent"}])

    assert cache.get(a.student_id) is None
    assert cache.get(b.student_id) == AttendanceTally(present=5)


class RacingAttendance(InMemoryAttendance):
    """Simulates another request creating the same sheet between read and insert."""

    def __init__(self, classes, users, rival_records):
        super().__init__(classes, users)
        self._rival_records = rival_records

    def create_sheet(self, *, class_id, sheet_date, records):
        if self._rival_records is not None:
            rival, self._rival_records = self._rival_records, None
            super().create_sheet(class_id=class_id, sheet_date=sheet_date, records=rival)
        return super().create_sheet(class_id=class_id, sheet_date=sheet_date, records=records)


def test_concurrent_creator_is_merged_into(store):
    teacher = store.add_user("Tina", "tina@example.com", Role.TEACHER)
    a = store.add_student("Alice", "alice@example.com")
    b = store.add_student("Bob", "bob@example.com")
    course = store.add_class(teacher, students=[a, b])
    racing = RacingAttendance(
        store.classes, store.users, [AttendanceEntry(student_id=b.student_id, status=AttendanceStatus.LATE)]
    )
    service = AttendanceService(racing, store.classes, store.students, cache=TallyCache())

    sheet = _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}])

    assert len(racing.sheets) == 1
    assert sheet["records"] == [
        {"studentId": b.student_id, "status": "Late"},
        {"studentId": a.student_id, "status": "Present"},
    ]


def test_get_class_attendance_returns_names_or_none(setup, store):
    service, teacher, course, a, _, _, _ = setup
    assert service.get_class_attendance(
        current_role=Role.TEACHER, user_id=teacher.user_id, class_id=course.class_id, date="2026-03-02"
    ) is None

    _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}])
    sheet = service.get_class_attendance(
        current_role=Role.TEACHER, user_id=teacher.user_id, class_id=course.class_id, date="2026-03-02"
    )
    assert sheet["records"] == [{"studentId": a.student_id, "status": "Present", "name": "Alice", "rollNo": "A1"}]

    other = store.add_user("Other", "other@example.com", Role.TEACHER)
    with pytest.raises(AuthorizationError):
        service.get_class_attendance(
            current_role=Role.TEACHER, user_id=other.user_id, class_id=course.class_id, date="2026-03-02"
        )


def test_student_history_newest_first_with_orphaned_class(setup, store):
    service, teacher, course, a, b, _, _ = setup
    _mark(service, teacher, course, [{"studentId": a.student_id, "status": "Present"}], day="2026-03-02")
    _mark(service, teacher, course, [
        {"studentId": a.student_id, "status": "Late"},
        {"studentId": b.student_id, "status": "Absent"},
    ], day="2026-03-03")
    store.classes.detach_teacher(teacher.user_id)

    history = service.get_student_history(
        current_role=Role.STUDENT, user_id=a.user_id, student_user_id=a.user_id
    )

    assert [h["date"] for h in history] == ["2026-03-03", "2026-03-02"]
    assert history[0]["class"] == {"id": course.class_id, "name": "CS101", "subject": "Programming", "teacher": "N/A"}
    assert history[0]["records"] == [{"studentId": a.student_id, "status": "Late"}]


def test_student_cannot_read_someone_elses_history(setup):
    service, _, _, a, b, _, _ = setup
    with pytest.raises(AuthorizationError):
        service.get_student_history(current_role=Role.STUDENT, user_id=a.user_id, student_user_id=b.user_id)


def test_history_requires_student_profile(setup, store):
    service, teacher, _, _, _, _, _ = setup
    with pytest.raises(NotFoundError):
        service.get_student_history(
            current_role=Role.TEACHER, user_id=teacher.user_id, student_user_id=teacher.user_id
        )
