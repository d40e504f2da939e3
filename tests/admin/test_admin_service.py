from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.admin.service import AdminService
from src.class_attendance.class_attendance.attendance.reports import ReportService
from src.class_attendance.class_attendance.attendance.tally_cache import TallyCache
from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.core.exceptions import NotFoundError
from tests.fakes import RecordingNotifier, Store


@pytest.fixture()
def store():
    return Store()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def service(store, notifier):
    reports = ReportService(store.attendance, store.classes, store.students, cache=TallyCache())
    return AdminService(store.users, store.classes, reports, notifier=notifier)


def test_delete_teacher_orphans_both_classes(service, store, notifier):
    teacher = store.add_user("Tina", "tina@example.com", Role.TEACHER)
    a = store.add_student("Alice", "alice@example.com")
    first = store.add_class(teacher, "CS101", "Programming", students=[a])
    second = store.add_class(teacher, "CS102", "Data Structures")

    orphaned = service.delete_teacher(teacher_id=teacher.user_id)

    assert orphaned == 2
    assert store.users.get_by_id(teacher.user_id) is None
    assert store.classes.get_by_id(first.class_id).teacher_id is None
    assert store.classes.get_by_id(second.class_id).teacher_id is None
    assert store.classes.get_by_id(first.class_id).student_ids == (a.student_id,)
    assert notifier.events == [("Teacher Tina deleted", "System")]


def test_delete_teacher_requires_teacher_role(service, store):
    student = store.add_user("Stu", "stu@example.com")
    with pytest.raises(NotFoundError):
        service.delete_teacher(teacher_id=student.user_id)
    with pytest.raises(NotFoundError):
        service.delete_teacher(teacher_id=404)
    assert store.users.get_by_id(student.user_id) is not None


def test_list_classes_shows_na_for_orphaned(service, store):
    teacher = store.add_user("Tina", "tina@example.com", Role.TEACHER)
    gone = store.add_user("Gone", "gone@example.com", Role.TEACHER)
    a = store.add_student("Alice", "alice@example.com")
    kept = store.add_class(teacher, "CS101", "Programming", students=[a])
    orphan = store.add_class(gone, "ME201", "Thermodynamics")
    service.delete_teacher(teacher_id=gone.user_id)

    rows = {r["id"]: r for r in service.list_classes()}

    assert rows[kept.class_id] == {
        "id": kept.class_id, "name": "CS101", "subject": "Programming", "teacherName": "Tina", "studentCount": 1
    }
    assert rows[orphan.class_id]["teacherName"] == "N/A"


def test_list_teachers_with_classes(service, store):
    teacher = store.add_user("Tina", "tina@example.com", Role.TEACHER)
    store.add_user("Idle", "idle@example.com", Role.TEACHER)
    course = store.add_class(teacher)

    teachers = {t["email"]: t for t in service.list_teachers()}

    assert teachers["tina@example.com"]["classes"] == [{"id": course.class_id, "name": "CS101", "subject": "Programming"}]
    assert teachers["idle@example.com"]["classes"] == []


def test_students_and_detained_count(service, store):
    store.add_student("Alice", "alice@example.com")
    assert service.detained_count() == 0
    assert service.list_students()[0]["overallPercentage"] == 100.0
