from __future__ import annotations

from datetime import datetime

from src.class_attendance.class_attendance.core.enums import Role
from src.class_attendance.class_attendance.realtime.notifier import NotifierRelay
from src.class_attendance.class_attendance.realtime.socketio_notifier import SocketIODashboardNotifier
from src.class_attendance.class_attendance.realtime.stats import DashboardStatsService
from tests.fakes import RecordingNotifier, Store


class FakeSocketIO:
    def __init__(self, *, fail: bool = False):
        self.emitted: list[tuple[str, dict, dict]] = []
        self.fail = fail

    def emit(self, event, data, **kwargs):
        if self.fail:
            raise ConnectionError("broken pipe")
        self.emitted.append((event, data, kwargs))


def _stats():
    store = Store()
    teacher = store.add_user("Tina", "tina@example.com", Role.TEACHER)
    store.add_user("Unprofiled", "u@example.com")
    a = store.add_student("Alice", "alice@example.com")
    store.add_class(teacher, students=[a])
    return DashboardStatsService(store.users, store.students, store.classes)


def test_broadcast_payload_has_fresh_counts_and_activity():
    socketio = FakeSocketIO()
    notifier = SocketIODashboardNotifier(socketio, _stats(), clock=lambda: datetime(2026, 3, 2, 14, 5, 9))

    notifier.dashboard_changed("Class CS101 created", actor="Tina")

    event, payload, kwargs = socketio.emitted[0]
    assert event == "dashboard_update"
    assert kwargs == {}
    assert payload == {
        "stats": {"totalUsers": 3, "totalTeachers": 1, "totalStudents": 1, "totalClasses": 1},
        "latestActivity": {"action": "Class CS101 created", "user": "Tina", "time": "14:05:09"},
    }


def test_emit_to_single_client():
    socketio = FakeSocketIO()
    SocketIODashboardNotifier(socketio, _stats()).emit("System stats refreshed", to="sid-1")
    assert socketio.emitted[0][2] == {"to": "sid-1"}


def test_broadcast_failure_is_logged_not_raised(caplog):
    notifier = SocketIODashboardNotifier(FakeSocketIO(fail=True), _stats())

    notifier.dashboard_changed("anything")

    assert "error emitting dashboard data" in caplog.text


def test_relay_forwards_to_attached_notifier():
    relay = NotifierRelay()
    relay.dashboard_changed("dropped")

    target = RecordingNotifier()
    relay.attach(target)
    relay.dashboard_changed("Teacher deleted", actor="Admin")

    assert target.events == [("Teacher deleted", "Admin")]
