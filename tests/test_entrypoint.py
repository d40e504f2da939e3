from __future__ import annotations

import pytest

from src.class_attendance.class_attendance import main


class RecordingSocketIO:
    def __init__(self):
        self.calls = []

    def run(self, app, **kwargs):
        self.calls.append(kwargs)


class StubApp:
    def __init__(self, debug):
        self.config = {"DEBUG": debug}
        self.extensions = {"socketio": RecordingSocketIO()}


@pytest.mark.parametrize("debug", [True, False])
def test_unsafe_werkzeug_only_allowed_in_debug(monkeypatch, debug):
    app = StubApp(debug)
    monkeypatch.setattr(main, "create_app", lambda: app)
    monkeypatch.setenv("PORT", "5055")

    main.run()

    (call,) = app.extensions["socketio"].calls
    assert call["allow_unsafe_werkzeug"] is debug
    assert call["debug"] is debug
    assert call["port"] == 5055
