from __future__ import annotations

import logging
from types import SimpleNamespace

from src.class_attendance.class_attendance.container import _build_mailer
from src.class_attendance.class_attendance.users.mailer import LogMailer, SMTPMailer

RESET_HTML = '<a href="http://front.test/reset-password/abc123secret">Reset</a>'


def test_log_mailer_keeps_reset_link_out_of_the_log(caplog):
    caplog.set_level(logging.WARNING)

    LogMailer().send(to="neo@example.com", subject="Password Reset Request", html=RESET_HTML)

    assert "neo@example.com" in caplog.text
    assert "Password Reset Request" in caplog.text
    assert "abc123secret" not in caplog.text


def test_log_mailer_writes_body_only_when_asked(caplog):
    caplog.set_level(logging.WARNING)
    LogMailer(include_body=True).send(to="neo@example.com", subject="Reset", html=RESET_HTML)
    assert "abc123secret" in caplog.text


def test_mailer_choice_follows_settings(caplog):
    caplog.set_level(logging.WARNING)

    production = _build_mailer(SimpleNamespace(SMTP_HOST="", DEBUG=False))
    production.send(to="neo@example.com", subject="Reset", html=RESET_HTML)
    assert isinstance(production, LogMailer)
    assert "abc123secret" not in caplog.text

    assert isinstance(_build_mailer(SimpleNamespace(SMTP_HOST="smtp.example.com")), SMTPMailer)
