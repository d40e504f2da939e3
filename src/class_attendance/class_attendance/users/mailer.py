from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, *, to: str, subject: str, html: str) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class SMTPSettings:
    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    sender: str = "Class Attendance <no-reply@example.com>"
    timeout: int = 15


class SMTPMailer:
    """Send HTML mail through an SMTP relay (STARTTLS on 587 by default)."""

    def __init__(self, settings: SMTPSettings):
        self._settings = settings

    def send(self, *, to: str, subject: str, html: str) -> None:
        s = self._settings
        msg = EmailMessage()
        msg["From"] = s.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(s.host, s.port, timeout=s.timeout) as smtp:
            if s.use_tls:
                smtp.starttls()
            if s.username:
                smtp.login(s.username, s.password)
            smtp.send_message(msg)
        logger.info("mail %r sent to %s", subject, to)


class LogMailer:
    """Fallback mailer: logs that a message was not sent instead of sending it.

    The body may carry a live reset link, so it is only logged when
    ``include_body`` is set (debug builds).
    """

    def __init__(self, *, include_body: bool = False):
        self._include_body = include_body

    def send(self, *, to: str, subject: str, html: str) -> None:
        if self._include_body:
            logger.warning("SMTP not configured, mail to %s not sent. subject=%r body=%s", to, subject, html)
        else:
            logger.warning("SMTP not configured, mail to %s not sent. subject=%r", to, subject)
