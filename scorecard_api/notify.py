# scorecard_api/notify.py
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Protocol, Tuple

from scorecard_api.config import NOTIFY_TO, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_USER

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, subject: str, body: str) -> None: ...


class LogNotifier:
    """Used when SMTP is not configured."""

    def notify(self, subject: str, body: str) -> None:
        logger.info("[notify] %s: %s", subject, body)


class EmailNotifier:
    def __init__(
        self,
        host: str,
        port: int,
        to_addr: str,
        user: str = "",
        password: str = "",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.to_addr = to_addr
        self.user = user
        self.password = password
        self.timeout = timeout

    def notify(self, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.user or self.to_addr
        msg["To"] = self.to_addr
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)


def default_notifier() -> Notifier:
    if SMTP_HOST:
        return EmailNotifier(SMTP_HOST, SMTP_PORT, NOTIFY_TO, SMTP_USER, SMTP_PASSWORD)
    return LogNotifier()


def safe_notify(notifier: Optional[Notifier], subject: str, body: str) -> bool:
    """Fire-and-forget: a failing sink is logged, never raised."""
    if notifier is None:
        return False
    try:
        notifier.notify(subject, body)
        return True
    except Exception as e:
        logger.warning("Notification %r failed: %s", subject, e)
        return False


def new_player_message(name: str) -> Tuple[str, str]:
    return (
        f"New Player Added: {name}",
        f"A new player named {name} has been added to the database.",
    )
