# eventix/notifier.py
"""Outbound email through Resend.

Bodies are rendered from the Jinja2 templates under ``templates/emails``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Tuple

import resend
from fastapi.templating import Jinja2Templates

from . import config
from .errors import InvalidInputError, NotificationError

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))


def render(template_name: str, **context: Any) -> str:
    return templates.get_template(f"emails/{template_name}").render(**context)


class Notifier(Protocol):
    def send(
        self,
        to: str,
        subject: str,
        html: Optional[str] = None,
        text: Optional[str] = None,
    ) -> str:
        ...


class ResendNotifier:
    def __init__(self, api_key: Optional[str], from_address: str):
        self.api_key = api_key
        self.from_address = from_address

    def send(
        self,
        to: str,
        subject: str,
        html: Optional[str] = None,
        text: Optional[str] = None,
    ) -> str:
        """Send one message and return the provider message id."""
        if not html and not text:
            raise InvalidInputError("Email needs an html or text body")
        if not self.api_key:
            raise NotificationError("Email service not configured")

        params: Dict[str, Any] = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html or text,
        }
        if text:
            params["text"] = text

        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            raise NotificationError(f"Failed to send email to {to}: {e}") from e

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info("Email %s sent to %s", message_id, to)
        return message_id or ""


def send_event_reminders(notifier: Notifier, event: Any, recipients: List[str]) -> Tuple[List[str], List[str]]:
    """Best-effort fan-out; returns ``(sent, failed)`` recipient lists."""
    html = render("event_reminder.html", event=event)
    sent, failed = [], []
    for recipient in recipients:
        try:
            notifier.send(to=recipient, subject=f"Reminder: {event.title}", html=html)
        except NotificationError as e:
            logger.warning("Reminder for event %s to %s failed: %s", event.id, recipient, e)
            failed.append(recipient)
        else:
            sent.append(recipient)
    return sent, failed


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = ResendNotifier(config.RESEND_API_KEY, config.EMAIL_FROM_ADDRESS)
    return _notifier
