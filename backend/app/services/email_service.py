"""
Reminder email rendering and dispatch.
"""

import os
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Optional
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.services.interfaces.mail_transport import MailTransport
from app.core.config import get_settings
from app.core.metrics import record_reminder_email
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

BRAND_NAME = "Eventful"

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), '../templates')
templates = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)


def format_event_date(value: str, tz_name: Optional[str] = None) -> str:
    """
    '2026-06-15T18:00:00+00:00' -> 'Monday June 15, 2026'

    The instant is shown in the reminder timezone, the same zone the daily
    pass uses for "today". Naive values are taken as UTC.
    """
    date = datetime.fromisoformat(value)
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    date = date.astimezone(ZoneInfo(tz_name or settings.REMINDER_TIMEZONE))
    return f"{date:%A %B} {date.day}, {date:%Y}"


def build_reminder_message(reminder: dict[str, Any], event: dict[str, Any]) -> EmailMessage:
    html = templates.get_template("reminder_email.html").render(
        brand=BRAND_NAME,
        title=event["title"],
        date=format_event_date(event["date"]),
        location=event["location"],
        year=datetime.now(timezone.utc).year,
    )

    message = EmailMessage()
    message["From"] = formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM_ADDRESS))
    message["To"] = reminder["email"]
    message["Subject"] = f"Reminder: {event['title']} is coming up!"
    message.set_content(
        f"Reminder: {event['title']} takes place on {format_event_date(event['date'])} "
        f"at {event['location']}."
    )
    message.add_alternative(html, subtype="html")
    return message


async def dispatch_reminder(
    reminder: dict[str, Any],
    event: dict[str, Any],
    transport: MailTransport,
) -> dict[str, Any]:
    """
    Send one reminder email.

    Failures are logged and re-raised so the queue records the task as
    failed. The reminder stays marked sent either way.
    """
    message = build_reminder_message(reminder, event)
    try:
        info = await transport.send(message)
    except Exception as e:
        logger.error(
            "reminder_email_failed",
            reminder_id=reminder.get("id"),
            event_id=event.get("id"),
            to=reminder["email"],
            error=str(e),
        )
        record_reminder_email(sent=False)
        raise

    record_reminder_email(sent=True)
    logger.info(
        "reminder_email_sent",
        reminder_id=reminder.get("id"),
        event_id=event.get("id"),
        to=reminder["email"],
        response=info.get("response"),
    )
    return info
