"""
Reminder scheduler: finds today's unsent reminders and hands each one to
the email worker.

Delivery guarantee is at-most-once per reminder. A reminder is marked sent
as soon as its task is enqueued and the mark is committed once per event,
before any email goes out; a later send failure does not unmark it.
Reminders whose enqueue fails stay unsent and are picked up by the next
pass on the same day.
"""

from datetime import datetime
from itertools import groupby
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event
from app.models.reminder import Reminder, REMINDER_DATE_FORMAT
from app.services.event_service import as_utc
from app.services.interfaces.task_queue import TaskQueue
from app.core.config import get_settings
from app.core.metrics import reminders_enqueued, reminder_enqueue_errors
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

SEND_REMINDER_TASK = "send_reminder_email"


def today_string(tz_name: Optional[str] = None) -> str:
    """Today's date as used by reminders (DD/MM/YYYY) in the reminder timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.REMINDER_TIMEZONE)).strftime(REMINDER_DATE_FORMAT)


def event_snapshot(event: Event) -> dict:
    return {
        "id": event.id,
        "title": event.title,
        "location": event.location,
        "category": event.category,
        "description": event.description,
        "date": as_utc(event.date).isoformat(),
        "time": event.time,
        "price": event.price,
        "capacity": event.capacity,
        "organization_name": event.organization_name,
        "organizer_email": event.organizer_email,
    }


def reminder_snapshot(reminder: Reminder) -> dict:
    return {
        "id": reminder.id,
        "event_id": reminder.event_id,
        "attendee_id": reminder.attendee_id,
        "email": reminder.email,
        "reminder_time": reminder.reminder_time,
        "sent": reminder.sent,
    }


async def enqueue_due_reminders(
    db: AsyncSession,
    queue: TaskQueue,
    today: Optional[str] = None,
) -> int:
    """
    Enqueue one email task per reminder due `today` and not yet sent.

    Reminders of the same event are marked sent together in one commit.
    Returns the number of tasks enqueued.
    """
    today = today or today_string()

    result = await db.execute(
        select(Reminder, Event)
        .join(Event, Reminder.event_id == Event.id)
        .where(Reminder.reminder_time == today, Reminder.sent == False)  # noqa: E712
        .order_by(Reminder.event_id.asc(), Reminder.id.asc())
    )
    rows = result.all()

    enqueued = 0
    events = 0
    for event, group in groupby(rows, key=lambda row: row[1]):
        events += 1
        snapshot = event_snapshot(event)
        for reminder, _ in group:
            try:
                await queue.enqueue(SEND_REMINDER_TASK, {
                    "reminder": reminder_snapshot(reminder),
                    "event": snapshot,
                })
            except Exception as e:
                logger.error(
                    "reminder_enqueue_failed",
                    reminder_id=reminder.id,
                    event_id=event.id,
                    error=str(e),
                )
                reminder_enqueue_errors.inc()
                continue

            reminder.sent = True
            enqueued += 1
            reminders_enqueued.inc()

        await db.commit()

    logger.info("reminders_enqueued", date=today, events=events, reminders=enqueued)
    return enqueued
