"""
Attendee service: event applications and reminders.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event, Application
from app.models.reminder import Reminder
from app.models.user import User, Attendee
from app.services.auth_service import get_attendee_profile
from app.services.event_service import get_event
from app.core.exceptions import Conflict, NotFound
from app.core.logging import get_logger

logger = get_logger(__name__)


async def _require_attendee(db: AsyncSession, user: User) -> Attendee:
    attendee = await get_attendee_profile(db, user)
    if not attendee:
        raise NotFound("Attendee details not found")
    return attendee


async def apply_to_event(db: AsyncSession, event_id: int, user: User) -> Application:
    """
    Record an application. Re-applying to the same event is rejected with 409;
    the unique constraint covers concurrent duplicates.
    """
    event = await get_event(db, event_id)
    attendee = await _require_attendee(db, user)

    existing = await db.execute(
        select(Application).where(
            Application.event_id == event.id,
            Application.attendee_id == attendee.id,
        )
    )
    if existing.scalar_one_or_none():
        raise Conflict("Already applied")

    application = Application(event_id=event.id, attendee_id=attendee.id)
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        # The request session rolls back once the Conflict propagates
        logger.info("application_duplicate_race", event_id=event.id, attendee_id=attendee.id)
        raise Conflict("Already applied")

    logger.info("event_applied", event_id=event.id, attendee_id=attendee.id)
    return application


async def list_applied_events(db: AsyncSession, user: User) -> list[Event]:
    attendee = await _require_attendee(db, user)
    result = await db.execute(
        select(Event)
        .join(Application, Application.event_id == Event.id)
        .where(Application.attendee_id == attendee.id)
        .order_by(Application.created_at.asc(), Application.id.asc())
    )
    return list(result.scalars().all())


async def set_reminder(db: AsyncSession, event_id: int, user: User, reminder_time: str) -> Reminder:
    """
    Create a reminder for the attendee's email.
    Stored once; the event and the attendee both see the same row.
    """
    attendee = await _require_attendee(db, user)
    event = await get_event(db, event_id)

    reminder = Reminder(
        event_id=event.id,
        attendee_id=attendee.id,
        email=user.email,
        reminder_time=reminder_time,
        sent=False,
    )
    db.add(reminder)
    await db.flush()

    logger.info("reminder_set", event_id=event.id, attendee_id=attendee.id, reminder_time=reminder_time)
    return reminder


async def list_reminders(db: AsyncSession, user: User) -> list[Reminder]:
    attendee = await _require_attendee(db, user)
    result = await db.execute(
        select(Reminder)
        .where(Reminder.attendee_id == attendee.id)
        .order_by(Reminder.id.asc())
    )
    return list(result.scalars().all())
