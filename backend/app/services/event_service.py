"""
Event service handling CRUD operations.
"""

from datetime import datetime, timezone
from sqlalchemy import select, func, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event, Application
from app.models.reminder import Reminder
from app.models.ticket import Ticket
from app.models.user import User, Organizer, Attendee
from app.schemas.event import EventCreate
from app.services.auth_service import get_organizer_profile
from app.core.exceptions import BadRequest, NotFound
from app.core.logging import get_logger

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_event(db: AsyncSession, event_data: EventCreate, user: User) -> Event:
    """Create a new event and seed the organizer's reminder."""
    organizer = await get_organizer_profile(db, user)
    if not organizer:
        raise NotFound("Organizer details not found")

    if as_utc(event_data.date) <= datetime.now(timezone.utc):
        raise BadRequest("Event date must be in the future")

    event = Event(
        title=event_data.title,
        location=event_data.location,
        category=event_data.category,
        description=event_data.description,
        date=as_utc(event_data.date),
        time=event_data.time,
        price=event_data.price,
        capacity=event_data.capacity,
        tickets_sold=0,
        organizer_id=organizer.id,
        organization_name=organizer.organization_name,
        organizer_email=user.email,
    )
    db.add(event)
    await db.flush()

    db.add(Reminder(
        event_id=event.id,
        email=user.email,
        reminder_time=event_data.reminder_time,
        sent=False,
    ))
    await db.flush()

    logger.info("event_created", event_id=event.id, title=event.title, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound(f"Event {event_id} not found")
    return event


async def get_owned_event(db: AsyncSession, event_id: int, user: User) -> Event:
    """
    Load an event owned by `user` in one query.
    A missing event and someone else's event are both reported as 404.
    """
    result = await db.execute(
        select(Event)
        .join(Organizer, Event.organizer_id == Organizer.id)
        .where(Event.id == event_id, Organizer.user_id == user.id)
    )
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound("No matching event found for this organizer")
    return event


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
) -> tuple[list[Event], int]:
    """
    List events with pagination.
    Uses the ix_events_date index for efficient date filtering.
    """
    query = select(Event)

    if upcoming_only:
        query = query.where(Event.date >= datetime.now(timezone.utc))

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar()

    events_query = (
        query
        .order_by(Event.date.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(events_query)
    events = list(result.scalars().all())

    return events, total


async def search_events(db: AsyncSession, term: str) -> list[Event]:
    """Case-insensitive search over title, location, category and organization."""
    pattern = f"%{term}%"
    result = await db.execute(
        select(Event)
        .where(
            or_(
                Event.title.ilike(pattern),
                Event.location.ilike(pattern),
                Event.category.ilike(pattern),
                Event.organization_name.ilike(pattern),
            )
        )
        .order_by(Event.date.asc())
    )
    return list(result.scalars().all())


async def list_organizer_events(db: AsyncSession, user: User) -> list[Event]:
    result = await db.execute(
        select(Event)
        .join(Organizer, Event.organizer_id == Organizer.id)
        .where(Organizer.user_id == user.id)
        .order_by(Event.date.asc())
    )
    return list(result.scalars().all())


async def delete_event(db: AsyncSession, event_id: int, user: User) -> Event:
    """Delete an owned event together with its tickets, reminders and applications."""
    event = await get_owned_event(db, event_id, user)

    for model in (Ticket, Reminder, Application):
        await db.execute(delete(model).where(model.event_id == event.id))
    await db.delete(event)
    await db.flush()

    logger.info("event_deleted", event_id=event_id, organizer_id=event.organizer_id)
    return event


async def get_event_applicants(db: AsyncSession, event_id: int, user: User) -> list[dict]:
    """Applicants of an owned event, oldest application first."""
    event = await get_owned_event(db, event_id, user)

    result = await db.execute(
        select(Application, Attendee, User)
        .join(Attendee, Application.attendee_id == Attendee.id)
        .join(User, Attendee.user_id == User.id)
        .where(Application.event_id == event.id)
        .order_by(Application.created_at.asc(), Application.id.asc())
    )
    return [
        {
            "attendee_id": attendee.id,
            "user_id": applicant.id,
            "name": applicant.name,
            "username": applicant.username,
            "email": applicant.email,
            "applied_at": application.created_at,
        }
        for application, attendee, applicant in result.all()
    ]


async def set_backdrop(db: AsyncSession, event: Event, url: str) -> Event:
    event.backdrop = url
    await db.flush()
    logger.info("event_backdrop_updated", event_id=event.id)
    return event
