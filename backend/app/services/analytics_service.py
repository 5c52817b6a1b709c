"""
Organizer analytics: applicant, ticket and scan counts.

Counts are aggregated in SQL and cached per (kind, owner_id); write paths
that change a count call cache_service.invalidate_analytics.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event, Application
from app.models.ticket import Ticket
from app.models.user import User
from app.services.auth_service import get_organizer_profile
from app.services.event_service import get_owned_event
from app.services.cache_service import (
    ANALYTICS_EVENT,
    ANALYTICS_OVERALL,
    get_cached_analytics,
    set_cached_analytics,
)
from app.core.exceptions import NotFound
from app.core.logging import get_logger

logger = get_logger(__name__)


async def get_overall_analytics(db: AsyncSession, user: User) -> dict:
    organizer = await get_organizer_profile(db, user)
    if not organizer:
        raise NotFound("Organizer details not found")

    cached = await get_cached_analytics(ANALYTICS_OVERALL, organizer.id)
    if cached:
        cached["cached"] = True
        return cached

    owned_events = select(Event.id).where(Event.organizer_id == organizer.id)

    total_tickets_sold = (await db.execute(
        select(func.coalesce(func.sum(Event.tickets_sold), 0)).where(Event.organizer_id == organizer.id)
    )).scalar()
    total_applicants = (await db.execute(
        select(func.count(Application.id)).where(Application.event_id.in_(owned_events))
    )).scalar()
    total_scanned = (await db.execute(
        select(func.count(Ticket.id)).where(
            Ticket.event_id.in_(owned_events),
            Ticket.scanned == True,  # noqa: E712
        )
    )).scalar()

    data = {
        "total_applicants": total_applicants,
        "total_tickets_sold": total_tickets_sold,
        "total_scanned_tickets": total_scanned,
        "cached": False,
    }
    await set_cached_analytics(ANALYTICS_OVERALL, organizer.id, data)
    return data


async def get_event_analytics(db: AsyncSession, event_id: int, user: User) -> dict:
    # Ownership is checked before the cache is consulted
    event = await get_owned_event(db, event_id, user)

    cached = await get_cached_analytics(ANALYTICS_EVENT, event.id)
    if cached:
        cached["cached"] = True
        return cached

    applicants = (await db.execute(
        select(func.count(Application.id)).where(Application.event_id == event.id)
    )).scalar()
    scanned = (await db.execute(
        select(func.count(Ticket.id)).where(
            Ticket.event_id == event.id,
            Ticket.scanned == True,  # noqa: E712
        )
    )).scalar()

    data = {
        "event_id": event.id,
        "applicants": applicants,
        "tickets_sold": event.tickets_sold,
        "scanned_tickets": scanned,
        "cached": False,
    }
    await set_cached_analytics(ANALYTICS_EVENT, event.id, data)
    return data
