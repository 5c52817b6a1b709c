"""
Attendee endpoints: applications and reminders.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User, ROLE_ATTENDEE
from app.schemas.event import EventResponse
from app.schemas.reminder import ReminderCreate, ReminderResponse
from app.services.attendee_service import apply_to_event, list_applied_events, set_reminder, list_reminders
from app.services.event_service import get_event
from app.services.cache_service import invalidate_analytics
from app.core.security import require_role

router = APIRouter(prefix="/attendees", tags=["Attendees"])

require_attendee = require_role(ROLE_ATTENDEE)


@router.post("/{event_id}/apply", status_code=status.HTTP_201_CREATED)
async def apply_endpoint(
    event_id: int,
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    """Apply to an event. Applying twice returns 409."""
    application = await apply_to_event(db, event_id, user)
    event = await get_event(db, application.event_id)
    await db.commit()
    await invalidate_analytics(event.id, event.organizer_id)
    return {"success": True, "message": "Applied for event successfully"}


@router.get("/applied", response_model=list[EventResponse])
async def applied_events_endpoint(
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    return await list_applied_events(db, user)


@router.post("/{event_id}/reminder", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
async def set_reminder_endpoint(
    event_id: int,
    reminder_data: ReminderCreate,
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    """Set an email reminder (DD/MM/YYYY) for an event."""
    return await set_reminder(db, event_id, user, reminder_data.reminder_time)


@router.get("/reminders", response_model=list[ReminderResponse])
async def reminders_endpoint(
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    return await list_reminders(db, user)
