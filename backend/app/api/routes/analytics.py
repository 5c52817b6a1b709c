"""
Organizer analytics endpoints, cached per organizer and per event.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User, ROLE_ORGANIZER
from app.schemas.analytics import OverallAnalytics, EventAnalytics
from app.services.analytics_service import get_overall_analytics, get_event_analytics
from app.core.security import require_role

router = APIRouter(prefix="/analytics", tags=["Analytics"])

require_organizer = require_role(ROLE_ORGANIZER)


@router.get("/overall", response_model=OverallAnalytics)
async def overall_analytics_endpoint(
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    return await get_overall_analytics(db, user)


@router.get("/events/{event_id}", response_model=EventAnalytics)
async def event_analytics_endpoint(
    event_id: int,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Analytics for one event. Only its organizer may read them."""
    return await get_event_analytics(db, event_id, user)
