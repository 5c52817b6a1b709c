"""
Event endpoints with Redis caching on list operations.
"""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User, ROLE_ORGANIZER
from app.schemas.event import EventCreate, EventResponse, EventListResponse, ApplicantResponse
from app.services.event_service import (
    create_event,
    delete_event,
    get_event,
    get_event_applicants,
    get_owned_event,
    list_events,
    list_organizer_events,
    search_events,
    set_backdrop,
)
from app.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache, invalidate_analytics
from app.services.interfaces.blob_store import BlobStore
from app.services.providers import get_blob_store
from app.core.exceptions import BadRequest
from app.core.security import require_role
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])

require_organizer = require_role(ROLE_ORGANIZER)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Organizers only."""
    event = await create_event(db, event_data, user)
    await db.commit()
    # Invalidate cache since event list has changed
    await invalidate_event_cache()
    return event


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination.
    Results are cached in Redis for 5 minutes.
    Cache is invalidated when events are created or deleted and when tickets are issued.
    """
    cached = await get_cached_events(page, page_size, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    events, total = await list_events(db, page, page_size, upcoming_only)

    response_data = {
        "events": [EventResponse.model_validate(e).model_dump() for e in events],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }

    await set_cached_events(page, page_size, upcoming_only, response_data)

    return EventListResponse(**response_data)


@router.get("/search", response_model=list[EventResponse])
async def search_events_endpoint(
    q: str = Query(..., min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Search events by title, location, category or organization name."""
    return await search_events(db, q)


@router.get("/mine", response_model=list[EventResponse])
async def my_events_endpoint(
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    return await list_organizer_events(db, user)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (needs real-time ticket counts)."""
    event = await get_event(db, event_id)
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event. Only its organizer may do so."""
    event = await delete_event(db, event_id, user)
    organizer_id = event.organizer_id
    await db.commit()
    await invalidate_event_cache()
    await invalidate_analytics(event_id, organizer_id)


@router.get("/{event_id}/applicants", response_model=list[ApplicantResponse])
async def event_applicants_endpoint(
    event_id: int,
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
):
    return await get_event_applicants(db, event_id, user)


@router.post("/{event_id}/backdrop", response_model=EventResponse)
async def upload_backdrop_endpoint(
    event_id: int,
    file: UploadFile = File(...),
    user: User = Depends(require_organizer),
    db: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Upload the event's backdrop image."""
    event = await get_owned_event(db, event_id, user)

    if not (file.content_type or "").startswith("image/"):
        raise BadRequest("Backdrop must be an image")

    url = await blob_store.upload(await file.read(), file.filename or "backdrop")
    event = await set_backdrop(db, event, url)
    await db.commit()
    await invalidate_event_cache()
    return event
