"""
Ticket endpoints: issuance for attendees, scanning for organizers.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User, ROLE_ATTENDEE
from app.schemas.ticket import TicketIssuedResponse, TicketScanRequest, TicketScanResponse, TicketResponse
from app.services.ticket_service import issue_ticket, scan_ticket, list_user_tickets
from app.services.event_service import get_event
from app.services.cache_service import invalidate_event_cache, invalidate_analytics
from app.core.security import get_current_user, require_role

router = APIRouter(prefix="/tickets", tags=["Tickets"])

require_attendee = require_role(ROLE_ATTENDEE)


@router.post(
    "/{event_id}/generate-ticket",
    response_model=TicketIssuedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_ticket_endpoint(
    event_id: int,
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a QR-coded ticket.

    Capacity is enforced with an atomic conditional increment, so concurrent
    requests can never oversell; the losers get 410.
    """
    ticket = await issue_ticket(db, event_id, user)
    event = await get_event(db, ticket.event_id)
    # Commit first so a concurrent read cannot re-cache the old counts
    await db.commit()
    # tickets_sold changed
    await invalidate_event_cache()
    await invalidate_analytics(event.id, event.organizer_id)
    return TicketIssuedResponse(ticket_id=ticket.id, qr_code=ticket.qr_code)


@router.post("/scan-ticket", response_model=TicketScanResponse)
async def scan_ticket_endpoint(
    scan: TicketScanRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Validate a ticket at the door. Organizers only; each ticket scans once."""
    ticket, event = await scan_ticket(db, scan.qr_code, user)
    await db.commit()
    await invalidate_analytics(event.id, event.organizer_id)
    return TicketScanResponse()


@router.get("/", response_model=list[TicketResponse])
async def my_tickets_endpoint(
    user: User = Depends(require_attendee),
    db: AsyncSession = Depends(get_db),
):
    return await list_user_tickets(db, user)
