"""
Ticket service: QR-coded ticket issuance and door scanning.

CONCURRENCY STRATEGY: Atomic conditional updates
================================================

Problem:
  Two attendees request the last ticket simultaneously.
  Both read tickets_sold = capacity - 1, both insert a ticket, both increment.
  Result: Oversold event.

  Two door staff scan the same ticket simultaneously.
  Both read scanned = false, both accept the guest.
  Result: One ticket admits two people.

Solution:
  Neither gate is a read followed by a write. Each is a single statement
  whose WHERE clause carries the precondition:

  UPDATE events  SET tickets_sold = tickets_sold + 1
   WHERE id = :event_id AND tickets_sold < capacity
  UPDATE tickets SET scanned = true
   WHERE id = :ticket_id AND scanned = false

  rows_affected == 0 means the precondition no longer held -> the request
  lost the race and is rejected (Exhausted / AlreadyScanned). No retry is
  needed: unlike a version conflict, losing either race is final.

  The early reads (capacity, scanned flag) stay as fail-fast checks so the
  common rejection path never signs a token or renders a QR code.

  The counter increment and the ticket insert run in the request's single
  transaction, so a failure between them leaves neither behind.

Ticket tokens:
  The token signs {event_id, user_id} with the login-token signer plus a
  unique jti. It expires TICKET_TOKEN_GRACE_HOURS after the event starts
  rather than one hour after issuance.
"""

import base64
import hashlib
import io
import time
from datetime import datetime, timedelta, timezone

import jwt
import qrcode
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.event import Event
from app.models.ticket import Ticket
from app.models.user import User, ROLE_ORGANIZER
from app.services.auth_service import get_attendee_profile
from app.services.event_service import as_utc, get_owned_event
from app.core.config import get_settings
from app.core.exceptions import AlreadyScanned, Exhausted, Forbidden, InvalidToken, NotFound, RenderFailure
from app.core.metrics import record_issuance, record_scan, ticket_issuance_latency
from app.core.security import sign_token, verify_token
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def render_qr_code(data: str) -> str:
    """Render `data` as a QR code PNG data URL."""
    image = qrcode.make(data)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def qr_digest(qr_code: str) -> str:
    return hashlib.sha256(qr_code.encode("utf-8")).hexdigest()


def ticket_token_expiry(event: Event) -> datetime:
    now = datetime.now(timezone.utc)
    event_end = as_utc(event.date) + timedelta(hours=settings.TICKET_TOKEN_GRACE_HOURS)
    return max(event_end, now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


async def issue_ticket(db: AsyncSession, event_id: int, user: User) -> Ticket:
    """
    Issue one ticket for `user` to the event.

    Raises:
        NotFound: no attendee profile, or no such event
        Exhausted: the event is sold out
        RenderFailure: the QR code could not be rendered
    """
    start = time.perf_counter()

    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    attendee = await get_attendee_profile(db, user)

    if not attendee:
        record_issuance("not_found")
        raise NotFound("No attendee found")
    if not event:
        record_issuance("not_found")
        raise NotFound(f"Event {event_id} not found")

    # Admission control: fail fast before creating anything
    if event.tickets_sold >= event.capacity:
        logger.warning(
            "ticket_issuance_rejected",
            event_id=event.id,
            reason="sold_out",
            tickets_sold=event.tickets_sold,
            capacity=event.capacity,
        )
        record_issuance("exhausted")
        raise Exhausted()

    token = sign_token(
        {"event_id": event.id, "user_id": user.id},
        expires_at=ticket_token_expiry(event),
    )

    try:
        qr_code = render_qr_code(token)
    except Exception as e:
        logger.error("qr_render_failed", event_id=event.id, user_id=user.id, error=str(e))
        record_issuance("render_failure")
        raise RenderFailure() from e

    # Atomic admission: only one request can take the last seat
    update_result = await db.execute(
        update(Event)
        .where(Event.id == event.id, Event.tickets_sold < Event.capacity)
        .values(tickets_sold=Event.tickets_sold + 1)
    )
    if update_result.rowcount == 0:
        logger.info("ticket_issuance_rejected", event_id=event.id, reason="lost_capacity_race")
        record_issuance("exhausted")
        raise Exhausted()

    ticket = Ticket(
        event_id=event.id,
        attendee_id=attendee.id,
        qr_code=qr_code,
        qr_digest=qr_digest(qr_code),
        token=token,
        price=event.price,
        scanned=False,
    )
    db.add(ticket)
    await db.flush()
    await db.refresh(event, ["tickets_sold"])

    ticket_issuance_latency.observe(time.perf_counter() - start)
    record_issuance("issued")
    logger.info(
        "ticket_issued",
        ticket_id=ticket.id,
        event_id=event.id,
        user_id=user.id,
        tickets_sold=event.tickets_sold,
        capacity=event.capacity,
    )
    return ticket


async def scan_ticket(db: AsyncSession, qr_code: str, user: User) -> tuple[Ticket, Event]:
    """
    Validate a scanned QR code and mark its ticket as used.

    Raises:
        Forbidden: the caller is not an organizer
        NotFound: unknown code, or the event is not the caller's
        InvalidToken: the ticket's token is malformed, expired or forged
        AlreadyScanned: the ticket was used before
    """
    if user.role != ROLE_ORGANIZER:
        record_scan("forbidden")
        raise Forbidden("Only organizers can scan tickets")

    result = await db.execute(select(Ticket).where(Ticket.qr_digest == qr_digest(qr_code)))
    ticket = result.scalar_one_or_none()
    if not ticket:
        record_scan("not_found")
        raise NotFound("No ticket found")

    # Finding the code does not make it valid: the token is checked every time
    try:
        payload = verify_token(ticket.token)
        event_id = int(payload["event_id"])
        ticket_user_id = int(payload["user_id"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as e:
        logger.warning("ticket_scan_rejected", ticket_id=ticket.id, reason="invalid_token", error=str(e))
        record_scan("invalid_token")
        raise InvalidToken()

    try:
        event = await get_owned_event(db, event_id, user)
    except NotFound:
        logger.warning("ticket_scan_rejected", ticket_id=ticket.id, reason="not_event_owner", user_id=user.id)
        record_scan("not_found")
        raise

    if ticket.scanned:
        record_scan("already_scanned")
        raise AlreadyScanned()

    update_result = await db.execute(
        update(Ticket)
        .where(Ticket.id == ticket.id, Ticket.scanned == False)  # noqa: E712
        .values(scanned=True, scanned_at=utcnow())
    )
    if update_result.rowcount == 0:
        logger.info("ticket_scan_rejected", ticket_id=ticket.id, reason="lost_scan_race")
        record_scan("already_scanned")
        raise AlreadyScanned()

    await db.refresh(ticket, ["scanned", "scanned_at"])

    record_scan("accepted")
    logger.info(
        "ticket_scanned",
        ticket_id=ticket.id,
        event_id=event.id,
        ticket_user_id=ticket_user_id,
        organizer_user_id=user.id,
    )
    return ticket, event


async def list_user_tickets(db: AsyncSession, user: User) -> list[Ticket]:
    attendee = await get_attendee_profile(db, user)
    if not attendee:
        raise NotFound("No attendee found")

    result = await db.execute(
        select(Ticket)
        .where(Ticket.attendee_id == attendee.id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc())
    )
    return list(result.scalars().all())
