"""
Tests for ticket issuance and scanning.

Lost races are reproduced by changing the row behind the session's back
(synchronize_session=False): the loaded object still passes the early
check, so only the conditional UPDATE can reject the request.
"""

import pytest
from datetime import datetime, timezone, timedelta

import jwt
from httpx import AsyncClient
from sqlalchemy import select, func, update

from app.core.config import settings
from app.core.exceptions import NotFound
from app.core.security import sign_token, verify_token, hash_password
from app.models.event import Event
from app.models.ticket import Ticket
from app.models.user import User, Attendee
from app.services.ticket_service import issue_ticket, qr_digest


async def _generate(client: AsyncClient, event_id: int, headers: dict):
    return await client.post(f"/api/v1/tickets/{event_id}/generate-ticket", headers=headers)


async def _scan(client: AsyncClient, qr_code: str, headers: dict):
    return await client.post("/api/v1/tickets/scan-ticket", json={"qr_code": qr_code}, headers=headers)


async def _ticket_count(db_session, event_id: int) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Ticket).where(Ticket.event_id == event_id)
    )
    return result.scalar()


async def _store_ticket(db_session, event: Event, user: User, token: str, qr_code: str) -> Ticket:
    result = await db_session.execute(select(Attendee).where(Attendee.user_id == user.id))
    ticket = Ticket(
        event_id=event.id,
        attendee_id=result.scalar_one().id,
        qr_code=qr_code,
        qr_digest=qr_digest(qr_code),
        token=token,
        price=event.price,
        scanned=False,
    )
    db_session.add(ticket)
    await db_session.flush()
    return ticket


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_generate_ticket(client: AsyncClient, test_event, attendee_headers, db_session):
    """Issuing a ticket returns a PNG data URL and counts the sale."""
    response = await _generate(client, test_event.id, attendee_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["qr_code"].startswith("data:image/png;base64,")

    event = (await client.get(f"/api/v1/events/{test_event.id}")).json()
    assert event["tickets_sold"] == 1
    assert await _ticket_count(db_session, test_event.id) == 1


@pytest.mark.asyncio
async def test_last_ticket_then_sold_out(
    client: AsyncClient, make_event, attendee_headers, second_attendee_headers, db_session
):
    """With one seat left the first request wins and the second gets 410."""
    event = await make_event(capacity=1)

    first = await _generate(client, event.id, attendee_headers)
    assert first.status_code == 201

    second = await _generate(client, event.id, second_attendee_headers)
    assert second.status_code == 410

    assert await _ticket_count(db_session, event.id) == 1
    assert (await client.get(f"/api/v1/events/{event.id}")).json()["tickets_sold"] == 1


@pytest.mark.asyncio
async def test_generate_ticket_sold_out(client: AsyncClient, sold_out_event, attendee_headers, db_session):
    response = await _generate(client, sold_out_event.id, attendee_headers)
    assert response.status_code == 410
    assert response.json()["detail"] == "This event is sold out"
    assert await _ticket_count(db_session, sold_out_event.id) == 0


@pytest.mark.asyncio
async def test_generate_ticket_lost_capacity_race(client: AsyncClient, make_event, attendee_headers, db_session):
    """Another request took the last seat after our read: the conditional increment rejects us."""
    event = await make_event(capacity=2, tickets_sold=1)
    await db_session.execute(
        update(Event)
        .where(Event.id == event.id)
        .values(tickets_sold=2)
        .execution_options(synchronize_session=False)
    )
    assert event.tickets_sold == 1  # stale copy

    response = await _generate(client, event.id, attendee_headers)
    assert response.status_code == 410
    assert await _ticket_count(db_session, event.id) == 0


@pytest.mark.asyncio
async def test_generate_ticket_unknown_event(client: AsyncClient, attendee_headers):
    response = await _generate(client, 99999, attendee_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_generate_ticket_as_organizer(client: AsyncClient, test_event, organizer_headers):
    response = await _generate(client, test_event.id, organizer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_generate_ticket_unauthenticated(client: AsyncClient, test_event):
    response = await client.post(f"/api/v1/tickets/{test_event.id}/generate-ticket")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_issue_ticket_without_attendee_profile(db_session, test_event):
    """An attendee account missing its profile row cannot be issued tickets."""
    user = User(
        name="Orphan",
        email="orphan@example.com",
        username="orphan",
        hashed_password=hash_password("testpassword123"),
        role="attendee",
    )
    db_session.add(user)
    await db_session.flush()

    with pytest.raises(NotFound) as exc_info:
        await issue_ticket(db_session, test_event.id, user)
    assert exc_info.value.detail == "No attendee found"


@pytest.mark.asyncio
async def test_generate_ticket_render_failure(
    client: AsyncClient, test_event, attendee_headers, db_session, monkeypatch
):
    """A QR rendering error is a 500 and nothing is sold."""

    def broken_renderer(data: str) -> str:
        raise OSError("encoder unavailable")

    monkeypatch.setattr("app.services.ticket_service.render_qr_code", broken_renderer)

    response = await _generate(client, test_event.id, attendee_headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate QR code"

    assert await _ticket_count(db_session, test_event.id) == 0
    assert (await client.get(f"/api/v1/events/{test_event.id}")).json()["tickets_sold"] == 0


@pytest.mark.asyncio
async def test_ticket_snapshots_price(client: AsyncClient, make_event, attendee_headers, db_session):
    event = await make_event(price=30.0)
    response = await _generate(client, event.id, attendee_headers)

    event.price = 45.0
    await db_session.flush()

    ticket = await db_session.get(Ticket, response.json()["ticket_id"])
    assert ticket.price == 30.0


@pytest.mark.asyncio
async def test_ticket_token_payload_and_expiry(
    client: AsyncClient, test_event, attendee_user, attendee_headers, db_session
):
    """Tokens name the event and holder and stay valid until a day after the event."""
    response = await _generate(client, test_event.id, attendee_headers)
    ticket = await db_session.get(Ticket, response.json()["ticket_id"])

    assert verify_token(ticket.token) == {"event_id": test_event.id, "user_id": attendee_user.id}

    claims = jwt.decode(ticket.token, options={"verify_signature": False})
    event_date = test_event.date
    if event_date.tzinfo is None:
        event_date = event_date.replace(tzinfo=timezone.utc)
    expected = event_date + timedelta(hours=settings.TICKET_TOKEN_GRACE_HOURS)
    assert abs(claims["exp"] - expected.timestamp()) < 5


@pytest.mark.asyncio
async def test_two_tickets_have_distinct_codes(client: AsyncClient, test_event, attendee_headers, db_session):
    """The same holder buying twice still gets two distinct codes."""
    first = await _generate(client, test_event.id, attendee_headers)
    second = await _generate(client, test_event.id, attendee_headers)
    assert first.status_code == second.status_code == 201
    assert first.json()["qr_code"] != second.json()["qr_code"]
    assert await _ticket_count(db_session, test_event.id) == 2


@pytest.mark.asyncio
async def test_my_tickets(client: AsyncClient, test_event, attendee_headers, second_attendee_headers):
    issued = (await _generate(client, test_event.id, attendee_headers)).json()

    response = await client.get("/api/v1/tickets/", headers=attendee_headers)
    assert response.status_code == 200
    tickets = response.json()
    assert [t["id"] for t in tickets] == [issued["ticket_id"]]
    assert tickets[0]["scanned"] is False
    assert tickets[0]["price"] == 25.0

    other = await client.get("/api/v1/tickets/", headers=second_attendee_headers)
    assert other.json() == []


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_scan_ticket_once(client: AsyncClient, test_event, attendee_headers, organizer_headers):
    """The first scan admits; every later scan of the same code is 409."""
    qr_code = (await _generate(client, test_event.id, attendee_headers)).json()["qr_code"]

    first = await _scan(client, qr_code, organizer_headers)
    assert first.status_code == 200
    assert first.json() == {"success": True, "message": "Ticket verified successfully"}

    second = await _scan(client, qr_code, organizer_headers)
    assert second.status_code == 409
    assert second.json()["detail"] == "Ticket has already been scanned"

    tickets = (await client.get("/api/v1/tickets/", headers=attendee_headers)).json()
    assert tickets[0]["scanned"] is True
    assert tickets[0]["scanned_at"] is not None


@pytest.mark.asyncio
async def test_scan_ticket_lost_race(
    client: AsyncClient, test_event, attendee_headers, organizer_headers, db_session
):
    """A concurrent scan flipped the flag after our read: only one admission counts."""
    issued = (await _generate(client, test_event.id, attendee_headers)).json()
    ticket = await db_session.get(Ticket, issued["ticket_id"])
    await db_session.execute(
        update(Ticket)
        .where(Ticket.id == ticket.id)
        .values(scanned=True)
        .execution_options(synchronize_session=False)
    )
    assert ticket.scanned is False  # stale copy

    response = await _scan(client, issued["qr_code"], organizer_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_scan_as_attendee(client: AsyncClient, test_event, attendee_headers):
    qr_code = (await _generate(client, test_event.id, attendee_headers)).json()["qr_code"]
    response = await _scan(client, qr_code, attendee_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_scan_unauthenticated(client: AsyncClient):
    response = await client.post("/api/v1/tickets/scan-ticket", json={"qr_code": "anything"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_scan_other_organizers_ticket(
    client: AsyncClient, test_event, attendee_headers, other_organizer_headers, organizer_headers
):
    """Organizers can only admit guests to their own events."""
    qr_code = (await _generate(client, test_event.id, attendee_headers)).json()["qr_code"]

    response = await _scan(client, qr_code, other_organizer_headers)
    assert response.status_code == 404

    # The rejected scan did not use up the ticket
    assert (await _scan(client, qr_code, organizer_headers)).status_code == 200


@pytest.mark.asyncio
async def test_scan_unknown_code(client: AsyncClient, organizer_headers):
    response = await _scan(client, "data:image/png;base64,bm90IGEgdGlja2V0", organizer_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_scan_expired_token(
    client: AsyncClient, test_event, attendee_user, organizer_headers, db_session
):
    token = sign_token(
        {"event_id": test_event.id, "user_id": attendee_user.id},
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    await _store_ticket(db_session, test_event, attendee_user, token, "expired-code")

    response = await _scan(client, "expired-code", organizer_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid or expired ticket token"


@pytest.mark.asyncio
async def test_scan_forged_token(
    client: AsyncClient, test_event, attendee_user, organizer_headers, db_session
):
    forged = jwt.encode(
        {"event_id": test_event.id, "user_id": attendee_user.id},
        "not-the-server-secret",
        algorithm="HS256",
    )
    ticket = await _store_ticket(db_session, test_event, attendee_user, forged, "forged-code")

    response = await _scan(client, "forged-code", organizer_headers)
    assert response.status_code == 400

    await db_session.refresh(ticket)
    assert ticket.scanned is False
