"""
Tests for the daily reminder pass.
"""

import re

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models.reminder import Reminder
from app.models.user import Attendee
from app.services.interfaces.task_queue import TaskQueue, InMemoryTaskQueue
from app.services.reminder_service import (
    SEND_REMINDER_TASK,
    enqueue_due_reminders,
    today_string,
)


class FailingTaskQueue(TaskQueue):
    async def enqueue(self, task_name, payload):
        raise ConnectionError("redis unavailable")


async def _reminders(db_session, event_id: int) -> list[Reminder]:
    result = await db_session.execute(
        select(Reminder).where(Reminder.event_id == event_id).order_by(Reminder.id)
    )
    return list(result.scalars().all())


async def _add_reminder(db_session, event, user, reminder_time: str) -> Reminder:
    result = await db_session.execute(select(Attendee).where(Attendee.user_id == user.id))
    reminder = Reminder(
        event_id=event.id,
        attendee_id=result.scalar_one().id,
        email=user.email,
        reminder_time=reminder_time,
    )
    db_session.add(reminder)
    await db_session.flush()
    return reminder


@pytest.mark.asyncio
async def test_only_todays_reminders_are_sent(db_session, make_event):
    """A reminder for 14/06 fires on the 14/06 pass; a 15/06 one waits for its own day."""
    early = await make_event(title="Early", reminder_time="14/06/2026")
    late = await make_event(title="Late", reminder_time="15/06/2026")
    queue = InMemoryTaskQueue()

    assert await enqueue_due_reminders(db_session, queue, today="14/06/2026") == 1
    assert [(name, payload["event"]["title"]) for name, payload in queue.tasks] == [
        (SEND_REMINDER_TASK, "Early"),
    ]
    assert (await _reminders(db_session, early.id))[0].sent is True
    assert (await _reminders(db_session, late.id))[0].sent is False

    assert await enqueue_due_reminders(db_session, queue, today="15/06/2026") == 1
    assert queue.tasks[-1][1]["event"]["title"] == "Late"
    assert (await _reminders(db_session, late.id))[0].sent is True


@pytest.mark.asyncio
async def test_second_pass_same_day_sends_nothing(db_session, make_event):
    await make_event(reminder_time="14/06/2026")
    queue = InMemoryTaskQueue()

    assert await enqueue_due_reminders(db_session, queue, today="14/06/2026") == 1
    assert await enqueue_due_reminders(db_session, queue, today="14/06/2026") == 0
    assert len(queue.tasks) == 1


@pytest.mark.asyncio
async def test_every_reminder_of_an_event_is_sent(db_session, make_event, attendee_user, second_attendee_user):
    event = await make_event(reminder_time="14/06/2026")
    await _add_reminder(db_session, event, attendee_user, "14/06/2026")
    await _add_reminder(db_session, event, second_attendee_user, "14/06/2026")
    queue = InMemoryTaskQueue()

    assert await enqueue_due_reminders(db_session, queue, today="14/06/2026") == 3
    recipients = [payload["reminder"]["email"] for _, payload in queue.tasks]
    assert recipients == ["organizer@example.com", "attendee@example.com", "guest@example.com"]
    assert all(r.sent for r in await _reminders(db_session, event.id))


@pytest.mark.asyncio
async def test_task_payload(db_session, make_event):
    event = await make_event(title="Jazz Night", price=12.5, reminder_time="14/06/2026")
    queue = InMemoryTaskQueue()

    await enqueue_due_reminders(db_session, queue, today="14/06/2026")

    _, payload = queue.tasks[0]
    assert payload["reminder"]["email"] == "organizer@example.com"
    assert payload["reminder"]["event_id"] == event.id
    assert payload["event"]["id"] == event.id
    assert payload["event"]["title"] == "Jazz Night"
    assert payload["event"]["location"] == "Test Venue"
    assert payload["event"]["price"] == 12.5
    # ISO string, so the payload survives serialization onto the queue
    assert isinstance(payload["event"]["date"], str)


@pytest.mark.asyncio
async def test_enqueue_failure_leaves_reminder_unsent(db_session, make_event):
    """Reminders that never reached the queue are retried by a later pass."""
    event = await make_event(reminder_time="14/06/2026")

    assert await enqueue_due_reminders(db_session, FailingTaskQueue(), today="14/06/2026") == 0
    assert (await _reminders(db_session, event.id))[0].sent is False

    queue = InMemoryTaskQueue()
    assert await enqueue_due_reminders(db_session, queue, today="14/06/2026") == 1
    assert (await _reminders(db_session, event.id))[0].sent is True


@pytest.mark.asyncio
async def test_attendee_sees_sent_flag(client: AsyncClient, db_session, test_event, attendee_headers):
    """The pass updates the same row the attendee lists."""
    created = await client.post(
        f"/api/v1/attendees/{test_event.id}/reminder",
        json={"reminder_time": "14/06/2026"},
        headers=attendee_headers,
    )
    assert created.status_code == 201

    await enqueue_due_reminders(db_session, InMemoryTaskQueue(), today="14/06/2026")

    listed = (await client.get("/api/v1/attendees/reminders", headers=attendee_headers)).json()
    assert listed[0]["id"] == created.json()["id"]
    assert listed[0]["sent"] is True


def test_today_string_format():
    assert re.fullmatch(r"\d{2}/\d{2}/\d{4}", today_string("UTC"))
    assert re.fullmatch(r"\d{2}/\d{2}/\d{4}", today_string("Pacific/Kiritimati"))


@pytest.mark.asyncio
async def test_unpadded_reminder_date_is_normalized(
    client: AsyncClient, db_session, test_event, attendee_headers
):
    """'5/6/2026' is stored zero-padded, so the 05/06/2026 pass finds it."""
    response = await client.post(
        f"/api/v1/attendees/{test_event.id}/reminder",
        json={"reminder_time": "5/6/2026"},
        headers=attendee_headers,
    )
    assert response.status_code == 201
    assert response.json()["reminder_time"] == "05/06/2026"

    queue = InMemoryTaskQueue()
    assert await enqueue_due_reminders(db_session, queue, today="05/06/2026") == 1
    assert queue.tasks[0][1]["reminder"]["email"] == "attendee@example.com"
