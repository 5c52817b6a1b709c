"""
Pydantic schemas for reminders.
"""

from datetime import datetime
from typing import Annotated
from pydantic import AfterValidator, BaseModel

from app.models.reminder import REMINDER_DATE_FORMAT


def _check_reminder_date(value: str) -> str:
    """Parse and re-render, so "5/6/2026" is stored as "05/06/2026"."""
    try:
        parsed = datetime.strptime(value, REMINDER_DATE_FORMAT)
    except ValueError:
        raise ValueError("reminder_time must be a DD/MM/YYYY date")
    if parsed.year < 1000:
        raise ValueError("reminder_time must be a DD/MM/YYYY date")
    # The daily pass matches on the zero-padded string
    return parsed.strftime(REMINDER_DATE_FORMAT)


ReminderDate = Annotated[str, AfterValidator(_check_reminder_date)]


class ReminderCreate(BaseModel):
    reminder_time: ReminderDate


class ReminderResponse(BaseModel):
    id: int
    event_id: int
    email: str
    reminder_time: str
    sent: bool

    model_config = {"from_attributes": True}
