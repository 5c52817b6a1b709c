"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.schemas.reminder import ReminderDate


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    date: datetime
    time: Optional[str] = Field(None, max_length=20)
    price: float = Field(0, ge=0)
    capacity: int = Field(..., gt=0, le=100000)
    # Seeds the organizer's own reminder
    reminder_time: ReminderDate


class EventResponse(BaseModel):
    id: int
    title: str
    location: str
    category: str
    description: Optional[str]
    date: datetime
    time: Optional[str]
    price: float
    capacity: int
    tickets_sold: int
    backdrop: Optional[str]
    organizer_id: int
    organization_name: str
    organizer_email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class ApplicantResponse(BaseModel):
    attendee_id: int
    user_id: int
    name: str
    username: str
    email: str
    applied_at: datetime
