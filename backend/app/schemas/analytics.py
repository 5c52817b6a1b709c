"""
Pydantic schemas for organizer analytics.
"""

from pydantic import BaseModel


class OverallAnalytics(BaseModel):
    total_applicants: int
    total_tickets_sold: int
    total_scanned_tickets: int
    cached: bool = False


class EventAnalytics(BaseModel):
    event_id: int
    applicants: int
    tickets_sold: int
    scanned_tickets: int
    cached: bool = False
