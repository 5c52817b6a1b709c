"""
Pydantic schemas for ticket issuance and scanning.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class TicketIssuedResponse(BaseModel):
    ticket_id: int
    qr_code: str


class TicketScanRequest(BaseModel):
    qr_code: str = Field(..., min_length=1)


class TicketScanResponse(BaseModel):
    success: bool = True
    message: str = "Ticket verified successfully"


class TicketResponse(BaseModel):
    id: int
    event_id: int
    qr_code: str
    price: float
    scanned: bool
    scanned_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}
