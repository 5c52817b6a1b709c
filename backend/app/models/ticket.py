"""
Ticket model: one issued, QR-coded admission to an event.

Key design decisions:
- The QR rendering is a large data URL, so scans look it up through its
  SHA-256 digest (unique index) rather than the raw text
- `price` is a snapshot of the event price at issuance
- `scanned` only flips false -> true, through a conditional UPDATE
"""

from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    attendee_id = Column(Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False, index=True)
    qr_code = Column(Text, nullable=False)
    qr_digest = Column(String(64), nullable=False, unique=True, index=True)
    token = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    scanned = Column(Boolean, nullable=False, default=False)
    scanned_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", back_populates="tickets")
    attendee = relationship("Attendee", back_populates="tickets")

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, event={self.event_id}, scanned={self.scanned})>"
