"""
Reminder model.

`reminder_time` is a day-level `DD/MM/YYYY` string; the scheduler matches
it by equality against today's date. The organizer's reminder seeded at
event creation has no attendee.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

REMINDER_DATE_FORMAT = "%d/%m/%Y"


class Reminder(Base, TimestampMixin):
    __tablename__ = "reminders"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    attendee_id = Column(Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String(255), nullable=False)
    reminder_time = Column(String(10), nullable=False)
    sent = Column(Boolean, nullable=False, default=False)

    event = relationship("Event", back_populates="reminders")
    attendee = relationship("Attendee", back_populates="reminders")

    __table_args__ = (
        # Covers the daily scan: WHERE reminder_time = :today AND sent = false
        Index("ix_reminders_due", "reminder_time", "sent"),
    )

    def __repr__(self) -> str:
        return f"<Reminder(id={self.id}, event={self.event_id}, at={self.reminder_time}, sent={self.sent})>"
