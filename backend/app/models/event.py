"""
Event model with ticket inventory tracking.

Key design decisions:
- `tickets_sold` is denormalized for performance (avoids COUNT query on tickets)
  and only ever moves through a conditional UPDATE, never read-modify-write
- Tickets, applications and reminders are stored once in their own tables;
  the event and the attendee both reach the same rows through relationships
- Organization name and organizer email are denormalized for listings
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(String(2000), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(String(20), nullable=True)
    price = Column(Float, nullable=False, default=0)
    capacity = Column(Integer, nullable=False)
    tickets_sold = Column(Integer, nullable=False, default=0)
    backdrop = Column(String(1000), nullable=True)

    organizer_id = Column(Integer, ForeignKey("organizers.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_name = Column(String(255), nullable=False)
    organizer_email = Column(String(255), nullable=False)

    # Relationships
    organizer = relationship("Organizer", back_populates="events")
    applications = relationship("Application", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    tickets = relationship("Ticket", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    reminders = relationship("Reminder", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)

    # Constraints
    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("tickets_sold >= 0", name="check_tickets_sold_non_negative"),
        # Final safety net behind the conditional increment
        CheckConstraint("tickets_sold <= capacity", name="check_tickets_sold_lte_capacity"),
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, sold={self.tickets_sold}/{self.capacity})>"


class Application(Base, TimestampMixin):
    """An attendee's application to an event."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    attendee_id = Column(Integer, ForeignKey("attendees.id", ondelete="CASCADE"), nullable=False, index=True)

    event = relationship("Event", back_populates="applications")
    attendee = relationship("Attendee", back_populates="applications")

    __table_args__ = (
        # One application per attendee per event
        UniqueConstraint("event_id", "attendee_id", name="uq_event_attendee_application"),
    )
