"""
User accounts and their role profiles.

A user is either an organizer or an attendee; the matching profile row is
created at registration.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

ROLE_ORGANIZER = "organizer"
ROLE_ATTENDEE = "attendee"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('organizer', 'attendee')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Organizer(Base, TimestampMixin):
    __tablename__ = "organizers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    organization_name = Column(String(255), nullable=False)

    user = relationship("User", lazy="joined")
    events = relationship("Event", back_populates="organizer", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Organizer(id={self.id}, organization={self.organization_name})>"


class Attendee(Base, TimestampMixin):
    __tablename__ = "attendees"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    user = relationship("User", lazy="joined")
    applications = relationship("Application", back_populates="attendee", passive_deletes=True)
    tickets = relationship("Ticket", back_populates="attendee", passive_deletes=True)
    reminders = relationship("Reminder", back_populates="attendee", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Attendee(id={self.id}, user={self.user_id})>"
