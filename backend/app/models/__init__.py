from app.models.user import User, Organizer, Attendee
from app.models.event import Event, Application
from app.models.ticket import Ticket
from app.models.reminder import Reminder

__all__ = ["User", "Organizer", "Attendee", "Event", "Application", "Ticket", "Reminder"]
