from app.schemas.user import UserCreate, UserResponse, UserLogin, Token
from app.schemas.event import EventCreate, EventResponse, EventListResponse, ApplicantResponse
from app.schemas.reminder import ReminderCreate, ReminderResponse
from app.schemas.ticket import TicketIssuedResponse, TicketScanRequest, TicketScanResponse, TicketResponse
from app.schemas.analytics import OverallAnalytics, EventAnalytics

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventResponse", "EventListResponse", "ApplicantResponse",
    "ReminderCreate", "ReminderResponse",
    "TicketIssuedResponse", "TicketScanRequest", "TicketScanResponse", "TicketResponse",
    "OverallAnalytics", "EventAnalytics",
]
