from app.schemas.user import UserCreate, UserLogin, UserUpdate, UserResponse, AuthResponse
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventWithAttendees, UserWithEvents
from app.schemas.booking import (
    BookingCreate, BookingUpdate, BookingResponse, BookingWithEvent, BookingWithUser, BookingDetail,
)

__all__ = [
    "UserCreate", "UserLogin", "UserUpdate", "UserResponse", "AuthResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventWithAttendees", "UserWithEvents",
    "BookingCreate", "BookingUpdate", "BookingResponse", "BookingWithEvent", "BookingWithUser", "BookingDetail",
]
