from app.models.user import User
from app.models.event import Event, event_attendees
from app.models.booking import Booking, BookingStatus

__all__ = ["User", "Event", "event_attendees", "Booking", "BookingStatus"]
