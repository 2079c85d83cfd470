"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from app.models.booking import BookingStatus
from app.schemas.base import CamelModel, RequestModel
from app.schemas.event import EventResponse
from app.schemas.user import UserResponse


class BookingCreate(RequestModel):
    event_id: UUID
    notes: Optional[str] = None


class BookingUpdate(RequestModel):
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None


class BookingResponse(CamelModel):
    id: int
    user_id: int
    event_id: UUID
    status: BookingStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class BookingWithEvent(BookingResponse):
    event: EventResponse


class BookingWithUser(BookingResponse):
    user: UserResponse


class BookingDetail(BookingResponse):
    user: UserResponse
    event: EventResponse
