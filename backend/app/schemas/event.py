"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import Field

from app.schemas.base import CamelModel, RequestModel
from app.schemas.user import UserResponse


class EventCreate(RequestModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = Field(None, max_length=255)


class EventUpdate(RequestModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)


class EventResponse(CamelModel):
    id: UUID
    title: str
    description: Optional[str]
    date: datetime
    location: Optional[str]
    images: Optional[list[str]] = None
    created_at: datetime
    updated_at: datetime


class EventWithAttendees(EventResponse):
    attendees: list[UserResponse]


class UserWithEvents(UserResponse):
    events: list[EventResponse]
