"""
Event model and the event_attendees membership table.

Key design decisions:
- UUID primary key, generated application-side
- `images` holds up to 5 stored upload paths as a JSON list
- Attendee membership is a plain join table with a composite primary key,
  so the same (event, user) pair can never be stored twice
- Title/description/location are normalized by the event service before
  every write, not by ORM hooks
"""

import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Integer, JSON, Table, Uuid
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin

event_attendees = Table(
    "event_attendees",
    Base.metadata,
    Column("event_id", Uuid, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    images = Column(JSON, nullable=True)

    # Relationships
    attendees = relationship(
        "User",
        secondary=event_attendees,
        back_populates="events",
        order_by="User.id",
    )
    bookings = relationship(
        "Booking",
        back_populates="event",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        # Events are listed by date
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title})>"
