"""
Event service: CRUD with explicit field normalization, and the
event/attendee membership protocol.

NORMALIZATION
=============
Every create and update passes its input through `normalize_event_fields`
before touching the database:
  - title: trimmed, inner whitespace collapsed, each word title-cased
    ("  conference   X  " -> "Conference X")
  - description/location: trimmed; blank strings become NULL

ATTENDEES vs BOOKINGS
=====================
Attendee membership ("registered to attend") lives in the event_attendees
join table and is independent of bookings. A user may be an attendee
without a booking and vice versa.

The membership pre-check (is the user already in the set?) is not atomic
against two identical concurrent requests. The composite primary key on
event_attendees is the final guard: the losing insert raises IntegrityError,
which is reported as the same "already registered" error.
"""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from app.models.event import Event, event_attendees
from app.models.user import User
from app.schemas.event import EventCreate, EventUpdate
from app.services.upload_service import IncomingImage, discard_event_images, save_event_images, validate_images
from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.metrics import record_attendee_change
from app.core.logging import get_logger

logger = get_logger(__name__)


def normalize_title(title: str) -> str:
    words = title.split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_event_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `fields` with text fields normalized.
    Only keys present in `fields` are touched, so partial updates stay partial.
    """
    normalized = dict(fields)
    if normalized.get("title") is not None:
        normalized["title"] = normalize_title(normalized["title"])
        if not normalized["title"]:
            raise ValidationFailed("Title must not be blank")
    for key in ("description", "location"):
        if key in normalized:
            normalized[key] = _clean_optional(normalized[key])
    return normalized


async def _load_event(db: AsyncSession, event_id: UUID, with_attendees: bool = False) -> Event:
    """Fetch an event, optionally with its attendee set. Raises 404 if missing."""
    query = select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    if with_attendees:
        query = query.options(selectinload(Event.attendees))
    result = await db.execute(query)
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError(f"Event with id {event_id} was not found")
    return event


async def create_event(
    db: AsyncSession,
    event_data: EventCreate,
    images: Optional[list[IncomingImage]] = None,
) -> Event:
    """
    Fields and images are fully validated before any file is written.
    Files written for an event whose insert fails are removed again.
    """
    images = images or []
    fields = normalize_event_fields(event_data.model_dump())
    validate_images(images)
    image_paths = await run_in_threadpool(save_event_images, images)

    event = Event(**fields, images=image_paths or None)
    db.add(event)
    try:
        await db.flush()
    except SQLAlchemyError:
        await run_in_threadpool(discard_event_images, image_paths)
        raise

    logger.info("event_created", event_id=str(event.id), title=event.title, images=len(image_paths or []))
    return event


async def list_events(db: AsyncSession) -> list[Event]:
    """All events ordered by date. Uses the ix_events_date index."""
    result = await db.execute(select(Event).order_by(Event.date.asc()))
    return list(result.scalars().all())


async def get_event(db: AsyncSession, event_id: UUID) -> Event:
    """Get a single event by ID."""
    return await _load_event(db, event_id)


async def update_event(db: AsyncSession, event_id: UUID, event_data: EventUpdate) -> Event:
    """Apply only the provided fields. Title and date cannot be cleared."""
    event = await _load_event(db, event_id)

    changes = event_data.model_dump(exclude_unset=True)
    for key in ("title", "date"):
        if changes.get(key, ...) is None:
            changes.pop(key)

    for key, value in normalize_event_fields(changes).items():
        setattr(event, key, value)
    await db.flush()

    logger.info("event_updated", event_id=str(event.id), fields=sorted(changes))
    return event


async def delete_event(db: AsyncSession, event_id: UUID) -> None:
    """Delete an event together with its memberships and bookings."""
    event = await _load_event(db, event_id)
    await db.delete(event)
    await db.flush()
    logger.info("event_deleted", event_id=str(event_id))


async def _is_attendee(db: AsyncSession, event_id: UUID, user_id: int) -> bool:
    result = await db.execute(
        select(event_attendees.c.user_id).where(
            event_attendees.c.event_id == event_id,
            event_attendees.c.user_id == user_id,
        )
    )
    return result.first() is not None


async def register_attendee(db: AsyncSession, event_id: UUID, user_id: int) -> Event:
    """
    Add a user to the event's attendee set.
    Raises 404 for a missing event or user, 400 if already registered.
    """
    event = await _load_event(db, event_id, with_attendees=True)

    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with id {user_id} was not found")

    if await _is_attendee(db, event_id, user_id):
        logger.warning("attendee_register_rejected", event_id=str(event_id), user_id=user_id)
        record_attendee_change("register", success=False)
        raise ValidationFailed(f"User with id {user_id} is already registered to event {event_id}")

    event.attendees.append(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        record_attendee_change("register", success=False)
        raise ValidationFailed(f"User with id {user_id} is already registered to event {event_id}")

    record_attendee_change("register", success=True)
    logger.info("attendee_registered", event_id=str(event_id), user_id=user_id)
    return event


async def unregister_attendee(db: AsyncSession, event_id: UUID, user_id: int) -> Event:
    """
    Remove a user from the event's attendee set.
    Raises 404 for a missing event, 400 if the user is not registered.
    """
    event = await _load_event(db, event_id, with_attendees=True)

    attendee = next((a for a in event.attendees if a.id == user_id), None)
    if attendee is None:
        logger.warning("attendee_unregister_rejected", event_id=str(event_id), user_id=user_id)
        record_attendee_change("unregister", success=False)
        raise ValidationFailed(f"User with id {user_id} is not registered to event {event_id}")

    event.attendees.remove(attendee)
    await db.flush()

    record_attendee_change("unregister", success=True)
    logger.info("attendee_unregistered", event_id=str(event_id), user_id=user_id)
    return event


async def list_attendees(db: AsyncSession, event_id: UUID) -> list[User]:
    event = await _load_event(db, event_id, with_attendees=True)
    return list(event.attendees)
