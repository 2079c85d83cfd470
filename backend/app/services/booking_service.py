"""
Booking service: one reservation per (user, event), owner-gated access,
caller-driven status lifecycle.

OWNERSHIP GATE
==============
get/update/delete all follow the same order:
  1. Load the booking          -> 404 if it does not exist
  2. Compare booking.user_id   -> 403 if the caller is not the owner
So a non-owner always gets Forbidden, never NotFound.

UNIQUENESS
==========
At most one booking per (user_id, event_id). The service pre-checks before
inserting; two concurrent requests can both pass that check, so the
uq_booking_user_event constraint is the final guard and its IntegrityError
is reported as the same 409.

STATUS LIFECYCLE
================
pending (on creation) -> confirmed -> cancelled, all via explicit update.
No transition is blocked here; the caller decides.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.booking import Booking, BookingStatus
from app.models.event import Event
from app.schemas.booking import BookingCreate, BookingUpdate
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.metrics import record_booking_operation
from app.core.logging import get_logger

logger = get_logger(__name__)

DUPLICATE_BOOKING = "You already have a booking for this event. Update the existing booking instead."


async def _load_booking(db: AsyncSession, booking_id: int) -> Booking:
    """Fetch a booking with its user and event. Raises 404 if missing."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.user), selectinload(Booking.event))
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFoundError(f"Booking with id {booking_id} was not found")
    return booking


async def _load_owned_booking(db: AsyncSession, booking_id: int, user_id: int, operation: str) -> Booking:
    try:
        booking = await _load_booking(db, booking_id)
    except NotFoundError:
        record_booking_operation(operation, "not_found")
        raise

    if booking.user_id != user_id:
        logger.warning(
            "booking_access_denied",
            booking_id=booking_id,
            owner_id=booking.user_id,
            caller_id=user_id,
            operation=operation,
        )
        record_booking_operation(operation, "forbidden")
        raise ForbiddenError(f"You do not have permission to {operation} this booking")
    return booking


async def _ensure_event_exists(db: AsyncSession, event_id: UUID) -> None:
    if await db.get(Event, event_id) is None:
        raise NotFoundError(f"Event with id {event_id} was not found")


async def _find_booking_id(db: AsyncSession, user_id: int, event_id: UUID) -> Optional[int]:
    result = await db.execute(
        select(Booking.id).where(Booking.user_id == user_id, Booking.event_id == event_id)
    )
    return result.scalar_one_or_none()


async def create_booking(db: AsyncSession, booking_data: BookingCreate, user_id: int) -> Booking:
    """
    Book an event for the caller with status pending.
    Raises 404 if the event is missing, 409 if the caller already booked it.
    """
    event_id = booking_data.event_id
    try:
        await _ensure_event_exists(db, event_id)
    except NotFoundError:
        record_booking_operation("create", "not_found")
        raise

    if await _find_booking_id(db, user_id, event_id) is not None:
        logger.warning("booking_conflict", user_id=user_id, event_id=str(event_id))
        record_booking_operation("create", "conflict")
        raise ConflictError(DUPLICATE_BOOKING)

    booking = Booking(
        user_id=user_id,
        event_id=event_id,
        status=BookingStatus.PENDING.value,
        notes=booking_data.notes,
    )
    db.add(booking)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.warning("booking_conflict", user_id=user_id, event_id=str(event_id), reason="unique_constraint")
        record_booking_operation("create", "conflict")
        raise ConflictError(DUPLICATE_BOOKING)

    record_booking_operation("create", "success")
    logger.info("booking_created", booking_id=booking.id, user_id=user_id, event_id=str(event_id))
    return await _load_booking(db, booking.id)


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings for a user with their events, newest first."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.event))
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def get_event_bookings(db: AsyncSession, event_id: UUID) -> list[Booking]:
    """
    All bookings for an event with their users, newest first.
    Any authenticated user may call this; there is no event ownership to check.
    """
    await _ensure_event_exists(db, event_id)
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.user))
        .where(Booking.event_id == event_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def get_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
    return await _load_owned_booking(db, booking_id, user_id, "view")


async def update_booking(
    db: AsyncSession,
    booking_id: int,
    booking_data: BookingUpdate,
    user_id: int,
) -> Booking:
    """Apply only the provided fields (status, notes) to the caller's booking."""
    booking = await _load_owned_booking(db, booking_id, user_id, "update")

    changes = booking_data.model_dump(exclude_unset=True)
    if changes.get("status") is not None:
        previous = booking.status
        booking.status = BookingStatus(changes["status"]).value
        logger.info("booking_status_changed", booking_id=booking_id, old=previous, new=booking.status)
    if "notes" in changes:
        booking.notes = changes["notes"]
    await db.flush()

    record_booking_operation("update", "success")
    return await _load_booking(db, booking_id)


async def delete_booking(db: AsyncSession, booking_id: int, user_id: int) -> None:
    booking = await _load_owned_booking(db, booking_id, user_id, "delete")
    await db.delete(booking)
    await db.flush()

    record_booking_operation("delete", "success")
    logger.info("booking_deleted", booking_id=booking_id, user_id=user_id)
