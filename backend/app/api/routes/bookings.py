"""
Booking endpoints. Every operation on a single booking is owner-gated.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import (
    BookingCreate,
    BookingUpdate,
    BookingDetail,
    BookingWithEvent,
    BookingWithUser,
)
from app.services.booking_service import (
    create_booking,
    get_user_bookings,
    get_event_bookings,
    get_booking,
    update_booking,
    delete_booking,
)
from app.api.access import get_current_user

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", name="bookings:create", response_model=BookingDetail, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book an event for the authenticated user.

    The booking starts as pending. A second booking for the same event
    returns 409; update the existing one instead.
    """
    return await create_booking(db, booking_data, caller.id)


@router.get("", name="bookings:list_mine", response_model=list[BookingWithEvent])
async def list_user_bookings(
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user, newest first."""
    return await get_user_bookings(db, caller.id)


@router.get("/event/{event_id}", name="bookings:list_by_event", response_model=list[BookingWithUser])
async def list_event_bookings(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """All bookings for an event, with the booking users."""
    return await get_event_bookings(db, event_id)


@router.get("/{booking_id}", name="bookings:get", response_model=BookingDetail)
async def get_booking_endpoint(
    booking_id: int,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_booking(db, booking_id, caller.id)


@router.patch("/{booking_id}", name="bookings:update", response_model=BookingDetail)
async def update_booking_endpoint(
    booking_id: int,
    booking_data: BookingUpdate,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change status and/or notes. Only provided fields are applied."""
    return await update_booking(db, booking_id, booking_data, caller.id)


@router.delete("/{booking_id}", name="bookings:delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking_endpoint(
    booking_id: int,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await delete_booking(db, booking_id, caller.id)
