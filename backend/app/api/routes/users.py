"""
User directory endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.user import UserResponse, UserUpdate
from app.schemas.event import UserWithEvents
from app.services.user_service import list_users, get_user, update_user, delete_user
from app.api.access import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", name="users:list", response_model=list[UserResponse])
async def list_users_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_users(db)


@router.get(
    "/{user_id}",
    name="users:get",
    response_model=None,
    responses={200: {"model": UserWithEvents}},
)
async def get_user_endpoint(
    user_id: int,
    include_events: bool = Query(False, alias="includeEvents"),
    db: AsyncSession = Depends(get_db),
):
    """Get a user; with includeEvents=true, also the events they attend."""
    user = await get_user(db, user_id, include_events=include_events)
    if include_events:
        return UserWithEvents.model_validate(user)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", name="users:update", response_model=UserResponse)
async def update_user_endpoint(
    user_id: int,
    user_data: UserUpdate,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update your own profile fields."""
    return await update_user(db, user_id, user_data, caller)


@router.delete("/{user_id}", name="users:delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user_endpoint(
    user_id: int,
    caller: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete your own account, with its attendee memberships and bookings."""
    await delete_user(db, user_id, caller)
