"""
Authentication endpoints: register, login and the caller's own profile.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserResponse, UserLogin, AuthResponse
from app.services.auth_service import register_user, authenticate_user
from app.api.access import get_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    name="auth:register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account and receive a JWT access token."""
    user, token = await register_user(db, user_data)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/login", name="auth:login", response_model=AuthResponse)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    user, token = await authenticate_user(db, login_data)
    return AuthResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/profile", name="auth:profile", response_model=UserResponse)
async def profile(caller: User = Depends(get_current_user)):
    """The authenticated caller's own public profile."""
    return caller
