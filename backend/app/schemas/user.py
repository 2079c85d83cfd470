"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel, Field, validate_email

from app.schemas.base import CamelModel, RequestModel


def _exact_email(value: str) -> str:
    # Format check only; the address is stored and matched exactly as sent
    _, normalized = validate_email(value)
    if normalized.casefold() != value.casefold():
        raise ValueError("value is not a valid email address")
    return value


EmailAddress = Annotated[str, AfterValidator(_exact_email)]


class UserCreate(RequestModel):
    email: EmailAddress
    password: str = Field(..., min_length=6, max_length=128)
    display_name: str = Field(..., min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)
    origin_world: Optional[str] = Field(None, max_length=255)


class UserLogin(RequestModel):
    email: EmailAddress
    password: str = Field(..., min_length=1)


class UserUpdate(RequestModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)
    origin_world: Optional[str] = Field(None, max_length=255)
    is_alive: Optional[bool] = None


class UserResponse(CamelModel):
    """Public view of a user. The password hash is never part of it."""

    id: int
    email: str
    display_name: str
    avatar_url: Optional[str]
    origin_world: Optional[str]
    is_alive: bool
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
