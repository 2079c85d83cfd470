"""
Authentication service handling user registration, login and
bearer-token resolution.
"""

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.models.user import User
from app.schemas.user import UserCreate, UserLogin
from app.core.exceptions import ConflictError, UnauthorizedError
from app.core.metrics import record_auth_attempt, record_token_rejection
from app.core.security import hash_password, verify_password, create_access_token, decode_access_token
from app.core.logging import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def issue_token(user: User) -> str:
    """Token payload: subject id plus the caller's email and display name."""
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "displayName": user.display_name}
    )


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> tuple[User, str]:
    """
    Register a new user with hashed password.
    Raises 409 if the email already exists.
    """
    if await get_user_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        record_auth_attempt("register", "conflict")
        raise ConflictError("Email already registered")

    # bcrypt is CPU-bound; keep it off the event loop
    hashed = await run_in_threadpool(hash_password, user_data.password)
    user = User(
        email=user_data.email,
        password=hashed,
        display_name=user_data.display_name,
        avatar_url=user_data.avatar_url,
        origin_world=user_data.origin_world,
        is_alive=True,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        await db.rollback()
        record_auth_attempt("register", "conflict")
        raise ConflictError("Email already registered")

    record_auth_attempt("register", "success")
    logger.info("user_registered", user_id=user.id, email=user.email)
    return user, issue_token(user)


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[User, str]:
    """
    Authenticate user and return it with a fresh access token.
    Raises 401 with the same message whether the email or the password is wrong.
    """
    user = await get_user_by_email(db, login_data.email)

    if not user:
        logger.warning("login_failed", reason="unknown_email", email=login_data.email)
        record_auth_attempt("login", "rejected")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not await run_in_threadpool(verify_password, login_data.password, user.password):
        logger.warning("login_failed", reason="wrong_password", user_id=user.id)
        record_auth_attempt("login", "rejected")
        raise UnauthorizedError(INVALID_CREDENTIALS)

    record_auth_attempt("login", "success")
    logger.info("user_logged_in", user_id=user.id)
    return user, issue_token(user)


async def resolve_caller(db: AsyncSession, token: str) -> User:
    """
    Verify a bearer token and load the user it was issued to.
    Raises 401 on a bad signature, expiry, malformed subject or unknown user.
    """
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        record_token_rejection("expired")
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError:
        record_token_rejection("invalid")
        raise UnauthorizedError("Invalid token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        record_token_rejection("invalid")
        raise UnauthorizedError("Invalid token")

    user = await db.get(User, user_id)
    if user is None:
        logger.warning("token_rejected", reason="unknown_user", user_id=user_id)
        record_token_rejection("unknown_user")
        raise UnauthorizedError("Invalid token")
    return user
