"""
Access-control gate.

`authenticate` is attached to the whole application as a dependency, so it
runs before every route handler. Policy is default-deny:

  1. If the matched route's name is listed in PUBLIC_OPERATIONS, the request
     is allowed and no token is read.
  2. Otherwise a valid `Authorization: Bearer <token>` header is required.
     Missing or malformed header, bad signature, expiry, or a subject that
     no longer exists all yield 401.

Handlers never read identity from ambient request state. They declare
`caller: User = Depends(get_current_user)`, which reuses the identity
resolved by the gate (FastAPI caches a dependency per request).
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.services.auth_service import resolve_caller
from app.core.exceptions import UnauthorizedError
from app.core.metrics import record_token_rejection

bearer_scheme = HTTPBearer(auto_error=False)

# Route names (the `name=` given at registration) exempt from authentication
PUBLIC_OPERATIONS: frozenset[str] = frozenset({
    "auth:register",
    "auth:login",
    "health",
    "root",
    "metrics",
})


def is_public(request: Request) -> bool:
    route = request.scope.get("route")
    return getattr(route, "name", None) in PUBLIC_OPERATIONS


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolve the caller for protected routes; None for public ones."""
    if is_public(request):
        return None

    if credentials is None:
        record_token_rejection("missing")
        raise UnauthorizedError("Not authenticated")

    user = await resolve_caller(db, credentials.credentials)
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


async def get_current_user(user: Optional[User] = Depends(authenticate)) -> User:
    if user is None:
        # A public route asked for a caller; treat it like a missing token
        raise UnauthorizedError("Not authenticated")
    return user
