"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh in-memory SQLite database (aiosqlite) with all
tables created, and an HTTP client whose DB dependency is overridden
with the test session.
"""

import os

# Must be set before the app (and its engine) is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.config import get_settings
from app.core.security import create_access_token, hash_password
from app.models.user import User
from app.models.event import Event

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables on a fresh in-memory database, yield a session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Redirect image uploads to a temporary directory."""
    monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def _make_user(db_session: AsyncSession, email: str, display_name: str, password: str) -> User:
    user = User(
        email=email,
        password=hash_password(password),
        display_name=display_name,
        origin_world="Earth C-137",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _token_for(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "displayName": user.display_name}
    )


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user in the database."""
    return await _make_user(db_session, "test@example.com", "Test User", "testpassword123")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second user, used for ownership checks."""
    return await _make_user(db_session, "other@example.com", "Other User", "otherpassword123")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return {"Authorization": f"Bearer {_token_for(test_user)}"}


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return {"Authorization": f"Bearer {_token_for(other_user)}"}


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """Create a test event."""
    event = Event(
        title="Test Concert",
        description="A test event",
        date=datetime.now(timezone.utc) + timedelta(days=30),
        location="Test Venue",
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event
