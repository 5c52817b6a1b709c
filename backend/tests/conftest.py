"""
Pytest fixtures for test database, client, users and events.

Tests run against SQLite (aiosqlite) unless TEST_DATABASE_URL points
elsewhere. Tables are created and dropped around every test for isolation.
Redis is disabled; the cache layer degrades to no-ops. Uploaded
backdrops land in a temporary media directory served at /media.
"""

import os
import tempfile

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="eventful-media-"))
os.environ.setdefault("MEDIA_URL", "http://test/media")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models.user import User, Organizer, Attendee
from app.models.event import Event
from app.models.reminder import Reminder

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_eventful.db")

PASSWORD = "testpassword123"


@pytest_asyncio.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, yield a session factory, then drop tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


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


async def _create_user(db: AsyncSession, username: str, role: str) -> User:
    user = User(
        name=username.title(),
        email=f"{username}@example.com",
        username=username,
        hashed_password=hash_password(PASSWORD),
        role=role,
    )
    db.add(user)
    await db.flush()
    if role == "organizer":
        db.add(Organizer(user_id=user.id, organization_name=f"{username.title()} Events"))
    else:
        db.add(Attendee(user_id=user.id))
    await db.flush()
    return user


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def organizer_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "organizer", "organizer")


@pytest_asyncio.fixture
async def other_organizer_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "rival", "organizer")


@pytest_asyncio.fixture
async def attendee_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "attendee", "attendee")


@pytest_asyncio.fixture
async def second_attendee_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "guest", "attendee")


@pytest_asyncio.fixture
async def organizer_headers(organizer_user: User) -> dict:
    return _headers(organizer_user)


@pytest_asyncio.fixture
async def other_organizer_headers(other_organizer_user: User) -> dict:
    return _headers(other_organizer_user)


@pytest_asyncio.fixture
async def attendee_headers(attendee_user: User) -> dict:
    return _headers(attendee_user)


@pytest_asyncio.fixture
async def second_attendee_headers(second_attendee_user: User) -> dict:
    return _headers(second_attendee_user)


@pytest_asyncio.fixture
async def make_event(db_session: AsyncSession, organizer_user: User):
    """Factory for events owned by `organizer_user` (or a given organizer)."""

    async def factory(
        capacity: int = 100,
        tickets_sold: int = 0,
        price: float = 25.0,
        title: str = "Test Concert",
        owner: User = organizer_user,
        date: Optional[datetime] = None,
        reminder_time: Optional[str] = None,
    ) -> Event:
        result = await db_session.execute(select(Organizer).where(Organizer.user_id == owner.id))
        organizer = result.scalar_one()
        event = Event(
            title=title,
            location="Test Venue",
            category="Music",
            description="A test event",
            date=date or datetime.now(timezone.utc) + timedelta(days=30),
            time="19:00",
            price=price,
            capacity=capacity,
            tickets_sold=tickets_sold,
            organizer_id=organizer.id,
            organization_name=organizer.organization_name,
            organizer_email=owner.email,
        )
        db_session.add(event)
        await db_session.flush()
        if reminder_time:
            db_session.add(Reminder(event_id=event.id, email=owner.email, reminder_time=reminder_time))
            await db_session.flush()
        return event

    return factory


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """An event with 100 tickets available."""
    return await make_event()


@pytest_asyncio.fixture
async def sold_out_event(make_event) -> Event:
    return await make_event(capacity=50, tickets_sold=50, title="Sold Out Show")
