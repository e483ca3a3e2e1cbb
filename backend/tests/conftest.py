"""
Pytest fixtures for test database, client, and seed data.

Each test gets a fresh SQLite file database (or the database in
TEST_DATABASE_URL, e.g. a throwaway PostgreSQL) with tables created
up front and dropped afterwards.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from event_manager.api.deps import get_cache
from event_manager.db.session import Database, get_db
from event_manager.main import create_app
from event_manager.models import Event, User
from event_manager.services.cache_service import EventCache


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables, yield the database, then drop tables for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    db = Database(url, pool_size=20, max_overflow=20)
    await db.drop_all()
    await db.create_all()

    yield db

    await db.drop_all()
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def cache() -> EventCache:
    """Disabled cache; tests that exercise Redis behaviour build their own."""
    return EventCache(None)


@pytest_asyncio.fixture
async def app(database: Database, cache: EventCache):
    application = create_app()

    async def override_get_db():
        async with database.session() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_cache] = lambda: cache
    application.state.database = database

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the ASGI app, no network involved."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(database: Database) -> Callable[..., Awaitable[User]]:
    """Factory inserting users directly through the ORM."""
    counter = {"n": 0}

    async def _make(name: str = None, email: str = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        async with database.session() as session:
            user = User(name=name or f"User {n}", email=email or f"user{n}@example.com")
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest_asyncio.fixture
async def make_event(database: Database) -> Callable[..., Awaitable[Event]]:
    """Factory inserting events directly, bypassing API validation (e.g. past dates)."""

    async def _make(
        title: str = "Test Concert",
        starts_in: timedelta = timedelta(days=30),
        location: str = "Test Venue",
        capacity: int = 100,
    ) -> Event:
        async with database.session() as session:
            event = Event(
                title=title,
                date_time=datetime.now(timezone.utc) + starts_in,
                location=location,
                capacity=capacity,
            )
            session.add(event)
            await session.commit()
            await session.refresh(event)
            return event

    return _make


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user(name="Test User", email="test@example.com")


@pytest_asyncio.fixture
async def test_event(make_event) -> Event:
    """A future event with 100 slots."""
    return await make_event()


@pytest_asyncio.fixture
async def past_event(make_event) -> Event:
    """An event that started yesterday."""
    return await make_event(title="Yesterday's Show", starts_in=timedelta(days=-1))
