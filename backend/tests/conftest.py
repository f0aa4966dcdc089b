"""
Pytest configuration and fixtures for Tasktrack tests.
"""

import itertools
import os
from datetime import timedelta

# Point the app at SQLite before tasktrack.database builds its engine
os.environ.setdefault("TASKTRACK_DATABASE_URL", "sqlite+aiosqlite://")
# Cheapest bcrypt cost factor
os.environ.setdefault("TASKTRACK_BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from tasktrack.main import app
from tasktrack.database import get_session
from tasktrack.models import Person, Project, Task
from tasktrack.models.base import utcnow


# In-memory database shared by every session of a test
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    # Drop all tables after tests
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_engine):
    """Create an async test client with test database."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_person(test_session):
    """Persist a person and return it. Usernames default to user1, user2, ..."""
    counter = itertools.count(1)

    async def _make(username: str | None = None, active: bool = True) -> Person:
        username = username or f"user{next(counter)}"
        person = Person(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            password_hash="not-a-real-hash",
            active=active,
        )
        test_session.add(person)
        await test_session.commit()
        return person

    return _make


@pytest.fixture
def make_project(test_session):
    """Persist a project owned by the given person."""

    async def _make(owner: Person, name: str = "Apollo", active: bool = True) -> Project:
        project = Project(name=name, owner_id=owner.id, active=active)
        test_session.add(project)
        await test_session.commit()
        return project

    return _make


def build_task(**overrides) -> Task:
    """Unsaved task with valid defaults, for aggregate-level tests."""
    fields = {
        "title": "Write release notes",
        "description": "Summarise every change shipped this sprint.",
        "due_date": utcnow() + timedelta(days=7),
    }
    fields.update(overrides)
    return Task(**fields)


def build_person(username: str = "alice", active: bool = True) -> Person:
    """Unsaved person, for aggregate-level tests."""
    return Person(
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        password_hash="not-a-real-hash",
        active=active,
    )
