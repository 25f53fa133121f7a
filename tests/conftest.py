"""
Shared test fixtures.

Repositories run against an in-memory SQLite database; every test gets a
fresh schema.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gatherly.infrastructure.local.database import Base
from gatherly.infrastructure.local.event_repository import SqliteEventRepository
from gatherly.infrastructure.local.group_repository import SqliteGroupRepository
from gatherly.infrastructure.local.notification_repository import SqliteNotificationRepository
from gatherly.models.enums import EventStatus
from gatherly.models.event import Event
from gatherly.utils.datetime_utils import UTC, local_to_utc


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def test_user_id():
    return "owner_user"


@pytest.fixture
def group_repo(session_factory):
    return SqliteGroupRepository(session_factory=session_factory)


@pytest.fixture
def event_repo(session_factory):
    return SqliteEventRepository(session_factory=session_factory)


@pytest.fixture
def notification_repo(session_factory):
    return SqliteNotificationRepository(session_factory=session_factory)


def make_event(**overrides) -> Event:
    """Build an Event in memory (no database)."""
    day = overrides.pop("date", datetime(2025, 3, 12).date())
    clock = overrides.pop("time", "06:00 PM")
    zone = overrides.pop("timezone", "America/Denver")
    now = datetime(2025, 3, 1, tzinfo=UTC)
    fields = {
        "id": uuid4(),
        "group_id": uuid4(),
        "name": "Book Club",
        "date": day,
        "time": clock,
        "timezone": zone,
        "location": "",
        "capacity": 0,
        "status": EventStatus.SCHEDULED,
        "is_override": False,
        "members": [],
        "undecided": [],
        "in_": [],
        "out": [],
        "waitlist": [],
        "starts_at": local_to_utc(day, clock, zone),
        "version": 0,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Event(**fields)


@pytest.fixture
def event_factory():
    return make_event
