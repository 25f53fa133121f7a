"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from datetime import datetime
from functools import lru_cache
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    JSON,
    text,
)
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from gatherly.core.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class GroupORM(Base):
    """Group ORM model."""

    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    owner_id = Column(String(255), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    schedule = Column(JSON(none_as_null=True), nullable=True)  # RecurrenceRule as JSON
    time = Column(String(20), nullable=True)
    timezone = Column(String(64), nullable=True)
    default_capacity = Column(Integer, default=0)
    default_location = Column(String(500), default="")
    members = Column(JSON, nullable=False, default=list)
    moderators = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class EventORM(Base):
    """Event ORM model."""

    __tablename__ = "events"
    __table_args__ = (
        # At most one generated event per group; overrides are unconstrained
        Index(
            "uq_events_group_generated",
            "group_id",
            unique=True,
            sqlite_where=text("is_override = 0"),
            postgresql_where=text("is_override = false"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    group_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(20), nullable=False)
    timezone = Column(String(64), nullable=False)
    location = Column(String(500), default="")
    capacity = Column(Integer, default=0)
    status = Column(String(20), default="scheduled", index=True)
    is_override = Column(Boolean, default=False, nullable=False)

    # Roster
    members = Column(JSON, nullable=False, default=list)
    undecided = Column(JSON, nullable=False, default=list)
    attending = Column(JSON, nullable=False, default=list)
    out = Column(JSON, nullable=False, default=list)
    waitlist = Column(JSON, nullable=False, default=list)

    starts_at = Column(DateTime, nullable=False, index=True)  # naive UTC
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class NotificationORM(Base):
    """Notification ORM model."""

    __tablename__ = "notifications"
    __table_args__ = (
        # One open invite per user and group
        Index(
            "uq_notifications_pending_invite",
            "user_id",
            "group_id",
            unique=True,
            sqlite_where=text("invite_status = 'pending'"),
            postgresql_where=text("invite_status = 'pending'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(String(500), nullable=False)
    sender_id = Column(String(255), nullable=True)
    group_id = Column(String(36), nullable=True, index=True)
    group_name = Column(String(200), nullable=True)
    event_id = Column(String(36), nullable=True)
    invite_status = Column(String(20), nullable=True)
    is_read = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    responded_at = Column(DateTime, nullable=True)


# ===========================================
# Engine / session
# ===========================================


@lru_cache()
def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
