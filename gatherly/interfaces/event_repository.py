"""
Event repository interface.

Defines contract for event persistence operations. Two writes are
conditional and must be atomic in every implementation:

- ``create_if_absent``: at most one generated (non-override) event per group.
- ``update_roster``: compare-and-swap on the event version.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from gatherly.models.enums import EventStatus
from gatherly.models.event import Event, EventCreate, Roster


class IEventRepository(ABC):
    """Abstract interface for event persistence."""

    @abstractmethod
    async def create(self, data: EventCreate) -> Event:
        """Create an event with a roster seeded from ``data.members``."""
        pass

    @abstractmethod
    async def create_if_absent(self, data: EventCreate) -> Event:
        """
        Create a generated event unless the group already has one.

        Raises:
            ConcurrencyConflictError: If a generated event already exists for the group
        """
        pass

    @abstractmethod
    async def get(self, event_id: UUID) -> Optional[Event]:
        """Get an event by ID."""
        pass

    @abstractmethod
    async def list_by_group(
        self,
        group_id: UUID,
        starts_after: Optional[datetime] = None,
    ) -> list[Event]:
        """List a group's events, optionally only those starting at/after an instant."""
        pass

    @abstractmethod
    async def list_upcoming(self, now: datetime) -> list[Event]:
        """List events starting at or after ``now``, ordered by start."""
        pass

    @abstractmethod
    async def list_group_ids_with_upcoming(self, now: datetime) -> set[UUID]:
        """Distinct ids of groups owning any event that starts at or after ``now``."""
        pass

    @abstractmethod
    async def list_expired(self, now: datetime) -> list[Event]:
        """List generated (non-override) events that started strictly before ``now``."""
        pass

    @abstractmethod
    async def delete_many(self, event_ids: list[UUID]) -> int:
        """Delete events by ID in one batch. Returns the number deleted."""
        pass

    @abstractmethod
    async def delete_by_group(self, group_id: UUID, generated_only: bool = False) -> int:
        """Delete a group's events (only generated ones if requested)."""
        pass

    @abstractmethod
    async def delete(self, event_id: UUID) -> bool:
        """Delete an event."""
        pass

    @abstractmethod
    async def update_roster(
        self,
        event_id: UUID,
        expected_version: int,
        roster: Roster,
        capacity: Optional[int] = None,
    ) -> Event:
        """
        Replace the roster (and optionally capacity) if the version still matches.

        Raises:
            NotFoundError: If the event does not exist
            ConcurrencyConflictError: If another write bumped the version first
        """
        pass

    @abstractmethod
    async def reschedule(
        self,
        event_id: UUID,
        day: date,
        time: str,
        timezone: str,
    ) -> Event:
        """Move an event and mark it as an override."""
        pass

    @abstractmethod
    async def set_status(self, event_id: UUID, status: EventStatus) -> Event:
        """Set the event status."""
        pass
