"""
Group repository interface.

Defines contract for group persistence operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from gatherly.models.group import Group, GroupCreate, GroupUpdate


class IGroupRepository(ABC):
    """Abstract interface for group persistence."""

    @abstractmethod
    async def create(self, owner_id: str, data: GroupCreate) -> Group:
        """Create a group; the owner becomes its first member."""
        pass

    @abstractmethod
    async def get(self, group_id: UUID) -> Optional[Group]:
        """Get a group by ID."""
        pass

    @abstractmethod
    async def list_for_member(self, user_id: str) -> list[Group]:
        """List groups the user belongs to."""
        pass

    @abstractmethod
    async def list_scheduled_ids(self) -> list[UUID]:
        """IDs of every group that has a recurring schedule."""
        pass

    @abstractmethod
    async def update(self, group_id: UUID, update: GroupUpdate) -> Group:
        """Apply the fields set on ``update``."""
        pass

    @abstractmethod
    async def add_member(self, group_id: UUID, user_id: str) -> Group:
        """Add a user to the member list (no-op if present)."""
        pass

    @abstractmethod
    async def remove_member(self, group_id: UUID, user_id: str) -> Group:
        """Remove a user from the member and moderator lists."""
        pass

    @abstractmethod
    async def delete(self, group_id: UUID) -> bool:
        """Delete a group."""
        pass
