"""
Notification repository interface.

Every read and write is scoped to the recipient: a user can never see or
change another user's inbox through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from gatherly.models.notification import InviteStatus, Notification, NotificationCreate


class INotificationRepository(ABC):
    """Abstract interface for the notification inbox."""

    @abstractmethod
    async def add(self, notifications: Sequence[NotificationCreate]) -> list[Notification]:
        """
        Store notifications in one batch, in order.

        Raises:
            DuplicateError: If an invite would open a second pending invite
                for the same user and group
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, notification_id: UUID) -> Optional[Notification]:
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        """List a user's notifications, newest first."""
        pass

    @abstractmethod
    async def count_unread(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def mark_read(
        self,
        user_id: str,
        notification_ids: Optional[Sequence[UUID]] = None,
    ) -> int:
        """Mark the given notifications (all when None) read. Returns how many changed."""
        pass

    @abstractmethod
    async def find_pending_invite(self, user_id: str, group_id: UUID) -> Optional[Notification]:
        pass

    @abstractmethod
    async def resolve_invite(
        self,
        user_id: str,
        notification_id: UUID,
        status: InviteStatus,
    ) -> Optional[Notification]:
        """
        Move a pending invite to ``status`` and mark it read.

        Conditional on the invite still being pending, so concurrent
        responses resolve it once.

        Returns:
            The resolved invite, or None if no pending invite matched
        """
        pass

    @abstractmethod
    async def withdraw_invites(self, group_id: UUID) -> int:
        """Delete a group's pending invites. Returns how many were removed."""
        pass
