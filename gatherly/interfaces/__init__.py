"""Abstract interfaces for infrastructure components."""

from gatherly.interfaces.auth_provider import IAuthProvider, User
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.interfaces.notification_repository import INotificationRepository

__all__ = [
    "IAuthProvider",
    "User",
    "IEventRepository",
    "IGroupRepository",
    "INotificationRepository",
]
