"""
Notification models.

Notifications are the in-app inbox and carry what a push notifier needs;
delivery is external. Group invites are notifications too: they stay
``pending`` until the recipient accepts or declines them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class NotificationType(str, Enum):
    """Types of notifications."""

    WAITLIST_PROMOTED = "waitlist_promoted"
    EVENT_CANCELLED = "event_cancelled"
    EVENT_RESCHEDULED = "event_rescheduled"
    GROUP_MEMBER_ADDED = "group_member_added"
    GROUP_INVITE = "group_invite"
    INVITE_ACCEPTED = "invite_accepted"
    INVITE_DECLINED = "invite_declined"


class InviteStatus(str, Enum):
    """Lifecycle of a group invite."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


EVENT_TYPES = frozenset({
    NotificationType.WAITLIST_PROMOTED,
    NotificationType.EVENT_CANCELLED,
    NotificationType.EVENT_RESCHEDULED,
})


class NotificationCreate(BaseModel):
    """Schema for creating a notification."""

    user_id: str = Field(..., min_length=1, description="Recipient user id")
    type: NotificationType
    title: str = Field(..., max_length=200)
    message: str = Field(..., max_length=500)
    sender_id: Optional[str] = Field(None, description="User whose action caused it")
    group_id: Optional[UUID] = None
    group_name: Optional[str] = None
    event_id: Optional[UUID] = None
    invite_status: Optional[InviteStatus] = None

    @model_validator(mode="after")
    def _check_links(self) -> "NotificationCreate":
        if self.type in EVENT_TYPES and self.event_id is None:
            raise ValueError(f"{self.type.value} notifications must reference an event")
        if self.type == NotificationType.GROUP_INVITE:
            if self.group_id is None:
                raise ValueError("Invites must reference a group")
            if self.invite_status is None:
                self.invite_status = InviteStatus.PENDING
        elif self.invite_status is not None:
            raise ValueError("Only invites carry an invite status")
        return self


class Notification(NotificationCreate):
    """Stored notification."""

    id: UUID
    is_read: bool = False
    created_at: datetime
    responded_at: Optional[datetime] = None

    @property
    def awaiting_response(self) -> bool:
        return self.invite_status == InviteStatus.PENDING
