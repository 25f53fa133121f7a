"""
Notification helper functions for creating notifications across the app.

Each function builds the notifications for one kind of change and handles
recipient filtering (exclude the actor, skip empty recipient sets).
"""

from typing import Iterable, Optional

from gatherly.interfaces.notification_repository import INotificationRepository
from gatherly.models.event import Event
from gatherly.models.group import Group
from gatherly.models.notification import Notification, NotificationCreate, NotificationType


def _recipients(user_ids: Iterable[str], actor_user_id: Optional[str]) -> list[str]:
    return [uid for uid in dict.fromkeys(user_ids) if uid != actor_user_id]


def _when(event: Event) -> str:
    return f"{event.date.isoformat()} {event.time} ({event.timezone})"


async def _notify_event(
    notification_repo: INotificationRepository,
    event: Event,
    recipients: list[str],
    type: NotificationType,
    title: str,
    message: str,
    actor_user_id: Optional[str],
    group_name: Optional[str],
):
    if not recipients:
        return
    await notification_repo.add([
        NotificationCreate(
            user_id=uid,
            type=type,
            title=title,
            message=message,
            sender_id=actor_user_id,
            group_id=event.group_id,
            group_name=group_name,
            event_id=event.id,
        )
        for uid in recipients
    ])


async def notify_waitlist_promoted(
    notification_repo: INotificationRepository,
    event: Event,
    promoted_user_ids: list[str],
    group_name: Optional[str] = None,
):
    """Tell each promoted user they moved from the waitlist into the event."""
    await _notify_event(
        notification_repo,
        event,
        list(promoted_user_ids),
        NotificationType.WAITLIST_PROMOTED,
        "You're in!",
        f"A spot opened up for {event.name} on {_when(event)}",
        None,
        group_name,
    )


async def notify_event_cancelled(
    notification_repo: INotificationRepository,
    event: Event,
    actor_user_id: Optional[str] = None,
    group_name: Optional[str] = None,
):
    """Notify every event member except the actor about a cancellation."""
    await _notify_event(
        notification_repo,
        event,
        _recipients(event.members, actor_user_id),
        NotificationType.EVENT_CANCELLED,
        "Event cancelled",
        f"{event.name} on {_when(event)} has been cancelled",
        actor_user_id,
        group_name,
    )


async def notify_event_rescheduled(
    notification_repo: INotificationRepository,
    event: Event,
    actor_user_id: Optional[str] = None,
    group_name: Optional[str] = None,
):
    """Notify attendees and waitlisted users that the event moved."""
    await _notify_event(
        notification_repo,
        event,
        _recipients(event.in_ + event.waitlist, actor_user_id),
        NotificationType.EVENT_RESCHEDULED,
        "Event rescheduled",
        f"{event.name} moved to {_when(event)}",
        actor_user_id,
        group_name,
    )


async def notify_group_member_added(
    notification_repo: INotificationRepository,
    group: Group,
    user_id: str,
    actor_user_id: Optional[str] = None,
):
    """Welcome a newly added member."""
    if user_id == actor_user_id:
        return

    await notification_repo.add([NotificationCreate(
        user_id=user_id,
        type=NotificationType.GROUP_MEMBER_ADDED,
        title="Added to group",
        message=f"You were added to {group.name}",
        sender_id=actor_user_id,
        group_id=group.id,
        group_name=group.name,
    )])


async def send_group_invite(
    notification_repo: INotificationRepository,
    group: Group,
    user_id: str,
    sender_id: str,
) -> Notification:
    """Store a pending invite for ``user_id`` and return it."""
    [invite] = await notification_repo.add([NotificationCreate(
        user_id=user_id,
        type=NotificationType.GROUP_INVITE,
        title="Group invitation",
        message=f"You were invited to join {group.name}",
        sender_id=sender_id,
        group_id=group.id,
        group_name=group.name,
    )])
    return invite


async def notify_invite_answered(
    notification_repo: INotificationRepository,
    group: Group,
    user_id: str,
    accepted: bool,
):
    """Tell the group owner how ``user_id`` answered their invite."""
    if accepted:
        kind, verb = NotificationType.INVITE_ACCEPTED, "accepted"
    else:
        kind, verb = NotificationType.INVITE_DECLINED, "declined"

    await notification_repo.add([NotificationCreate(
        user_id=group.owner_id,
        type=kind,
        title=f"Invite {verb}",
        message=f"{user_id} {verb} your invitation to {group.name}",
        sender_id=user_id,
        group_id=group.id,
        group_name=group.name,
    )])
