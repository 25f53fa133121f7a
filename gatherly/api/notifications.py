"""
Notifications API endpoints.

The current user's inbox, plus answering group invites.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from gatherly.api.deps import CurrentUser, EventRepo, GroupRepo, NotificationRepo
from gatherly.core.exceptions import BusinessLogicError, NotFoundError
from gatherly.models.group import Group
from gatherly.models.notification import Notification
from gatherly.services.group_service import GroupService

router = APIRouter()


class Inbox(BaseModel):
    """A page of notifications with the overall unread count."""

    notifications: list[Notification]
    unread_count: int


class UnreadCount(BaseModel):
    count: int


def _not_found(notification_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Notification {notification_id} not found",
    )


@router.get("", response_model=Inbox)
async def list_notifications(
    user: CurrentUser,
    notification_repo: NotificationRepo,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """List the current user's notifications, newest first."""
    return Inbox(
        notifications=await notification_repo.list_for_user(user.id, unread_only, limit, offset),
        unread_count=await notification_repo.count_unread(user.id),
    )


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(user: CurrentUser, notification_repo: NotificationRepo):
    return UnreadCount(count=await notification_repo.count_unread(user.id))


@router.post("/read-all", response_model=UnreadCount)
async def mark_all_read(user: CurrentUser, notification_repo: NotificationRepo):
    """Mark everything read; returns how many notifications changed."""
    return UnreadCount(count=await notification_repo.mark_read(user.id))


@router.get("/{notification_id}", response_model=Notification)
async def get_notification(
    notification_id: UUID,
    user: CurrentUser,
    notification_repo: NotificationRepo,
):
    notification = await notification_repo.get(user.id, notification_id)
    if notification is None:
        raise _not_found(notification_id)
    return notification


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: UUID,
    user: CurrentUser,
    notification_repo: NotificationRepo,
):
    await notification_repo.mark_read(user.id, [notification_id])
    notification = await notification_repo.get(user.id, notification_id)
    if notification is None:
        raise _not_found(notification_id)
    return notification


async def _answer_invite(accept: bool, notification_id: UUID, user_id: str, service: GroupService):
    try:
        if accept:
            return await service.accept_invite(notification_id, user_id)
        return await service.decline_invite(notification_id, user_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
        ) from exc
    except BusinessLogicError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc


@router.post("/{notification_id}/accept", response_model=Group)
async def accept_invite(
    notification_id: UUID,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Accept a group invite and join the group."""
    service = GroupService(group_repo, event_repo, notification_repo)
    return await _answer_invite(True, notification_id, user.id, service)


@router.post("/{notification_id}/decline", response_model=Notification)
async def decline_invite(
    notification_id: UUID,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Decline a group invite."""
    service = GroupService(group_repo, event_repo, notification_repo)
    return await _answer_invite(False, notification_id, user.id, service)
