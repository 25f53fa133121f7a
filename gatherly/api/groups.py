"""
Groups API endpoints.

CRUD for groups, membership, invites and one-off events. Edits are restricted to the
group owner; reads to members.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from gatherly.api.deps import CurrentUser, EventRepo, GroupRepo, NotificationRepo
from gatherly.api.permissions import require_group_member, require_group_owner
from gatherly.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from gatherly.models.event import Event, OneOffEventCreate
from gatherly.models.group import Group, GroupCreate, GroupUpdate
from gatherly.models.notification import Notification
from gatherly.services.event_service import EventService
from gatherly.services.group_service import GroupService

router = APIRouter()


class MemberAdd(BaseModel):
    """Request body naming a user to add or invite."""

    user_id: str = Field(..., min_length=1)


def _service(
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
) -> GroupService:
    return GroupService(group_repo, event_repo, notification_repo)


@router.post("", response_model=Group, status_code=status.HTTP_201_CREATED)
async def create_group(
    payload: GroupCreate,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Create a group owned by the current user."""
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.create_group(user.id, payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.message,
        ) from exc


@router.get("", response_model=list[Group])
async def list_groups(user: CurrentUser, group_repo: GroupRepo):
    """List groups the current user belongs to."""
    return await group_repo.list_for_member(user.id)


@router.get("/{group_id}", response_model=Group)
async def get_group(group_id: UUID, user: CurrentUser, group_repo: GroupRepo):
    """Get a group."""
    return await require_group_member(user, group_id, group_repo)


@router.put("/{group_id}", response_model=Group)
async def update_group(
    group_id: UUID,
    payload: GroupUpdate,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Update a group. A schedule change replaces the upcoming generated event."""
    await require_group_owner(user, group_id, group_repo)
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.update_group(group_id, payload)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
        ) from exc
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.message,
        ) from exc


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: UUID,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Delete a group and all of its events."""
    await require_group_owner(user, group_id, group_repo)
    await _service(group_repo, event_repo, notification_repo).delete_group(group_id)


@router.post("/{group_id}/members", response_model=Group)
async def add_member(
    group_id: UUID,
    payload: MemberAdd,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Add a member to the group and its upcoming events."""
    await require_group_owner(user, group_id, group_repo)
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.add_member(group_id, payload.user_id, actor_user_id=user.id)
    except DuplicateError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc


async def _remove_member(
    group_id: UUID,
    member_id: str,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
) -> Group:
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.remove_member(group_id, member_id)
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


@router.delete("/{group_id}/members/{member_id}", response_model=Group)
async def remove_member(
    group_id: UUID,
    member_id: str,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Remove a member from the group and its upcoming events."""
    await require_group_owner(user, group_id, group_repo)
    return await _remove_member(group_id, member_id, group_repo, event_repo, notification_repo)


@router.post("/{group_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_group(
    group_id: UUID,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Leave a group."""
    await require_group_member(user, group_id, group_repo)
    await _remove_member(group_id, user.id, group_repo, event_repo, notification_repo)


@router.get("/{group_id}/events", response_model=list[Event])
async def list_group_events(
    group_id: UUID,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
):
    """List the group's upcoming events."""
    await require_group_member(user, group_id, group_repo)
    return await EventService(event_repo, group_repo).list_group_events(group_id)


@router.post("/{group_id}/events", response_model=Event, status_code=status.HTTP_201_CREATED)
async def create_one_off_event(
    group_id: UUID,
    payload: OneOffEventCreate,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Schedule an extra (override) event for the group."""
    await require_group_owner(user, group_id, group_repo)
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.create_one_off_event(group_id, payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc


@router.post(
    "/{group_id}/invite",
    response_model=Notification,
    status_code=status.HTTP_201_CREATED,
)
async def invite_member(
    group_id: UUID,
    payload: MemberAdd,
    user: CurrentUser,
    group_repo: GroupRepo,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """Invite a user; they join once they accept."""
    await require_group_owner(user, group_id, group_repo)
    service = _service(group_repo, event_repo, notification_repo)
    try:
        return await service.invite_member(group_id, payload.user_id, sender_id=user.id)
    except DuplicateError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc
