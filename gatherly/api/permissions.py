from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status

from gatherly.api.deps import CurrentUser, EventRepo, GroupRepo
from gatherly.models.event import Event
from gatherly.models.group import Group


async def require_group_member(
    user: CurrentUser,
    group_id: UUID,
    group_repo: GroupRepo,
) -> Group:
    group = await group_repo.get(group_id)
    if group is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Group {group_id} not found",
        )
    if not group.is_member(user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this group",
        )
    return group


async def require_group_owner(
    user: CurrentUser,
    group_id: UUID,
    group_repo: GroupRepo,
) -> Group:
    group = await require_group_member(user, group_id, group_repo)
    if group.owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group owner can do this",
        )
    return group


async def require_event_member(
    user: CurrentUser,
    event_id: UUID,
    event_repo: EventRepo,
    group_repo: GroupRepo,
) -> tuple[Event, Group]:
    event = await event_repo.get(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    group = await require_group_member(user, event.group_id, group_repo)
    return event, group


async def require_event_owner(
    user: CurrentUser,
    event_id: UUID,
    event_repo: EventRepo,
    group_repo: GroupRepo,
) -> tuple[Event, Group]:
    event, group = await require_event_member(user, event_id, event_repo, group_repo)
    if group.owner_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group owner can do this",
        )
    return event, group
