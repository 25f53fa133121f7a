"""
Events API endpoints.

Event listing, RSVP submission and owner-side edits (reschedule, cancel,
capacity, delete).
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from gatherly.api.deps import CurrentUser, EventRepo, GroupRepo, NotificationRepo
from gatherly.api.permissions import require_event_member, require_event_owner
from gatherly.core.exceptions import (
    ConcurrencyConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    ValidationError,
)
from gatherly.models.event import CapacityUpdate, Event, EventReschedule, RsvpRequest
from gatherly.services.event_service import EventService
from gatherly.services.rsvp_service import RsvpService

router = APIRouter()


def _parse_event_id(event_id: str) -> UUID:
    try:
        return UUID(event_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid event id: {event_id}",
        ) from exc


@router.get("", response_model=list[Event])
async def list_my_events(user: CurrentUser, event_repo: EventRepo):
    """Upcoming events the current user is a member of, soonest first."""
    return await EventService(event_repo).list_upcoming_for_user(user.id)


@router.get("/{event_id}", response_model=Event)
async def get_event(
    event_id: UUID,
    user: CurrentUser,
    event_repo: EventRepo,
    group_repo: GroupRepo,
):
    """Get an event."""
    event, _ = await require_event_member(user, event_id, event_repo, group_repo)
    return event


@router.post("/{event_id}/rsvp", response_model=Event)
async def submit_rsvp(
    event_id: str,
    payload: RsvpRequest,
    user: CurrentUser,
    event_repo: EventRepo,
    notification_repo: NotificationRepo,
):
    """
    RSVP "in" or "out".

    "in" on a full event puts the user at the end of the waitlist.
    """
    service = RsvpService(event_repo, notification_repo)
    try:
        return await service.submit_rsvp(_parse_event_id(event_id), user.id, payload.status)
    except InvalidRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
        ) from exc
    except ForbiddenError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=exc.message,
        ) from exc
    except ConcurrencyConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc


@router.put("/{event_id}", response_model=Event)
async def reschedule_event(
    event_id: UUID,
    payload: EventReschedule,
    user: CurrentUser,
    event_repo: EventRepo,
    group_repo: GroupRepo,
    notification_repo: NotificationRepo,
):
    """Move an event to another date/time. The event becomes an override."""
    await require_event_owner(user, event_id, event_repo, group_repo)
    service = EventService(event_repo, group_repo, notification_repo)
    try:
        return await service.reschedule_event(event_id, payload, actor_user_id=user.id)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc


@router.patch("/{event_id}/cancel", response_model=Event)
async def cancel_event(
    event_id: UUID,
    user: CurrentUser,
    event_repo: EventRepo,
    group_repo: GroupRepo,
    notification_repo: NotificationRepo,
):
    """Cancel an event and notify its members."""
    await require_event_owner(user, event_id, event_repo, group_repo)
    service = EventService(event_repo, group_repo, notification_repo)
    return await service.cancel_event(event_id, actor_user_id=user.id)


@router.patch("/{event_id}/capacity", response_model=Event)
async def update_capacity(
    event_id: UUID,
    payload: CapacityUpdate,
    user: CurrentUser,
    event_repo: EventRepo,
    group_repo: GroupRepo,
    notification_repo: NotificationRepo,
):
    """Change the capacity; extra seats are filled from the waitlist."""
    await require_event_owner(user, event_id, event_repo, group_repo)
    service = EventService(event_repo, group_repo, notification_repo)
    try:
        return await service.update_capacity(event_id, payload.capacity)
    except ConcurrencyConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.message,
        ) from exc


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    user: CurrentUser,
    event_repo: EventRepo,
    group_repo: GroupRepo,
):
    """Delete an event."""
    await require_event_owner(user, event_id, event_repo, group_repo)
    try:
        await EventService(event_repo, group_repo).delete_event(event_id)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.message,
        ) from exc
