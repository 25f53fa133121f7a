"""
Event service.

Reads and edits of single event instances: listing, rescheduling,
cancellation, deletion and capacity changes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from gatherly.core.exceptions import NotFoundError, ValidationError
from gatherly.core.logger import logger
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.interfaces.notification_repository import INotificationRepository
from gatherly.models.enums import EventStatus
from gatherly.models.event import Event, EventReschedule
from gatherly.services import capacity_manager
from gatherly.services.notification_service import (
    notify_event_cancelled,
    notify_event_rescheduled,
    notify_waitlist_promoted,
)
from gatherly.services.rsvp_service import RosterUpdate, update_roster_with_retry
from gatherly.utils.datetime_utils import ensure_utc, local_to_utc, now_utc


class EventService:
    """Operations on individual events."""

    def __init__(
        self,
        event_repo: IEventRepository,
        group_repo: Optional[IGroupRepository] = None,
        notification_repo: Optional[INotificationRepository] = None,
    ):
        self._event_repo = event_repo
        self._group_repo = group_repo
        self._notification_repo = notification_repo

    async def _group_name(self, event: Event) -> Optional[str]:
        if self._group_repo is None:
            return None
        group = await self._group_repo.get(event.group_id)
        return group.name if group else None

    async def get_event(self, event_id: UUID) -> Event:
        event = await self._event_repo.get(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return event

    async def list_upcoming_for_user(
        self,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> list[Event]:
        """Events the user belongs to that have not started yet, soonest first."""
        now = ensure_utc(now) if now is not None else now_utc()
        events = await self._event_repo.list_upcoming(now)
        return [event for event in events if user_id in event.members]

    async def list_group_events(
        self,
        group_id: UUID,
        now: Optional[datetime] = None,
    ) -> list[Event]:
        now = ensure_utc(now) if now is not None else now_utc()
        return await self._event_repo.list_by_group(group_id, starts_after=now)

    async def reschedule_event(
        self,
        event_id: UUID,
        data: EventReschedule,
        actor_user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """
        Move an event. The event becomes an override and survives regeneration.

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the new instant is in the past
        """
        now = ensure_utc(now) if now is not None else now_utc()
        await self.get_event(event_id)

        if local_to_utc(data.date, data.time, data.timezone) < now:
            raise ValidationError("Cannot reschedule an event into the past")

        event = await self._event_repo.reschedule(event_id, data.date, data.time, data.timezone)
        logger.info(f"Rescheduled event {event_id} to {data.date.isoformat()} {data.time}")

        if self._notification_repo is not None:
            await notify_event_rescheduled(
                self._notification_repo,
                event,
                actor_user_id=actor_user_id,
                group_name=await self._group_name(event),
            )
        return event

    async def cancel_event(self, event_id: UUID, actor_user_id: Optional[str] = None) -> Event:
        """Mark an event cancelled and notify its members."""
        event = await self.get_event(event_id)
        if event.status == EventStatus.CANCELLED:
            return event

        event = await self._event_repo.set_status(event_id, EventStatus.CANCELLED)
        logger.info(f"Cancelled event {event_id}")

        if self._notification_repo is not None:
            await notify_event_cancelled(
                self._notification_repo,
                event,
                actor_user_id=actor_user_id,
                group_name=await self._group_name(event),
            )
        return event

    async def delete_event(self, event_id: UUID) -> None:
        deleted = await self._event_repo.delete(event_id)
        if not deleted:
            raise NotFoundError(f"Event {event_id} not found")
        logger.info(f"Deleted event {event_id}")

    async def update_capacity(self, event_id: UUID, capacity: int) -> Event:
        """
        Change an event's capacity.

        Raising it (or setting it to unlimited) promotes waitlisted users in
        order. Lowering it below the current attendance keeps everyone who is
        already in; only new requests are waitlisted.
        """
        if capacity < 0:
            raise ValidationError("Capacity must be zero (unlimited) or positive")

        def resize(event: Event) -> Optional[RosterUpdate]:
            roster, promoted = capacity_manager.fill_vacancies(event.roster, capacity)
            return RosterUpdate(roster=roster, promoted=promoted, capacity=capacity)

        event, promoted = await update_roster_with_retry(self._event_repo, event_id, resize)

        if promoted:
            logger.info(f"Promoted {promoted} on event {event_id} after capacity change")
            if self._notification_repo is not None:
                await notify_waitlist_promoted(
                    self._notification_repo,
                    event,
                    promoted,
                    group_name=await self._group_name(event),
                )
        return event
