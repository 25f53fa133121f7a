"""
RSVP service.

Loads the event, applies the state machine and waitlist promotion, and
persists with a version-guarded write. A lost race reloads and retries, so
submissions on one event serialize at the storage level while different
events never contend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import UUID

from gatherly.core.config import get_settings
from gatherly.core.exceptions import (
    ConcurrencyConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from gatherly.core.logger import logger
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.notification_repository import INotificationRepository
from gatherly.models.enums import EventStatus
from gatherly.models.event import Event, Roster
from gatherly.services import capacity_manager, rsvp_state_machine
from gatherly.services.notification_service import notify_waitlist_promoted


@dataclass(frozen=True)
class RosterUpdate:
    """New roster to write, plus who got promoted on the way."""

    roster: Roster
    promoted: list[str] = field(default_factory=list)
    capacity: Optional[int] = None


# Returns None when the event needs no write
RosterChange = Callable[[Event], Optional[RosterUpdate]]


async def update_roster_with_retry(
    event_repo: IEventRepository,
    event_id: UUID,
    change: RosterChange,
    max_retries: Optional[int] = None,
) -> tuple[Event, list[str]]:
    """
    Read-modify-write an event roster under optimistic concurrency.

    ``change`` is re-applied to a freshly loaded event after every lost
    compare-and-swap and may raise to abort.

    Returns:
        The stored event and the users promoted from the waitlist

    Raises:
        NotFoundError: If the event does not exist
        ConcurrencyConflictError: If every attempt lost
    """
    attempts = max_retries if max_retries is not None else get_settings().RSVP_MAX_RETRIES
    if attempts < 1:
        raise ValueError(f"max_retries must be at least 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        event = await event_repo.get(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")

        update = change(event)
        if update is None:
            return event, []

        try:
            stored = await event_repo.update_roster(
                event.id, event.version, update.roster, capacity=update.capacity
            )
        except ConcurrencyConflictError:
            logger.debug(f"Roster conflict on event {event_id} (attempt {attempt}/{attempts})")
            continue
        return stored, update.promoted

    raise ConcurrencyConflictError(
        f"Could not update roster of event {event_id} after {attempts} attempts",
        details={"event_id": str(event_id), "attempts": attempts},
    )


class RsvpService:
    """Applies RSVP submissions to events."""

    def __init__(
        self,
        event_repo: IEventRepository,
        notification_repo: Optional[INotificationRepository] = None,
        max_retries: Optional[int] = None,
    ):
        self._event_repo = event_repo
        self._notification_repo = notification_repo
        self._max_retries = max_retries

    async def submit_rsvp(self, event_id: UUID, user_id: str, requested_status) -> Event:
        """
        Record a user's RSVP.

        Raises:
            InvalidRequestError: If the status is not in/out or the event is cancelled
            NotFoundError: If the event does not exist
            ForbiddenError: If the user is not a member of the event
            ConcurrencyConflictError: If every retry lost against a concurrent writer
        """
        status = rsvp_state_machine.parse_requested_status(requested_status)

        def change(event: Event) -> Optional[RosterUpdate]:
            if user_id not in event.members:
                raise ForbiddenError(f"User {user_id} is not a member of event {event.id}")
            if event.status == EventStatus.CANCELLED:
                raise InvalidRequestError(f"Event {event.id} is cancelled")

            transition = rsvp_state_machine.submit(event.roster, user_id, status, event.capacity)
            if transition.roster == event.roster:
                return None
            roster, promoted = capacity_manager.fill_vacancies(transition.roster, event.capacity)
            return RosterUpdate(roster=roster, promoted=promoted)

        event, promoted = await update_roster_with_retry(
            self._event_repo, event_id, change, self._max_retries
        )

        if promoted:
            logger.info(f"Promoted {promoted} from waitlist on event {event_id}")
            if self._notification_repo is not None:
                await notify_waitlist_promoted(self._notification_repo, event, promoted)
        return event
