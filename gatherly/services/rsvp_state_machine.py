"""
RSVP state machine.

Pure roster transitions. Storage, retries and notifications belong to
RsvpService; this module only decides which list a user ends up in.
"""

from __future__ import annotations

from dataclasses import dataclass

from gatherly.core.exceptions import InvalidRequestError
from gatherly.models.enums import RsvpStatus
from gatherly.models.event import Roster

REQUESTABLE_STATUSES = (RsvpStatus.IN, RsvpStatus.OUT)


@dataclass(frozen=True)
class RsvpTransition:
    """Result of one RSVP submission."""

    roster: Roster
    status: RsvpStatus
    vacated_seat: bool = False


def parse_requested_status(value) -> RsvpStatus:
    """
    Accept only "in" or "out".

    Raises:
        InvalidRequestError: For any other value, including "undecided" and "waitlist"
    """
    try:
        status = RsvpStatus(value)
    except ValueError:
        status = None
    if status not in REQUESTABLE_STATUSES:
        raise InvalidRequestError(
            f"Invalid RSVP status: {value!r}",
            details={"allowed": [s.value for s in REQUESTABLE_STATUSES]},
        )
    return status


def has_seat(roster: Roster, capacity: int) -> bool:
    return capacity == 0 or len(roster.in_) < capacity


def submit(roster: Roster, user_id: str, requested_status, capacity: int) -> RsvpTransition:
    """
    Apply an RSVP request to a roster.

    The user is taken out of all four status lists and placed according to
    the request: ``out`` goes to out; ``in`` goes to in when a seat is free,
    otherwise to the back of the waitlist. Repeating the current status
    changes nothing, so an attendee keeps the seat and a waitlisted user
    keeps their queue position.

    Raises:
        InvalidRequestError: If ``requested_status`` is not in/out
    """
    status = parse_requested_status(requested_status)
    current = roster.status_of(user_id)

    if status == RsvpStatus.IN and current in (RsvpStatus.IN, RsvpStatus.WAITLIST):
        return RsvpTransition(roster=roster, status=current)
    if status == RsvpStatus.OUT and current == RsvpStatus.OUT:
        return RsvpTransition(roster=roster, status=current)

    cleared = roster.without(user_id)
    vacated = current == RsvpStatus.IN

    if status == RsvpStatus.OUT:
        updated = cleared.model_copy(update={"out": cleared.out + [user_id]})
        return RsvpTransition(roster=updated, status=RsvpStatus.OUT, vacated_seat=vacated)

    if has_seat(cleared, capacity):
        updated = cleared.model_copy(update={"in_": cleared.in_ + [user_id]})
        return RsvpTransition(roster=updated, status=RsvpStatus.IN)

    updated = cleared.model_copy(update={"waitlist": cleared.waitlist + [user_id]})
    return RsvpTransition(roster=updated, status=RsvpStatus.WAITLIST)
