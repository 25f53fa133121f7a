"""
Capacity and waitlist management.

The waitlist is FIFO: whenever a seat frees up (an attendee leaves, the
capacity is raised, a member is removed) the head of the waitlist moves into
``in`` until the event is full again.
"""

from __future__ import annotations

from gatherly.models.event import Roster


def fill_vacancies(roster: Roster, capacity: int) -> tuple[Roster, list[str]]:
    """
    Promote waitlisted users in order while seats are free.

    Returns:
        The updated roster and the promoted user ids, in promotion order
    """
    attending = list(roster.in_)
    waitlist = list(roster.waitlist)
    promoted: list[str] = []

    while waitlist and (capacity == 0 or len(attending) < capacity):
        user_id = waitlist.pop(0)
        attending.append(user_id)
        promoted.append(user_id)

    if not promoted:
        return roster, []
    return roster.model_copy(update={"in_": attending, "waitlist": waitlist}), promoted


def remove_member(roster: Roster, user_id: str, capacity: int) -> tuple[Roster, list[str]]:
    """Drop a user from the roster entirely, then fill any seat they held."""
    cleared = roster.without(user_id)
    cleared = cleared.model_copy(update={"members": [m for m in cleared.members if m != user_id]})
    return fill_vacancies(cleared, capacity)


def add_member(roster: Roster, user_id: str) -> Roster:
    """Add a user as an undecided member; no-op when already on the roster."""
    if user_id in roster.members:
        return roster
    return roster.model_copy(
        update={
            "members": roster.members + [user_id],
            "undecided": roster.undecided + [user_id],
        }
    )
