"""
Enum definitions for the application.

These enums are used across models and provide type-safe status values.
"""

from enum import Enum


class OrdinalOccurrence(str, Enum):
    """Which instance of a weekday within a month ("2nd Wednesday")."""

    FIRST = "1st"
    SECOND = "2nd"
    THIRD = "3rd"
    FOURTH = "4th"
    FIFTH = "5th"
    LAST = "Last"

    @property
    def index(self) -> int:
        """1-based position within the month; -1 for the last one."""
        return {
            "1st": 1,
            "2nd": 2,
            "3rd": 3,
            "4th": 4,
            "5th": 5,
            "Last": -1,
        }[self.value]


class EventStatus(str, Enum):
    """Event status."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"


class RsvpStatus(str, Enum):
    """
    Roster state of a user on one event.

    Only IN and OUT may be requested; UNDECIDED and WAITLIST are assigned
    by the engine.
    """

    UNDECIDED = "undecided"
    IN = "in"
    OUT = "out"
    WAITLIST = "waitlist"
