"""
Event models.

An event is one concrete meeting instance of a group, with its attendance
roster. A user appears in exactly one of undecided / in / out / waitlist.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gatherly.models.enums import EventStatus, RsvpStatus
from gatherly.utils.datetime_utils import get_zone, parse_clock_time


class Roster(BaseModel):
    """Attendance lists of one event. ``waitlist`` is ordered by join time."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    members: list[str] = Field(default_factory=list)
    undecided: list[str] = Field(default_factory=list)
    in_: list[str] = Field(default_factory=list, alias="in")
    out: list[str] = Field(default_factory=list)
    waitlist: list[str] = Field(default_factory=list)

    @classmethod
    def seeded(cls, members: list[str]) -> "Roster":
        """Roster of a fresh event: every member undecided."""
        unique = list(dict.fromkeys(members))
        return cls(members=unique, undecided=list(unique))

    def status_of(self, user_id: str) -> Optional[RsvpStatus]:
        if user_id in self.in_:
            return RsvpStatus.IN
        if user_id in self.waitlist:
            return RsvpStatus.WAITLIST
        if user_id in self.out:
            return RsvpStatus.OUT
        if user_id in self.undecided:
            return RsvpStatus.UNDECIDED
        return None

    def without(self, user_id: str) -> "Roster":
        """Copy with the user removed from the four status lists (not from members)."""
        return self.model_copy(
            update={
                "undecided": [u for u in self.undecided if u != user_id],
                "in_": [u for u in self.in_ if u != user_id],
                "out": [u for u in self.out if u != user_id],
                "waitlist": [u for u in self.waitlist if u != user_id],
            }
        )


class _EventFields(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    date: dt.date
    time: str = Field(..., description='Wall clock, e.g. "05:00 PM"')
    timezone: str
    location: str = Field("", max_length=500)
    capacity: int = Field(0, ge=0, description="0 = unlimited")

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        get_zone(value)
        return value


class EventCreate(_EventFields):
    """Create an event; the roster is seeded from ``members``."""

    group_id: UUID
    is_override: bool = False
    members: list[str] = Field(default_factory=list)


class EventReschedule(BaseModel):
    """Move an event to another date/time; marks it as an override."""

    date: dt.date
    time: str
    timezone: str

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        get_zone(value)
        return value


class OneOffEventCreate(BaseModel):
    """Input for an explicitly scheduled one-off event."""

    date: dt.date
    time: str
    timezone: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, max_length=500)
    capacity: Optional[int] = Field(None, ge=0)


class RsvpRequest(BaseModel):
    """RSVP submission; status is checked by the engine, not here."""

    status: str


class CapacityUpdate(BaseModel):
    capacity: int = Field(..., ge=0)


class Event(_EventFields):
    """Event instance with roster and metadata."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    group_id: UUID
    status: EventStatus = EventStatus.SCHEDULED
    is_override: bool = False
    members: list[str] = Field(default_factory=list)
    undecided: list[str] = Field(default_factory=list)
    in_: list[str] = Field(default_factory=list, alias="in")
    out: list[str] = Field(default_factory=list)
    waitlist: list[str] = Field(default_factory=list)
    starts_at: dt.datetime = Field(..., description="UTC instant of date + time in timezone")
    version: int = 0
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def roster(self) -> Roster:
        return Roster(
            members=self.members,
            undecided=self.undecided,
            in_=self.in_,
            out=self.out,
            waitlist=self.waitlist,
        )

    def is_upcoming(self, now: dt.datetime) -> bool:
        return self.starts_at >= now
