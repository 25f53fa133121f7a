"""
Group models.

A group owns a member list and, optionally, a recurring schedule from which
its events are generated.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from gatherly.models.recurrence import RecurrenceRule
from gatherly.utils.datetime_utils import get_zone, parse_clock_time


class GroupBase(BaseModel):
    """Base fields for groups."""

    name: str = Field(..., min_length=1, max_length=200)
    schedule: Optional[RecurrenceRule] = None
    time: Optional[str] = Field(None, description='Default meeting time, e.g. "05:00 PM"')
    timezone: Optional[str] = Field(None, description="IANA zone, e.g. America/Denver")
    default_capacity: int = Field(0, ge=0, description="0 = unlimited")
    default_location: str = Field("", max_length=500)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_clock_time(value)
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            get_zone(value)
        return value

    @model_validator(mode="after")
    def validate_schedule_defaults(self):
        if self.schedule is not None and (not self.time or not self.timezone):
            raise ValueError("a scheduled group requires time and timezone")
        return self


class GroupCreate(GroupBase):
    """Create a new group."""

    pass


class GroupUpdate(BaseModel):
    """Update group fields. Only fields that are set are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    schedule: Optional[RecurrenceRule] = None
    time: Optional[str] = None
    timezone: Optional[str] = None
    default_capacity: Optional[int] = Field(None, ge=0)
    default_location: Optional[str] = Field(None, max_length=500)


class Group(GroupBase):
    """Group with membership and metadata."""

    id: UUID
    owner_id: str
    members: list[str] = Field(default_factory=list)
    moderators: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def is_member(self, user_id: str) -> bool:
        return user_id == self.owner_id or user_id in self.members

    class Config:
        from_attributes = True
