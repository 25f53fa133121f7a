"""
Recurrence rule models.

A rule is a tagged union discriminated by ``frequency``. Each variant carries
only the fields its frequency needs, so shape errors surface at validation
time instead of as missing attributes during date arithmetic.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from gatherly.core.exceptions import InvalidRuleError
from gatherly.models.enums import OrdinalOccurrence
from gatherly.utils.datetime_utils import get_zone, parse_clock_time

MAX_ROUTINES = 5


def _check_clock(value: Optional[str]) -> Optional[str]:
    if value is not None:
        parse_clock_time(value)
    return value


class WeekdayTime(BaseModel):
    """A weekday paired with an optional time of day."""

    model_config = ConfigDict(extra="forbid")

    day: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")
    time: Optional[str] = Field(None, description='Wall clock, e.g. "06:00 PM"')

    _validate_time = field_validator("time")(_check_clock)


class MonthDayTime(BaseModel):
    """A day of the month paired with an optional time of day."""

    model_config = ConfigDict(extra="forbid")

    date: int = Field(..., ge=1, le=31, description="Day of month; clamped in short months")
    time: Optional[str] = Field(None, description='Wall clock, e.g. "06:00 PM"')

    _validate_time = field_validator("time")(_check_clock)


class RuleBase(BaseModel):
    """Fields shared by every rule variant."""

    model_config = ConfigDict(extra="forbid")

    time: Optional[str] = Field(None, description="Shared time; overrides the group default")
    timezone: Optional[str] = Field(None, description="IANA zone; overrides the group default")
    start_date: Optional[date] = Field(
        None, description="No occurrence before this date; anchors biweekly on-weeks"
    )

    _validate_time = field_validator("time")(_check_clock)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            get_zone(value)
        return value


class DailyRule(RuleBase):
    """Every day of the week."""

    frequency: Literal["daily"] = "daily"


class _WeekdaysRule(RuleBase):
    day_times: list[WeekdayTime] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_days(self):
        days = [entry.day for entry in self.day_times]
        if len(days) != len(set(days)):
            raise ValueError("day_times must not repeat a weekday")
        return self


class WeeklyRule(_WeekdaysRule):
    """One or more weekdays, every week."""

    frequency: Literal["weekly"] = "weekly"


class BiweeklyRule(_WeekdaysRule):
    """One or more weekdays, every other week."""

    frequency: Literal["biweekly"] = "biweekly"


class MonthlyRule(RuleBase):
    """One or more days of the month."""

    frequency: Literal["monthly"] = "monthly"
    day_times: list[MonthDayTime] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_dates(self):
        dates = [entry.date for entry in self.day_times]
        if len(dates) != len(set(dates)):
            raise ValueError("day_times must not repeat a day of month")
        return self


class OrdinalRule(RuleBase):
    """The Nth (or last) given weekday of each month."""

    frequency: Literal["ordinal"] = "ordinal"
    occurrence: OrdinalOccurrence
    day: int = Field(..., ge=0, le=6, description="0=Sunday ... 6=Saturday")


Routine = Annotated[
    Union[DailyRule, WeeklyRule, BiweeklyRule, MonthlyRule, OrdinalRule],
    Field(discriminator="frequency"),
]


class CustomRule(RuleBase):
    """Up to five independent routines; the earliest occurrence wins."""

    frequency: Literal["custom"] = "custom"
    routines: list[Routine] = Field(..., min_length=1, max_length=MAX_ROUTINES)


RecurrenceRule = Annotated[
    Union[DailyRule, WeeklyRule, BiweeklyRule, MonthlyRule, OrdinalRule, CustomRule],
    Field(discriminator="frequency"),
]

RULE_TYPES = (DailyRule, WeeklyRule, BiweeklyRule, MonthlyRule, OrdinalRule, CustomRule)

_rule_adapter: TypeAdapter = TypeAdapter(RecurrenceRule)


def parse_rule(raw: Any) -> RuleBase:
    """
    Validate a raw rule (dict or model) into a typed rule.

    Raises:
        InvalidRuleError: If the rule shape does not match its frequency
    """
    if isinstance(raw, RULE_TYPES):
        raw = raw.model_dump(mode="json")
    try:
        return _rule_adapter.validate_python(raw)
    except PydanticValidationError as exc:
        raise InvalidRuleError(
            "Invalid recurrence rule",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc
