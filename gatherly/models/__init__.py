"""Pydantic models (schemas) for the application."""

from gatherly.models.enums import EventStatus, OrdinalOccurrence, RsvpStatus
from gatherly.models.event import Event, EventCreate, EventReschedule, OneOffEventCreate, Roster
from gatherly.models.group import Group, GroupCreate, GroupUpdate
from gatherly.models.notification import (
    InviteStatus,
    Notification,
    NotificationCreate,
    NotificationType,
)
from gatherly.models.recurrence import (
    BiweeklyRule,
    CustomRule,
    DailyRule,
    MonthDayTime,
    MonthlyRule,
    OrdinalRule,
    RecurrenceRule,
    WeekdayTime,
    WeeklyRule,
    parse_rule,
)

__all__ = [
    # Enums
    "EventStatus",
    "OrdinalOccurrence",
    "RsvpStatus",
    # Recurrence
    "RecurrenceRule",
    "DailyRule",
    "WeeklyRule",
    "BiweeklyRule",
    "MonthlyRule",
    "OrdinalRule",
    "CustomRule",
    "WeekdayTime",
    "MonthDayTime",
    "parse_rule",
    # Groups
    "Group",
    "GroupCreate",
    "GroupUpdate",
    # Events
    "Event",
    "EventCreate",
    "EventReschedule",
    "OneOffEventCreate",
    "Roster",
    # Notifications
    "Notification",
    "NotificationCreate",
    "NotificationType",
    "InviteStatus",
]
