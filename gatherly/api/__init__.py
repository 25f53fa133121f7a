"""API routers."""

from gatherly.api import events, groups, jobs, notifications

__all__ = [
    "events",
    "groups",
    "jobs",
    "notifications",
]
