"""
Event regeneration job.

Keeps exactly one upcoming generated event per scheduled group:

1. Delete every generated (non-override) event that has already started.
2. For each affected group, and for every scheduled group left without an
   upcoming event, compute the next occurrence and create it.

Creation goes through the repository's create-if-absent guard, so two
overlapping runs cannot produce duplicates; the loser is counted as skipped.
A failing group is logged and recorded, never aborting the batch.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from gatherly.core.exceptions import ConcurrencyConflictError
from gatherly.core.logger import logger
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.models.event import Event, EventCreate
from gatherly.models.group import Group
from gatherly.services.occurrence_calculator import next_occurrence
from gatherly.utils.datetime_utils import ensure_utc, now_utc


class RegenerationError(BaseModel):
    """One group that could not be regenerated."""

    group_id: str
    error: str


class RegenerationResult(BaseModel):
    """Summary of one regeneration run."""

    deleted: int = 0
    regenerated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[RegenerationError] = Field(default_factory=list)


def build_generated_event(group: Group, now: datetime) -> EventCreate:
    """EventCreate for the group's next occurrence at or after ``now``."""
    occurrence = next_occurrence(group.schedule, now, group.time, group.timezone)
    return EventCreate(
        group_id=group.id,
        name=group.name,
        date=occurrence.date,
        time=occurrence.time,
        timezone=occurrence.timezone,
        location=group.default_location,
        capacity=group.default_capacity,
        is_override=False,
        members=group.members,
    )


class EventRegenerationJob:
    """Deletes expired generated events and creates the next ones."""

    def __init__(self, group_repo: IGroupRepository, event_repo: IEventRepository):
        self._group_repo = group_repo
        self._event_repo = event_repo

    async def ensure_upcoming_event(self, group: Group, now: datetime) -> Optional[Event]:
        """
        Create the group's next generated event unless one already exists.

        Returns:
            The created event, or None when the group is unscheduled or
            another writer already holds the group's generated slot

        Raises:
            InvalidRuleError: If the schedule cannot produce an occurrence
        """
        if group.schedule is None:
            return None
        data = build_generated_event(group, ensure_utc(now))
        try:
            return await self._event_repo.create_if_absent(data)
        except ConcurrencyConflictError:
            logger.debug(f"Group {group.id} already has a generated event; skipping")
            return None

    async def run(self, now: Optional[datetime] = None) -> RegenerationResult:
        """
        Run one regeneration pass.

        Args:
            now: Reference instant; defaults to the current UTC time

        Returns:
            RegenerationResult with per-run counters and per-group errors
        """
        now = ensure_utc(now) if now is not None else now_utc()
        result = RegenerationResult()
        logger.info(f"Event regeneration started (now={now.isoformat()})")

        expired = await self._event_repo.list_expired(now)
        group_ids: list[UUID] = list(dict.fromkeys(event.group_id for event in expired))
        result.deleted = await self._event_repo.delete_many([event.id for event in expired])
        if result.deleted:
            logger.info(f"Deleted {result.deleted} expired events across {len(group_ids)} groups")

        # Scheduled groups with nothing upcoming (new schedules, rescheduled
        # instances that have since passed, earlier failures)
        covered = await self._event_repo.list_group_ids_with_upcoming(now)
        covered.update(group_ids)
        for group_id in await self._group_repo.list_scheduled_ids():
            if group_id not in covered:
                group_ids.append(group_id)
                covered.add(group_id)

        for group_id in group_ids:
            try:
                group = await self._group_repo.get(group_id)
                if group is None or group.schedule is None:
                    continue

                event = await self.ensure_upcoming_event(group, now)
                if event is None:
                    result.skipped += 1
                    continue

                result.regenerated += 1
                logger.info(
                    f"Regenerated event for group {group.name} ({group.id}): "
                    f"{event.date.isoformat()} {event.time} {event.timezone}"
                )
            except Exception as e:
                result.failed += 1
                result.errors.append(RegenerationError(group_id=str(group_id), error=str(e)))
                logger.error(f"Failed to regenerate event for group {group_id}: {e}")

        logger.info(
            f"Event regeneration finished: deleted={result.deleted} "
            f"regenerated={result.regenerated} skipped={result.skipped} failed={result.failed}"
        )
        return result
