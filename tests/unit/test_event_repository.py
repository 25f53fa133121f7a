"""
Unit tests for SQLite event repository.

Covers the two conditional writes (create-if-absent and the
version-guarded roster update) plus the time-based queries.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from gatherly.core.exceptions import ConcurrencyConflictError, NotFoundError
from gatherly.models.enums import EventStatus
from gatherly.models.event import EventCreate, Roster


def _make_event(group_id=None, day=date(2025, 3, 12), **overrides) -> EventCreate:
    fields = {
        "group_id": group_id or uuid4(),
        "name": "Book Club",
        "date": day,
        "time": "06:00 PM",
        "timezone": "America/Denver",
        "capacity": 2,
        "members": ["a", "b", "c"],
    }
    fields.update(overrides)
    return EventCreate(**fields)


class TestCreate:
    @pytest.mark.asyncio
    async def test_roster_seeded_undecided(self, event_repo):
        event = await event_repo.create(_make_event(members=["a", "b", "a"]))
        assert event.members == ["a", "b"]
        assert event.undecided == ["a", "b"]
        assert event.in_ == [] and event.waitlist == []
        assert event.version == 0
        assert event.status == EventStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_starts_at_is_utc_instant(self, event_repo):
        event = await event_repo.create(_make_event())
        assert event.starts_at == datetime(2025, 3, 13, 0, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_second_generated_event_conflicts(self, event_repo):
        group_id = uuid4()
        await event_repo.create_if_absent(_make_event(group_id))
        with pytest.raises(ConcurrencyConflictError):
            await event_repo.create_if_absent(_make_event(group_id, day=date(2025, 3, 19)))

        events = await event_repo.list_by_group(group_id)
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_overrides_do_not_block_generated(self, event_repo):
        group_id = uuid4()
        await event_repo.create(_make_event(group_id, is_override=True))
        await event_repo.create(_make_event(group_id, day=date(2025, 3, 14), is_override=True))
        generated = await event_repo.create_if_absent(_make_event(group_id, day=date(2025, 3, 19)))

        assert generated.is_override is False
        assert len(await event_repo.list_by_group(group_id)) == 3

    @pytest.mark.asyncio
    async def test_create_if_absent_always_generated(self, event_repo):
        event = await event_repo.create_if_absent(_make_event(is_override=True))
        assert event.is_override is False


class TestUpdateRoster:
    @pytest.mark.asyncio
    async def test_matching_version_writes_and_bumps(self, event_repo):
        event = await event_repo.create(_make_event())
        roster = Roster(members=["a", "b", "c"], undecided=["b", "c"], in_=["a"])

        updated = await event_repo.update_roster(event.id, event.version, roster)

        assert updated.in_ == ["a"]
        assert updated.undecided == ["b", "c"]
        assert updated.version == event.version + 1
        stored = await event_repo.get(event.id)
        assert stored.roster == roster

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, event_repo):
        event = await event_repo.create(_make_event())
        first = Roster(members=["a", "b", "c"], undecided=["b", "c"], in_=["a"])
        second = Roster(members=["a", "b", "c"], undecided=["a", "c"], in_=["b"])

        await event_repo.update_roster(event.id, event.version, first)
        with pytest.raises(ConcurrencyConflictError):
            await event_repo.update_roster(event.id, event.version, second)

        stored = await event_repo.get(event.id)
        assert stored.in_ == ["a"]

    @pytest.mark.asyncio
    async def test_capacity_written_with_roster(self, event_repo):
        event = await event_repo.create(_make_event())
        updated = await event_repo.update_roster(event.id, 0, event.roster, capacity=5)
        assert updated.capacity == 5

    @pytest.mark.asyncio
    async def test_unknown_event(self, event_repo):
        with pytest.raises(NotFoundError):
            await event_repo.update_roster(uuid4(), 0, Roster())


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_expired_skips_overrides_and_future(self, event_repo):
        now = datetime(2025, 3, 15, tzinfo=timezone.utc)
        past = await event_repo.create(_make_event())
        await event_repo.create(_make_event(is_override=True))
        await event_repo.create(_make_event(day=date(2025, 3, 19)))

        expired = await event_repo.list_expired(now)
        assert [e.id for e in expired] == [past.id]

    @pytest.mark.asyncio
    async def test_list_upcoming_ordered(self, event_repo):
        now = datetime(2025, 3, 15, tzinfo=timezone.utc)
        later = await event_repo.create(_make_event(day=date(2025, 3, 26)))
        sooner = await event_repo.create(_make_event(day=date(2025, 3, 19)))
        await event_repo.create(_make_event())

        upcoming = await event_repo.list_upcoming(now)
        assert [e.id for e in upcoming] == [sooner.id, later.id]

    @pytest.mark.asyncio
    async def test_group_ids_with_upcoming_are_distinct(self, event_repo):
        now = datetime(2025, 3, 15, tzinfo=timezone.utc)
        busy, stale = uuid4(), uuid4()
        await event_repo.create(_make_event(busy, day=date(2025, 3, 19)))
        await event_repo.create(_make_event(busy, day=date(2025, 3, 26), is_override=True))
        await event_repo.create(_make_event(stale))

        assert await event_repo.list_group_ids_with_upcoming(now) == {busy}

    @pytest.mark.asyncio
    async def test_delete_many_and_by_group(self, event_repo):
        group_id = uuid4()
        generated = await event_repo.create(_make_event(group_id))
        override = await event_repo.create(_make_event(group_id, is_override=True))

        assert await event_repo.delete_by_group(group_id, generated_only=True) == 1
        assert await event_repo.get(generated.id) is None
        assert await event_repo.delete_many([override.id]) == 1
        assert await event_repo.delete_many([]) == 0


class TestMutations:
    @pytest.mark.asyncio
    async def test_reschedule_marks_override(self, event_repo):
        event = await event_repo.create(_make_event())
        moved = await event_repo.reschedule(event.id, date(2025, 3, 13), "07:30 PM", "America/New_York")

        assert moved.is_override is True
        assert moved.time == "07:30 PM"
        assert moved.starts_at == datetime(2025, 3, 13, 23, 30, tzinfo=timezone.utc)
        assert moved.version == event.version + 1

    @pytest.mark.asyncio
    async def test_rescheduled_event_frees_generated_slot(self, event_repo):
        group_id = uuid4()
        event = await event_repo.create_if_absent(_make_event(group_id))
        await event_repo.reschedule(event.id, date(2025, 3, 13), "06:00 PM", "America/Denver")

        fresh = await event_repo.create_if_absent(_make_event(group_id, day=date(2025, 3, 19)))
        assert fresh.is_override is False

    @pytest.mark.asyncio
    async def test_set_status(self, event_repo):
        event = await event_repo.create(_make_event())
        cancelled = await event_repo.set_status(event.id, EventStatus.CANCELLED)
        assert cancelled.status == EventStatus.CANCELLED
        assert cancelled.version == 1

    @pytest.mark.asyncio
    async def test_set_status_unknown_event(self, event_repo):
        with pytest.raises(NotFoundError):
            await event_repo.set_status(uuid4(), EventStatus.CANCELLED)
