"""
Unit tests for SQLite group repository.
"""

from datetime import date
from uuid import uuid4

import pytest

from gatherly.core.exceptions import NotFoundError
from gatherly.models.group import GroupCreate, GroupUpdate
from gatherly.models.recurrence import BiweeklyRule, WeeklyRule


def _scheduled_group(**overrides) -> GroupCreate:
    fields = {
        "name": "Book Club",
        "schedule": {"frequency": "weekly", "day_times": [{"day": 3}]},
        "time": "06:00 PM",
        "timezone": "America/Denver",
        "default_capacity": 8,
        "default_location": "Library",
    }
    fields.update(overrides)
    return GroupCreate(**fields)


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_owner_is_first_member(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        assert group.owner_id == test_user_id
        assert group.members == [test_user_id]
        assert group.default_capacity == 8

    @pytest.mark.asyncio
    async def test_schedule_round_trips_as_typed_rule(self, group_repo, test_user_id):
        data = _scheduled_group(
            schedule={"frequency": "biweekly", "day_times": [{"day": 2}], "start_date": "2025-03-04"}
        )
        created = await group_repo.create(test_user_id, data)

        stored = await group_repo.get(created.id)
        assert isinstance(stored.schedule, BiweeklyRule)
        assert stored.schedule.start_date == date(2025, 3, 4)

    @pytest.mark.asyncio
    async def test_get_unknown(self, group_repo):
        assert await group_repo.get(uuid4()) is None


class TestListing:
    @pytest.mark.asyncio
    async def test_list_for_member(self, group_repo, test_user_id):
        mine = await group_repo.create(test_user_id, _scheduled_group())
        theirs = await group_repo.create("someone_else", _scheduled_group(name="Chess"))
        await group_repo.add_member(theirs.id, test_user_id)
        await group_repo.create("someone_else", _scheduled_group(name="Private"))

        groups = await group_repo.list_for_member(test_user_id)
        assert [g.id for g in groups] == [mine.id, theirs.id]

    @pytest.mark.asyncio
    async def test_list_scheduled_ids_skips_unscheduled(self, group_repo, test_user_id):
        scheduled = await group_repo.create(test_user_id, _scheduled_group())
        await group_repo.create(test_user_id, GroupCreate(name="Chat only"))

        assert await group_repo.list_scheduled_ids() == [scheduled.id]


class TestUpdate:
    @pytest.mark.asyncio
    async def test_only_set_fields_change(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        updated = await group_repo.update(group.id, GroupUpdate(default_location="Cafe"))

        assert updated.default_location == "Cafe"
        assert updated.name == "Book Club"
        assert isinstance(updated.schedule, WeeklyRule)

    @pytest.mark.asyncio
    async def test_clearing_schedule(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        updated = await group_repo.update(group.id, GroupUpdate(schedule=None))

        assert updated.schedule is None
        assert await group_repo.list_scheduled_ids() == []

    @pytest.mark.asyncio
    async def test_update_unknown(self, group_repo):
        with pytest.raises(NotFoundError):
            await group_repo.update(uuid4(), GroupUpdate(name="x"))


class TestMembership:
    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        await group_repo.add_member(group.id, "friend")
        updated = await group_repo.add_member(group.id, "friend")
        assert updated.members == [test_user_id, "friend"]

    @pytest.mark.asyncio
    async def test_remove(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        await group_repo.add_member(group.id, "friend")
        updated = await group_repo.remove_member(group.id, "friend")
        assert updated.members == [test_user_id]

    @pytest.mark.asyncio
    async def test_delete(self, group_repo, test_user_id):
        group = await group_repo.create(test_user_id, _scheduled_group())
        assert await group_repo.delete(group.id) is True
        assert await group_repo.delete(group.id) is False
