"""
Integration tests for GroupService against SQLite.
"""

from datetime import date, datetime, timezone

import pytest

from gatherly.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    InvalidRuleError,
    NotFoundError,
    ValidationError,
)
from gatherly.models.event import OneOffEventCreate
from gatherly.models.group import GroupCreate, GroupUpdate
from gatherly.models.notification import InviteStatus, NotificationType
from gatherly.models.recurrence import BiweeklyRule
from gatherly.services.event_regeneration_service import EventRegenerationJob
from gatherly.services.event_service import EventService
from gatherly.services.group_service import GroupService
from gatherly.services.rsvp_service import RsvpService

MON = datetime(2025, 3, 10, 17, 0, tzinfo=timezone.utc)  # Mon 3/10 10:00 Denver


def _weekly_wednesday(**overrides) -> GroupCreate:
    fields = {
        "name": "Book Club",
        "schedule": {"frequency": "weekly", "day_times": [{"day": 3}]},
        "time": "06:00 PM",
        "timezone": "America/Denver",
        "default_capacity": 1,
    }
    fields.update(overrides)
    return GroupCreate(**fields)


@pytest.fixture
def service(group_repo, event_repo, notification_repo):
    return GroupService(group_repo, event_repo, notification_repo)


class TestCreateGroup:
    @pytest.mark.asyncio
    async def test_first_event_generated(self, service, event_repo, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)

        [event] = await event_repo.list_by_group(group.id)
        assert event.date == date(2025, 3, 12)
        assert event.time == "06:00 PM"
        assert event.is_override is False

    @pytest.mark.asyncio
    async def test_biweekly_anchored_to_creation_week(self, service, event_repo, test_user_id):
        data = _weekly_wednesday(schedule={"frequency": "biweekly", "day_times": [{"day": 3}]})
        group = await service.create_group(test_user_id, data, now=MON)

        assert isinstance(group.schedule, BiweeklyRule)
        assert group.schedule.start_date == date(2025, 3, 10)
        [event] = await event_repo.list_by_group(group.id)
        assert event.date == date(2025, 3, 12)

    @pytest.mark.asyncio
    async def test_unusable_schedule_rejected_before_storing(self, service, group_repo, test_user_id):
        # Skips model validation, as a stale stored group would
        data = _weekly_wednesday().model_copy(update={"time": None})

        with pytest.raises(InvalidRuleError):
            await service.create_group(test_user_id, data, now=MON)
        assert await group_repo.list_for_member(test_user_id) == []


class TestUpdateGroup:
    @pytest.mark.asyncio
    async def test_schedule_change_replaces_generated_event(
        self, service, event_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)

        await service.update_group(
            group.id,
            GroupUpdate(schedule={"frequency": "weekly", "day_times": [{"day": 5}]}),
            now=MON,
        )

        [event] = await event_repo.list_by_group(group.id)
        assert event.date == date(2025, 3, 14)

    @pytest.mark.asyncio
    async def test_non_timing_change_keeps_event(self, service, event_repo, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        [before] = await event_repo.list_by_group(group.id)

        updated = await service.update_group(group.id, GroupUpdate(default_location="Cafe"), now=MON)

        assert updated.default_location == "Cafe"
        [after] = await event_repo.list_by_group(group.id)
        assert after.id == before.id

    @pytest.mark.asyncio
    async def test_echoed_biweekly_rule_keeps_anchor_and_event(
        self, service, group_repo, event_repo, test_user_id
    ):
        rule = {"frequency": "biweekly", "day_times": [{"day": 2}]}
        group = await service.create_group(
            test_user_id,
            _weekly_wednesday(schedule=rule, timezone="UTC"),
            now=datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc),
        )
        wednesday_off_week = datetime(2025, 3, 12, 12, 0, tzinfo=timezone.utc)
        await EventRegenerationJob(group_repo, event_repo).run(wednesday_off_week)
        [before] = await event_repo.list_by_group(group.id)
        assert before.date == date(2025, 3, 18)

        updated = await service.update_group(
            group.id, GroupUpdate(name="Book Club II", schedule=rule), now=wednesday_off_week
        )

        assert updated.schedule.start_date == date(2025, 3, 2)
        [after] = await event_repo.list_by_group(group.id)
        assert after.id == before.id
        assert after.date == date(2025, 3, 18)

    @pytest.mark.asyncio
    async def test_biweekly_day_change_keeps_cadence(self, service, event_repo, test_user_id):
        group = await service.create_group(
            test_user_id,
            _weekly_wednesday(
                schedule={"frequency": "biweekly", "day_times": [{"day": 2}]}, timezone="UTC"
            ),
            now=datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc),
        )

        await service.update_group(
            group.id,
            GroupUpdate(schedule={"frequency": "biweekly", "day_times": [{"day": 4}]}),
            now=datetime(2025, 3, 12, 12, 0, tzinfo=timezone.utc),
        )

        [event] = await event_repo.list_by_group(group.id)
        # Week of 3/9 is an off-week for a schedule anchored on 3/2
        assert event.date == date(2025, 3, 20)

    @pytest.mark.asyncio
    async def test_custom_routine_anchor_inherited(self, service, test_user_id):
        rule = {
            "frequency": "custom",
            "routines": [
                {"frequency": "biweekly", "day_times": [{"day": 2}]},
                {"frequency": "weekly", "day_times": [{"day": 5}]},
            ],
        }
        group = await service.create_group(
            test_user_id,
            _weekly_wednesday(schedule=rule, timezone="UTC"),
            now=datetime(2025, 3, 2, 12, 0, tzinfo=timezone.utc),
        )

        updated = await service.update_group(
            group.id,
            GroupUpdate(schedule=rule),
            now=datetime(2025, 3, 12, 12, 0, tzinfo=timezone.utc),
        )

        assert updated.schedule.routines[0].start_date == date(2025, 3, 2)
        assert updated.schedule.model_dump() == group.schedule.model_dump()

    @pytest.mark.asyncio
    async def test_removing_time_from_scheduled_group_rejected(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        with pytest.raises(ValidationError):
            await service.update_group(group.id, GroupUpdate(time=None), now=MON)

    @pytest.mark.asyncio
    async def test_delete_removes_events(self, service, event_repo, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        await service.delete_group(group.id)

        assert await event_repo.list_by_group(group.id) == []
        with pytest.raises(NotFoundError):
            await service.get_group(group.id)


class TestMembership:
    @pytest.mark.asyncio
    async def test_new_member_enrolled_undecided(
        self, service, event_repo, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)

        await service.add_member(group.id, "friend", now=MON, actor_user_id=test_user_id)

        [event] = await event_repo.list_by_group(group.id)
        assert event.members == [test_user_id, "friend"]
        assert "friend" in event.undecided
        [notification] = await notification_repo.list_for_user("friend")
        assert notification.type == NotificationType.GROUP_MEMBER_ADDED

    @pytest.mark.asyncio
    async def test_duplicate_member(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        with pytest.raises(DuplicateError):
            await service.add_member(group.id, test_user_id, now=MON)

    @pytest.mark.asyncio
    async def test_removal_promotes_waitlist(
        self, service, event_repo, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        await service.add_member(group.id, "friend", now=MON)
        [event] = await event_repo.list_by_group(group.id)

        rsvp = RsvpService(event_repo)
        await rsvp.submit_rsvp(event.id, "friend", "in")
        await rsvp.submit_rsvp(event.id, test_user_id, "in")

        await service.remove_member(group.id, "friend", now=MON)

        stored = await event_repo.get(event.id)
        assert stored.members == [test_user_id]
        assert stored.in_ == [test_user_id]
        assert stored.waitlist == []
        promoted = await notification_repo.list_for_user(test_user_id)
        assert [n.type for n in promoted] == [NotificationType.WAITLIST_PROMOTED]

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        with pytest.raises(BusinessLogicError):
            await service.remove_member(group.id, test_user_id, now=MON)

    @pytest.mark.asyncio
    async def test_removing_stranger(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        with pytest.raises(NotFoundError):
            await service.remove_member(group.id, "stranger", now=MON)


class TestOneOffEvents:
    @pytest.mark.asyncio
    async def test_one_off_is_override_with_group_defaults(self, service, test_user_id):
        group = await service.create_group(
            test_user_id, _weekly_wednesday(default_location="Library"), now=MON
        )

        event = await service.create_one_off_event(
            group.id, OneOffEventCreate(date=date(2025, 3, 15), time="10:00 AM"), now=MON
        )

        assert event.is_override is True
        assert event.timezone == "America/Denver"
        assert event.location == "Library"
        assert event.capacity == 1
        assert event.name == "Book Club"

    @pytest.mark.asyncio
    async def test_one_off_in_past_rejected(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        with pytest.raises(ValidationError):
            await service.create_one_off_event(
                group.id, OneOffEventCreate(date=date(2025, 3, 1), time="10:00 AM"), now=MON
            )

    @pytest.mark.asyncio
    async def test_one_off_needs_timezone_for_unscheduled_group(self, service, test_user_id):
        group = await service.create_group(test_user_id, GroupCreate(name="Chat"), now=MON)
        with pytest.raises(ValidationError):
            await service.create_one_off_event(
                group.id, OneOffEventCreate(date=date(2025, 3, 15), time="10:00 AM"), now=MON
            )

    @pytest.mark.asyncio
    async def test_one_off_listed_with_group_events(self, service, event_repo, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        await service.create_one_off_event(
            group.id, OneOffEventCreate(date=date(2025, 3, 11), time="07:00 PM"), now=MON
        )

        events = await EventService(event_repo).list_group_events(group.id, now=MON)
        assert [e.date for e in events] == [date(2025, 3, 11), date(2025, 3, 12)]


class TestInvites:
    @pytest.mark.asyncio
    async def test_accept_joins_group_and_upcoming_events(
        self, service, event_repo, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        invite = await service.invite_member(group.id, "friend", sender_id=test_user_id)
        assert invite.invite_status == InviteStatus.PENDING

        joined = await service.accept_invite(invite.id, "friend", now=MON)

        assert joined.members == [test_user_id, "friend"]
        [event] = await event_repo.list_by_group(group.id)
        assert event.members == [test_user_id, "friend"]
        assert "friend" in event.undecided
        stored = await notification_repo.get("friend", invite.id)
        assert stored.invite_status == InviteStatus.ACCEPTED
        [notice] = await notification_repo.list_for_user(test_user_id)
        assert notice.type == NotificationType.INVITE_ACCEPTED
        assert notice.sender_id == "friend"

    @pytest.mark.asyncio
    async def test_decline_leaves_group_untouched(
        self, service, event_repo, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        invite = await service.invite_member(group.id, "friend", sender_id=test_user_id)

        declined = await service.decline_invite(invite.id, "friend")

        assert declined.invite_status == InviteStatus.DECLINED
        assert (await service.get_group(group.id)).members == [test_user_id]
        [event] = await event_repo.list_by_group(group.id)
        assert "friend" not in event.members
        [notice] = await notification_repo.list_for_user(test_user_id)
        assert notice.type == NotificationType.INVITE_DECLINED

    @pytest.mark.asyncio
    async def test_invite_answered_once(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        invite = await service.invite_member(group.id, "friend", sender_id=test_user_id)
        await service.decline_invite(invite.id, "friend")

        with pytest.raises(BusinessLogicError):
            await service.accept_invite(invite.id, "friend", now=MON)
        assert (await service.get_group(group.id)).members == [test_user_id]

    @pytest.mark.asyncio
    async def test_only_recipient_can_answer(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        invite = await service.invite_member(group.id, "friend", sender_id=test_user_id)

        with pytest.raises(NotFoundError):
            await service.accept_invite(invite.id, "stranger", now=MON)

    @pytest.mark.asyncio
    async def test_other_notifications_are_not_invites(
        self, service, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        await service.add_member(group.id, "friend", now=MON, actor_user_id=test_user_id)
        [welcome] = await notification_repo.list_for_user("friend")

        with pytest.raises(NotFoundError):
            await service.decline_invite(welcome.id, "friend")

    @pytest.mark.asyncio
    async def test_duplicate_invites_rejected(self, service, test_user_id):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        await service.invite_member(group.id, "friend", sender_id=test_user_id)

        with pytest.raises(DuplicateError):
            await service.invite_member(group.id, "friend", sender_id=test_user_id)
        with pytest.raises(DuplicateError):
            await service.invite_member(group.id, test_user_id, sender_id=test_user_id)

    @pytest.mark.asyncio
    async def test_deleting_group_withdraws_pending_invites(
        self, service, notification_repo, test_user_id
    ):
        group = await service.create_group(test_user_id, _weekly_wednesday(), now=MON)
        invite = await service.invite_member(group.id, "friend", sender_id=test_user_id)

        await service.delete_group(group.id)

        assert await notification_repo.get("friend", invite.id) is None
