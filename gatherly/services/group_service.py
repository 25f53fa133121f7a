"""
Group service.

Group lifecycle, membership and invites. Membership changes are mirrored onto the
rosters of the group's upcoming events; schedule changes replace the
group's generated event.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from gatherly.core.exceptions import (
    BusinessLogicError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from gatherly.core.logger import logger
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.interfaces.notification_repository import INotificationRepository
from gatherly.models.event import Event, EventCreate, OneOffEventCreate
from gatherly.models.group import Group, GroupCreate, GroupUpdate
from gatherly.models.notification import InviteStatus, Notification, NotificationType
from gatherly.models.recurrence import BiweeklyRule, CustomRule
from gatherly.services import capacity_manager
from gatherly.services.event_regeneration_service import EventRegenerationJob
from gatherly.services.notification_service import (
    notify_group_member_added,
    notify_invite_answered,
    notify_waitlist_promoted,
    send_group_invite,
)
from gatherly.services.occurrence_calculator import next_occurrence
from gatherly.services.rsvp_service import RosterUpdate, update_roster_with_retry
from gatherly.utils.datetime_utils import ensure_utc, get_zone, local_to_utc, now_utc


def anchor_biweekly(schedule, default_zone: Optional[str], now: datetime):
    """
    Pin biweekly rules without a start date to the current local week.

    Without an anchor every evaluation decides on-weeks relative to "now",
    which drifts once the current week has no candidates left.
    """
    if schedule is None:
        return None

    def local_today(zone_name: Optional[str]):
        return now.astimezone(get_zone(zone_name)).date()

    if isinstance(schedule, BiweeklyRule) and schedule.start_date is None:
        zone = schedule.timezone or default_zone
        return schedule.model_copy(update={"start_date": local_today(zone)})

    if isinstance(schedule, CustomRule) and schedule.start_date is None:
        routines = []
        for routine in schedule.routines:
            if isinstance(routine, BiweeklyRule) and routine.start_date is None:
                zone = routine.timezone or schedule.timezone or default_zone
                routine = routine.model_copy(update={"start_date": local_today(zone)})
            routines.append(routine)
        return schedule.model_copy(update={"routines": routines})

    return schedule


def inherit_biweekly_anchor(schedule, previous):
    """
    Carry stored biweekly anchors onto an edited schedule that omits them.

    The on-week parity survives an edit. Custom routines are matched by
    position.
    """
    def carry(rule, stored):
        if (
            isinstance(rule, BiweeklyRule)
            and rule.start_date is None
            and isinstance(stored, BiweeklyRule)
            and stored.start_date is not None
        ):
            return rule.model_copy(update={"start_date": stored.start_date})
        return rule

    if isinstance(schedule, CustomRule) and isinstance(previous, CustomRule):
        routines = [
            carry(routine, previous.routines[i] if i < len(previous.routines) else None)
            for i, routine in enumerate(schedule.routines)
        ]
        return schedule.model_copy(update={"routines": routines})
    return carry(schedule, previous)


class GroupService:
    """Group lifecycle, membership and one-off events."""

    def __init__(
        self,
        group_repo: IGroupRepository,
        event_repo: IEventRepository,
        notification_repo: Optional[INotificationRepository] = None,
    ):
        self._group_repo = group_repo
        self._event_repo = event_repo
        self._notification_repo = notification_repo
        self._job = EventRegenerationJob(group_repo, event_repo)

    async def get_group(self, group_id: UUID) -> Group:
        group = await self._group_repo.get(group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    async def list_groups(self, user_id: str) -> list[Group]:
        return await self._group_repo.list_for_member(user_id)

    def _prepare_schedule(self, data: GroupCreate, now: datetime) -> GroupCreate:
        if data.schedule is None:
            return data
        data = data.model_copy(
            update={"schedule": anchor_biweekly(data.schedule, data.timezone, now)}
        )
        # Fail before storing anything if the rule cannot produce an occurrence
        next_occurrence(data.schedule, now, data.time, data.timezone)
        return data

    async def create_group(
        self,
        owner_id: str,
        data: GroupCreate,
        now: Optional[datetime] = None,
    ) -> Group:
        """
        Create a group owned by ``owner_id`` and its first generated event.

        Raises:
            InvalidRuleError: If the schedule cannot produce an occurrence
        """
        now = ensure_utc(now) if now is not None else now_utc()
        data = self._prepare_schedule(data, now)

        group = await self._group_repo.create(owner_id, data)
        logger.info(f"Created group {group.name} ({group.id}) for {owner_id}")

        if group.schedule is not None:
            await self._job.ensure_upcoming_event(group, now)
        return group

    async def update_group(
        self,
        group_id: UUID,
        data: GroupUpdate,
        now: Optional[datetime] = None,
    ) -> Group:
        """
        Apply changes to a group.

        When the schedule, time or timezone changes, the upcoming generated
        event is discarded and recreated from the new schedule.

        Raises:
            NotFoundError: If the group does not exist
            ValidationError: If the merged group is invalid
        """
        now = ensure_utc(now) if now is not None else now_utc()
        group = await self.get_group(group_id)

        changes = data.model_dump(mode="json", exclude_unset=True)
        current = group.model_dump(
            mode="json",
            include={"name", "schedule", "time", "timezone", "default_capacity", "default_location"},
        )
        try:
            merged = GroupCreate.model_validate({**current, **changes})
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid group update",
                details=exc.errors(include_url=False, include_context=False),
            ) from exc
        merged = merged.model_copy(
            update={"schedule": inherit_biweekly_anchor(merged.schedule, group.schedule)}
        )

        merged_fields = merged.model_dump(mode="json")
        timing_changed = any(
            merged_fields[key] != current[key] for key in ("schedule", "time", "timezone")
        )
        if timing_changed:
            merged = self._prepare_schedule(merged, now)

        updated = await self._group_repo.update(
            group_id, GroupUpdate.model_validate(merged.model_dump())
        )

        if timing_changed:
            removed = await self._event_repo.delete_by_group(group_id, generated_only=True)
            logger.info(f"Schedule of group {group_id} changed; replaced {removed} generated events")
            await self._job.ensure_upcoming_event(updated, now)
        return updated

    async def delete_group(self, group_id: UUID) -> None:
        """Delete a group together with all of its events and open invites."""
        await self.get_group(group_id)
        removed = await self._event_repo.delete_by_group(group_id)
        if self._notification_repo is not None:
            await self._notification_repo.withdraw_invites(group_id)
        await self._group_repo.delete(group_id)
        logger.info(f"Deleted group {group_id} and {removed} events")

    async def _enroll(self, group_id: UUID, user_id: str, now: datetime) -> Group:
        group = await self._group_repo.add_member(group_id, user_id)

        def enroll(event: Event) -> Optional[RosterUpdate]:
            if user_id in event.members:
                return None
            return RosterUpdate(roster=capacity_manager.add_member(event.roster, user_id))

        for event in await self._event_repo.list_by_group(group_id, starts_after=now):
            await update_roster_with_retry(self._event_repo, event.id, enroll)
        return group

    async def add_member(
        self,
        group_id: UUID,
        user_id: str,
        now: Optional[datetime] = None,
        actor_user_id: Optional[str] = None,
    ) -> Group:
        """
        Add a member and enroll them as undecided on upcoming events.

        Raises:
            NotFoundError: If the group does not exist
            DuplicateError: If the user already belongs to the group
        """
        now = ensure_utc(now) if now is not None else now_utc()
        group = await self.get_group(group_id)
        if group.is_member(user_id):
            raise DuplicateError(f"User {user_id} is already a member of group {group_id}")

        group = await self._enroll(group_id, user_id, now)

        if self._notification_repo is not None:
            await notify_group_member_added(self._notification_repo, group, user_id, actor_user_id)
        return group

    async def remove_member(
        self,
        group_id: UUID,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> Group:
        """
        Remove a member from the group and from every upcoming event.

        Seats they held are refilled from the waitlist.

        Raises:
            NotFoundError: If the group does not exist or the user is not a member
            BusinessLogicError: If the user is the owner
        """
        now = ensure_utc(now) if now is not None else now_utc()
        group = await self.get_group(group_id)
        if user_id == group.owner_id:
            raise BusinessLogicError("The group owner cannot be removed; delete the group instead")
        if not group.is_member(user_id):
            raise NotFoundError(f"User {user_id} is not a member of group {group_id}")

        group = await self._group_repo.remove_member(group_id, user_id)

        def drop(event: Event) -> Optional[RosterUpdate]:
            if user_id not in event.members and event.roster.status_of(user_id) is None:
                return None
            roster, promoted = capacity_manager.remove_member(event.roster, user_id, event.capacity)
            return RosterUpdate(roster=roster, promoted=promoted)

        for event in await self._event_repo.list_by_group(group_id, starts_after=now):
            stored, promoted = await update_roster_with_retry(self._event_repo, event.id, drop)
            if promoted:
                logger.info(f"Promoted {promoted} on event {stored.id} after {user_id} left")
                if self._notification_repo is not None:
                    await notify_waitlist_promoted(
                        self._notification_repo, stored, promoted, group_name=group.name
                    )
        return group

    async def create_one_off_event(
        self,
        group_id: UUID,
        data: OneOffEventCreate,
        now: Optional[datetime] = None,
    ) -> Event:
        """
        Create an explicitly scheduled (override) event for the group.

        Raises:
            NotFoundError: If the group does not exist
            ValidationError: If no timezone is known or the instant is in the past
        """
        now = ensure_utc(now) if now is not None else now_utc()
        group = await self.get_group(group_id)

        timezone = data.timezone or group.timezone
        if not timezone:
            raise ValidationError("A timezone is required for groups without a default one")
        try:
            starts_at = local_to_utc(data.date, data.time, timezone)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        if starts_at < now:
            raise ValidationError("Cannot create events in the past")

        event = await self._event_repo.create(
            EventCreate(
                group_id=group.id,
                name=data.name or group.name,
                date=data.date,
                time=data.time,
                timezone=timezone,
                location=data.location if data.location is not None else group.default_location,
                capacity=data.capacity if data.capacity is not None else group.default_capacity,
                is_override=True,
                members=group.members,
            )
        )
        logger.info(f"Created one-off event {event.id} for group {group.id}")
        return event

    # ===========================================
    # Invites
    # ===========================================

    def _inbox(self) -> INotificationRepository:
        if self._notification_repo is None:
            raise BusinessLogicError("Invites need a notification repository")
        return self._notification_repo

    async def invite_member(self, group_id: UUID, user_id: str, sender_id: str) -> Notification:
        """
        Send ``user_id`` a pending invite to the group.

        Raises:
            NotFoundError: If the group does not exist
            DuplicateError: If the user is already a member or already has a
                pending invite to this group
        """
        inbox = self._inbox()
        group = await self.get_group(group_id)
        if group.is_member(user_id):
            raise DuplicateError(f"User {user_id} is already a member of group {group_id}")
        if await inbox.find_pending_invite(user_id, group_id) is not None:
            raise DuplicateError(f"User {user_id} already has a pending invite to group {group_id}")

        invite = await send_group_invite(inbox, group, user_id, sender_id)
        logger.info(f"{sender_id} invited {user_id} to group {group_id}")
        return invite

    async def _invited_group(self, notification_id: UUID, user_id: str) -> Group:
        invite = await self._inbox().get(user_id, notification_id)
        if invite is None or invite.type != NotificationType.GROUP_INVITE:
            raise NotFoundError(f"Invite {notification_id} not found")
        if not invite.awaiting_response:
            raise BusinessLogicError("This invitation has already been answered")
        return await self.get_group(invite.group_id)

    async def _resolve(
        self, notification_id: UUID, user_id: str, status: InviteStatus
    ) -> Notification:
        resolved = await self._inbox().resolve_invite(user_id, notification_id, status)
        if resolved is None:
            raise BusinessLogicError("This invitation has already been answered")
        return resolved

    async def accept_invite(
        self,
        notification_id: UUID,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> Group:
        """
        Accept an invite: join the group and its upcoming events as undecided.

        The group owner is told about the answer.

        Raises:
            NotFoundError: If the invite or its group does not exist
            BusinessLogicError: If the invite was already answered
        """
        now = ensure_utc(now) if now is not None else now_utc()
        group = await self._invited_group(notification_id, user_id)
        await self._resolve(notification_id, user_id, InviteStatus.ACCEPTED)

        group = await self._enroll(group.id, user_id, now)
        logger.info(f"{user_id} accepted the invite to group {group.id}")
        await notify_invite_answered(self._inbox(), group, user_id, accepted=True)
        return group

    async def decline_invite(self, notification_id: UUID, user_id: str) -> Notification:
        """
        Decline an invite. The group owner is told about the answer.

        Raises:
            NotFoundError: If the invite or its group does not exist
            BusinessLogicError: If the invite was already answered
        """
        group = await self._invited_group(notification_id, user_id)
        declined = await self._resolve(notification_id, user_id, InviteStatus.DECLINED)

        logger.info(f"{user_id} declined the invite to group {group.id}")
        await notify_invite_answered(self._inbox(), group, user_id, accepted=False)
        return declined
