"""
SQLite implementation of notification repository.

The one-pending-invite rule is a partial unique index; invite responses are
a status-guarded UPDATE.
"""

from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from gatherly.core.exceptions import DuplicateError
from gatherly.infrastructure.local.database import NotificationORM, get_session_factory
from gatherly.interfaces.notification_repository import INotificationRepository
from gatherly.models.notification import (
    InviteStatus,
    Notification,
    NotificationCreate,
    NotificationType,
)
from gatherly.utils.datetime_utils import now_utc, to_naive_utc


def _uuid(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None


def _str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value else None


class SqliteNotificationRepository(INotificationRepository):
    """SQLite implementation of notification repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: NotificationORM) -> Notification:
        return Notification(
            id=UUID(orm.id),
            user_id=orm.user_id,
            type=NotificationType(orm.type),
            title=orm.title,
            message=orm.message,
            sender_id=orm.sender_id,
            group_id=_uuid(orm.group_id),
            group_name=orm.group_name,
            event_id=_uuid(orm.event_id),
            invite_status=InviteStatus(orm.invite_status) if orm.invite_status else None,
            is_read=orm.is_read,
            created_at=orm.created_at,
            responded_at=orm.responded_at,
        )

    def _scoped(self, user_id: str):
        return select(NotificationORM).where(NotificationORM.user_id == user_id)

    async def add(self, notifications: Sequence[NotificationCreate]) -> list[Notification]:
        if not notifications:
            return []
        created_at = to_naive_utc(now_utc())
        orms = [
            NotificationORM(
                id=str(uuid4()),
                user_id=n.user_id,
                type=n.type.value,
                title=n.title,
                message=n.message,
                sender_id=n.sender_id,
                group_id=_str(n.group_id),
                group_name=n.group_name,
                event_id=_str(n.event_id),
                invite_status=n.invite_status.value if n.invite_status else None,
                is_read=False,
                created_at=created_at,
            )
            for n in notifications
        ]
        async with self._session_factory() as session:
            session.add_all(orms)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateError("A pending invite already exists for this user and group") from exc
            return [self._orm_to_model(orm) for orm in orms]

    async def get(self, user_id: str, notification_id: UUID) -> Optional[Notification]:
        async with self._session_factory() as session:
            result = await session.execute(
                self._scoped(user_id).where(NotificationORM.id == str(notification_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_for_user(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Notification]:
        query = self._scoped(user_id)
        if unread_only:
            query = query.where(NotificationORM.is_read == False)  # noqa: E712
        query = query.order_by(NotificationORM.created_at.desc()).offset(offset).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def count_unread(self, user_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                select(func.count(NotificationORM.id)).where(
                    NotificationORM.user_id == user_id,
                    NotificationORM.is_read == False,  # noqa: E712
                )
            )
            return result.scalar() or 0

    async def mark_read(
        self,
        user_id: str,
        notification_ids: Optional[Sequence[UUID]] = None,
    ) -> int:
        statement = update(NotificationORM).where(
            NotificationORM.user_id == user_id,
            NotificationORM.is_read == False,  # noqa: E712
        )
        if notification_ids is not None:
            if not notification_ids:
                return 0
            statement = statement.where(
                NotificationORM.id.in_([str(nid) for nid in notification_ids])
            )

        async with self._session_factory() as session:
            result = await session.execute(statement.values(is_read=True))
            await session.commit()
            return result.rowcount

    async def find_pending_invite(self, user_id: str, group_id: UUID) -> Optional[Notification]:
        async with self._session_factory() as session:
            result = await session.execute(
                self._scoped(user_id).where(
                    NotificationORM.group_id == str(group_id),
                    NotificationORM.invite_status == InviteStatus.PENDING.value,
                )
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def resolve_invite(
        self,
        user_id: str,
        notification_id: UUID,
        status: InviteStatus,
    ) -> Optional[Notification]:
        if status == InviteStatus.PENDING:
            raise ValueError("An invite can only be resolved to accepted or declined")

        async with self._session_factory() as session:
            result = await session.execute(
                update(NotificationORM)
                .where(
                    NotificationORM.id == str(notification_id),
                    NotificationORM.user_id == user_id,
                    NotificationORM.invite_status == InviteStatus.PENDING.value,
                )
                .values(
                    invite_status=status.value,
                    is_read=True,
                    responded_at=to_naive_utc(now_utc()),
                )
            )
            await session.commit()
            if result.rowcount == 0:
                return None

            orm = (
                await session.execute(
                    select(NotificationORM).where(NotificationORM.id == str(notification_id))
                )
            ).scalar_one()
            return self._orm_to_model(orm)

    async def withdraw_invites(self, group_id: UUID) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(NotificationORM).where(
                    NotificationORM.group_id == str(group_id),
                    NotificationORM.invite_status == InviteStatus.PENDING.value,
                )
            )
            await session.commit()
            return result.rowcount
