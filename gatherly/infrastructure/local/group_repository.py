"""
SQLite implementation of group repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select

from gatherly.core.exceptions import NotFoundError
from gatherly.infrastructure.local.database import GroupORM, get_session_factory
from gatherly.interfaces.group_repository import IGroupRepository
from gatherly.models.group import Group, GroupCreate, GroupUpdate


class SqliteGroupRepository(IGroupRepository):
    """SQLite implementation of group repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: GroupORM) -> Group:
        return Group(
            id=UUID(orm.id),
            owner_id=orm.owner_id,
            name=orm.name,
            schedule=orm.schedule,
            time=orm.time,
            timezone=orm.timezone,
            default_capacity=orm.default_capacity or 0,
            default_location=orm.default_location or "",
            members=list(orm.members or []),
            moderators=list(orm.moderators or []),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def _get_orm(self, session, group_id: UUID) -> GroupORM:
        result = await session.execute(select(GroupORM).where(GroupORM.id == str(group_id)))
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Group {group_id} not found")
        return orm

    async def create(self, owner_id: str, data: GroupCreate) -> Group:
        async with self._session_factory() as session:
            payload = data.model_dump(mode="json")
            orm = GroupORM(
                id=str(uuid4()),
                owner_id=owner_id,
                name=payload["name"],
                schedule=payload["schedule"],
                time=payload["time"],
                timezone=payload["timezone"],
                default_capacity=payload["default_capacity"],
                default_location=payload["default_location"],
                members=[owner_id],
                moderators=[],
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, group_id: UUID) -> Optional[Group]:
        async with self._session_factory() as session:
            result = await session.execute(select(GroupORM).where(GroupORM.id == str(group_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_for_member(self, user_id: str) -> list[Group]:
        async with self._session_factory() as session:
            result = await session.execute(select(GroupORM).order_by(GroupORM.created_at))
            return [
                self._orm_to_model(orm)
                for orm in result.scalars().all()
                if orm.owner_id == user_id or user_id in (orm.members or [])
            ]

    async def list_scheduled_ids(self) -> list[UUID]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(GroupORM.id)
                .where(GroupORM.schedule.is_not(None))
                .order_by(GroupORM.created_at)
            )
            return [UUID(group_id) for group_id in result.scalars().all()]

    async def update(self, group_id: UUID, update: GroupUpdate) -> Group:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, group_id)

            # JSON mode so nested rule dates serialize into the JSON column
            for field, value in update.model_dump(mode="json", exclude_unset=True).items():
                setattr(orm, field, value)

            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def add_member(self, group_id: UUID, user_id: str) -> Group:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, group_id)
            members = list(orm.members or [])
            if user_id not in members:
                orm.members = members + [user_id]
                orm.updated_at = datetime.utcnow()
                await session.commit()
                await session.refresh(orm)
            return self._orm_to_model(orm)

    async def remove_member(self, group_id: UUID, user_id: str) -> Group:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, group_id)
            orm.members = [m for m in (orm.members or []) if m != user_id]
            orm.moderators = [m for m in (orm.moderators or []) if m != user_id]
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, group_id: UUID) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(GroupORM).where(GroupORM.id == str(group_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                return False
            await session.delete(orm)
            await session.commit()
            return True
