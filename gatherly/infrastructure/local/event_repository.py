"""
SQLite implementation of event repository.

The two conditional writes are delegated to the database:
``create_if_absent`` relies on the partial unique index over generated
events, ``update_roster`` on a version-guarded UPDATE.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from gatherly.core.exceptions import ConcurrencyConflictError, NotFoundError
from gatherly.core.logger import setup_logger
from gatherly.infrastructure.local.database import EventORM, get_session_factory
from gatherly.interfaces.event_repository import IEventRepository
from gatherly.models.enums import EventStatus
from gatherly.models.event import Event, EventCreate, Roster
from gatherly.utils.datetime_utils import ensure_utc, local_to_utc, to_naive_utc

logger = setup_logger(__name__)


def _starts_at(day: date, clock: str, tz_name: str) -> datetime:
    return to_naive_utc(local_to_utc(day, clock, tz_name))


class SqliteEventRepository(IEventRepository):
    """SQLite implementation of event repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: EventORM) -> Event:
        return Event(
            id=UUID(orm.id),
            group_id=UUID(orm.group_id),
            name=orm.name,
            date=orm.date,
            time=orm.time,
            timezone=orm.timezone,
            location=orm.location or "",
            capacity=orm.capacity or 0,
            status=EventStatus(orm.status),
            is_override=bool(orm.is_override),
            members=list(orm.members or []),
            undecided=list(orm.undecided or []),
            in_=list(orm.attending or []),
            out=list(orm.out or []),
            waitlist=list(orm.waitlist or []),
            starts_at=ensure_utc(orm.starts_at),
            version=orm.version,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def _get_orm(self, session, event_id: UUID) -> EventORM:
        result = await session.execute(select(EventORM).where(EventORM.id == str(event_id)))
        orm = result.scalar_one_or_none()
        if not orm:
            raise NotFoundError(f"Event {event_id} not found")
        return orm

    async def _insert(self, data: EventCreate) -> Event:
        roster = Roster.seeded(data.members)
        async with self._session_factory() as session:
            orm = EventORM(
                id=str(uuid4()),
                group_id=str(data.group_id),
                name=data.name,
                date=data.date,
                time=data.time,
                timezone=data.timezone,
                location=data.location,
                capacity=data.capacity,
                status=EventStatus.SCHEDULED.value,
                is_override=data.is_override,
                members=roster.members,
                undecided=roster.undecided,
                attending=[],
                out=[],
                waitlist=[],
                starts_at=_starts_at(data.date, data.time, data.timezone),
                version=0,
            )
            session.add(orm)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ConcurrencyConflictError(
                    f"Group {data.group_id} already has a generated event",
                    details={"group_id": str(data.group_id)},
                ) from exc
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def create(self, data: EventCreate) -> Event:
        return await self._insert(data)

    async def create_if_absent(self, data: EventCreate) -> Event:
        if data.is_override:
            data = data.model_copy(update={"is_override": False})
        return await self._insert(data)

    async def get(self, event_id: UUID) -> Optional[Event]:
        async with self._session_factory() as session:
            result = await session.execute(select(EventORM).where(EventORM.id == str(event_id)))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def list_by_group(
        self,
        group_id: UUID,
        starts_after: Optional[datetime] = None,
    ) -> list[Event]:
        async with self._session_factory() as session:
            query = select(EventORM).where(EventORM.group_id == str(group_id))
            if starts_after is not None:
                query = query.where(EventORM.starts_at >= to_naive_utc(starts_after))
            query = query.order_by(EventORM.starts_at)
            result = await session.execute(query)
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_upcoming(self, now: datetime) -> list[Event]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EventORM)
                .where(EventORM.starts_at >= to_naive_utc(now))
                .order_by(EventORM.starts_at)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def list_group_ids_with_upcoming(self, now: datetime) -> set[UUID]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EventORM.group_id)
                .where(EventORM.starts_at >= to_naive_utc(now))
                .distinct()
            )
            return {UUID(group_id) for group_id in result.scalars().all()}

    async def list_expired(self, now: datetime) -> list[Event]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EventORM)
                .where(
                    EventORM.is_override == False,  # noqa: E712
                    EventORM.starts_at < to_naive_utc(now),
                )
                .order_by(EventORM.starts_at)
            )
            return [self._orm_to_model(orm) for orm in result.scalars().all()]

    async def delete_many(self, event_ids: list[UUID]) -> int:
        if not event_ids:
            return 0
        async with self._session_factory() as session:
            result = await session.execute(
                delete(EventORM).where(EventORM.id.in_([str(event_id) for event_id in event_ids]))
            )
            await session.commit()
            return result.rowcount

    async def delete_by_group(self, group_id: UUID, generated_only: bool = False) -> int:
        async with self._session_factory() as session:
            query = delete(EventORM).where(EventORM.group_id == str(group_id))
            if generated_only:
                query = query.where(EventORM.is_override == False)  # noqa: E712
            result = await session.execute(query)
            await session.commit()
            return result.rowcount

    async def delete(self, event_id: UUID) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(EventORM).where(EventORM.id == str(event_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                return False
            await session.delete(orm)
            await session.commit()
            return True

    async def update_roster(
        self,
        event_id: UUID,
        expected_version: int,
        roster: Roster,
        capacity: Optional[int] = None,
    ) -> Event:
        values = {
            "members": roster.members,
            "undecided": roster.undecided,
            "attending": roster.in_,
            "out": roster.out,
            "waitlist": roster.waitlist,
            "version": EventORM.version + 1,
            "updated_at": datetime.utcnow(),
        }
        if capacity is not None:
            values["capacity"] = capacity

        async with self._session_factory() as session:
            result = await session.execute(
                update(EventORM)
                .where(EventORM.id == str(event_id), EventORM.version == expected_version)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

            if result.rowcount == 0:
                orm = await self._get_orm(session, event_id)
                logger.debug(
                    f"Roster write on event {event_id} lost: "
                    f"expected version {expected_version}, found {orm.version}"
                )
                raise ConcurrencyConflictError(
                    f"Event {event_id} was modified concurrently",
                    details={"expected_version": expected_version, "actual_version": orm.version},
                )

            orm = await session.get(EventORM, str(event_id), populate_existing=True)
            return self._orm_to_model(orm)

    async def reschedule(
        self,
        event_id: UUID,
        day: date,
        time: str,
        timezone: str,
    ) -> Event:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, event_id)
            orm.date = day
            orm.time = time
            orm.timezone = timezone
            orm.starts_at = _starts_at(day, time, timezone)
            orm.is_override = True
            orm.version = orm.version + 1
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def set_status(self, event_id: UUID, status: EventStatus) -> Event:
        async with self._session_factory() as session:
            orm = await self._get_orm(session, event_id)
            orm.status = status.value
            orm.version = orm.version + 1
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)
