"""EventDAO — events table operations."""

from datetime import date
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import BaseDAO
from contenthub.models.event import Event

PUBLIC_STATUS = "active"


class EventDAO(BaseDAO[Event]):
    model = Event

    # ── read ──────────────────────────────────────────────────────────────

    def build_query(
        self,
        *,
        include_hidden: bool = False,
        status: str | None = None,
        event_type: str | None = None,
        is_featured: bool | None = None,
        created_by: int | None = None,
    ) -> Select:
        """Filtered event query shared by the listing and its count.

        Without *include_hidden* only active events are visible and the
        *status* filter is ignored.
        """
        query = select(Event)
        if not include_hidden:
            query = query.where(Event.status == PUBLIC_STATUS)
        elif status is not None:
            query = query.where(Event.status == status)
        if event_type is not None:
            query = query.where(Event.event_type == event_type)
        if is_featured is not None:
            query = query.where(Event.is_featured.is_(is_featured))
        if created_by is not None:
            query = query.where(Event.created_by == created_by)
        return query

    async def _scalars(self, session: AsyncSession, stmt: Select) -> list[Event]:
        result = await session.execute(stmt)
        return list(result.scalars().all())

    def _chronological(self, *criteria: Any) -> Select:
        return (
            select(Event)
            .where(Event.status == PUBLIC_STATUS, *criteria)
            .order_by(Event.event_date.asc(), Event.event_time.asc(), Event.id.asc())
        )

    async def list_featured(self, session: AsyncSession, limit: int) -> list[Event]:
        """Active events flagged as featured, soonest first."""
        stmt = self._chronological(Event.is_featured.is_(True)).limit(limit)
        return await self._scalars(session, stmt)

    async def list_home(self, session: AsyncSession, limit: int) -> list[Event]:
        """Active events flagged for the home page, soonest first."""
        stmt = self._chronological(Event.is_home.is_(True)).limit(limit)
        return await self._scalars(session, stmt)

    async def list_upcoming(self, session: AsyncSession, limit: int, today: date) -> list[Event]:
        """Active events dated *today* or later, soonest first."""
        stmt = self._chronological(Event.event_date >= today).limit(limit)
        return await self._scalars(session, stmt)

    async def list_by_creator(
        self, session: AsyncSession, creator_id: int, limit: int
    ) -> list[Event]:
        """All events of one creator regardless of status, newest first."""
        stmt = (
            select(Event)
            .where(Event.created_by == creator_id)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .limit(limit)
        )
        return await self._scalars(session, stmt)

    async def list_types(self, session: AsyncSession) -> list[str]:
        """Distinct event types among active events."""
        return await self.distinct_values(session, "event_type", Event.status == PUBLIC_STATUS)
