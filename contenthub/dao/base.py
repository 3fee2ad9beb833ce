"""Generic base DAO — CRUD (ORM) + offset pagination and counts (Core)."""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 100
PAGE_SIZE_DEFAULT = 20

IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "updated_at"})


def clamp_page_size(page_size: int) -> int:
    return max(PAGE_SIZE_MIN, min(page_size, PAGE_SIZE_MAX))


class BaseDAO(Generic[ModelT]):
    """Base data-access object. Subclasses set ``model`` class attribute."""

    model: type[ModelT]

    # ── ORM methods ──────────────────────────────────────────────────────

    @staticmethod
    def _require_pk(pk: int) -> None:
        """Raise ValueError if *pk* is None."""
        if pk is None:
            raise ValueError("pk must not be None")

    def column_names(self) -> frozenset[str]:
        return frozenset(self.model.__mapper__.column_attrs.keys())

    async def get_by_id(self, session: AsyncSession, pk: int) -> ModelT | None:
        self._require_pk(pk)
        return await session.get(self.model, pk)

    async def create(self, session: AsyncSession, **values: Any) -> ModelT:
        obj = self.model(**values)
        session.add(obj)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def update(self, session: AsyncSession, pk: int, **values: Any) -> ModelT | None:
        self._require_pk(pk)
        obj = await session.get(self.model, pk)
        if obj is None:
            return None
        column_keys = self.column_names()
        for key in values:
            if key in IMMUTABLE_COLUMNS:
                raise AttributeError(f"'{key}' is immutable and cannot be updated")
            if key not in column_keys:
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")
        for key, val in values.items():
            setattr(obj, key, val)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def delete(self, session: AsyncSession, pk: int) -> bool:
        self._require_pk(pk)
        obj = await session.get(self.model, pk)
        if obj is None:
            return False
        await session.delete(obj)
        await session.flush()
        return True

    async def get_by_field(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """Return the first row matching all *filters*, or None.

        Usage::

            user = await dao.get_by_field(session, email="alice@example.com")

        Raises ``ValueError`` if called without any filters.
        """
        if not filters:
            raise ValueError("get_by_field() requires at least one filter")
        stmt = select(self.model)
        for key, val in filters.items():
            stmt = stmt.where(getattr(self.model, key) == val)
        result = await session.execute(stmt)
        return result.scalars().first()

    # ── Core methods ─────────────────────────────────────────────────────

    def build_query(self, *, include_hidden: bool = False, **filters: Any) -> Select:
        """Equality-filtered query over the table.

        Sub-DAOs override this when some rows are hidden from the public
        listing unless *include_hidden* is set.
        """
        query = select(self.model)
        for key, val in filters.items():
            query = query.where(getattr(self.model, key) == val)
        return query

    async def list_page(
        self,
        session: AsyncSession,
        query: Select,
        limit: int = PAGE_SIZE_DEFAULT,
        offset: int = 0,
    ) -> list[ModelT]:
        """Apply offset pagination to *query*, newest rows first.

        Ordering (created_at DESC, id DESC), LIMIT and OFFSET are appended
        by this method — callers should NOT add their own.
        """
        table = self.model.__table__
        query = (
            query.order_by(table.c.created_at.desc(), table.c.id.desc())
            .limit(clamp_page_size(limit))
            .offset(max(offset, 0))
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, query: Select | None = None) -> int:
        """Return the row count for *query*, or total rows if query is None."""
        if query is None:
            query = select(func.count()).select_from(self.model.__table__)
        else:
            query = select(func.count()).select_from(query.subquery())

        result = await session.execute(query)
        return result.scalar_one()

    async def distinct_values(
        self, session: AsyncSession, column: str, *criteria: Any
    ) -> list[Any]:
        """Return the sorted distinct non-null values of *column*.

        Extra *criteria* are applied as WHERE clauses.
        """
        col = getattr(self.model, column)
        stmt = select(col).distinct().where(col.is_not(None), *criteria).order_by(col)
        result = await session.execute(stmt)
        return list(result.scalars().all())
