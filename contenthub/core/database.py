"""ORM foundation: the declarative ``Base`` every contenthub table derives from.

Tables pick up their surrogate key from :class:`IntPKMixin` and their audit
columns from :class:`TimestampMixin`; nothing else is shared between them.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, MetaData, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Deterministic constraint names, so CHECK / FK / UNIQUE violations can be
# matched by name in logs and migrations.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(AsyncAttrs, DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)!r}>"


class IntPKMixin:
    """Autoincrementing integer ``id``; ownership checks compare against it."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """created_at / updated_at, both timezone-aware.

    ``updated_at`` follows ORM flushes and ``update()`` statements alike
    through ``onupdate``; raw SQL keeps the old value.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
