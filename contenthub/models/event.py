"""events table."""

from datetime import date, time
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    desc,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from contenthub.core.database import Base, IntPKMixin, TimestampMixin

EVENT_STATUSES = ("active", "cancelled", "postponed", "completed")

event_status_enum = Enum(
    *EVENT_STATUSES,
    name="event_status",
    native_enum=False,
    length=20,
)


class Event(IntPKMixin, TimestampMixin, Base):
    __tablename__ = "events"

    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        event_status_enum, nullable=False, server_default=text("'active'")
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    is_home: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    __table_args__ = (
        Index("idx_events_created_by", "created_by"),
        Index("idx_events_status_date", "status", "event_date"),
        Index("idx_events_listing", desc("created_at"), desc("id")),
    )
