"""EventService — event lifecycle, visibility and feature flags."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import clamp_page_size
from contenthub.dao.event_dao import EventDAO
from contenthub.models.event import EVENT_STATUSES, Event
from contenthub.services import NotFoundError, ValidationError, translate_errors
from contenthub.services.base import (
    OwnedResourceService,
    coerce_bool,
    coerce_int,
    int_filter,
)


def normalize_event_time(value: Any) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time of day (seconds default to 00)."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValidationError("event_time must be a HH:MM[:SS] string", fields=["event_time"])
    parts = value.strip().split(":")
    if len(parts) == 2:
        parts.append("00")
    try:
        if len(parts) != 3:
            raise ValueError(value)
        hour, minute, second = (int(p) for p in parts)
        return time(hour, minute, second)
    except ValueError:
        raise ValidationError(f"invalid event_time: {value!r}", fields=["event_time"]) from None


def normalize_event_date(value: Any) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"invalid event_date: {value!r}", fields=["event_date"]) from None


def validate_status(status: Any) -> str:
    """Return *status* if it is one of the event lifecycle states."""
    if status not in EVENT_STATUSES:
        raise ValidationError(
            f"invalid event status {status!r}; expected one of: {', '.join(EVENT_STATUSES)}",
            fields=["status"],
        )
    return status


class EventService(OwnedResourceService[Event]):
    """Stateless service for events. The owner is ``created_by``."""

    resource_name = "event"
    owner_field = "created_by"
    required_fields = ("event_name", "event_date", "event_time", "location", "event_type")
    filter_fields = {
        "status": str,
        "event_type": str,
        "is_featured": coerce_bool,
        "created_by": int_filter("created_by"),
    }

    def __init__(self, event_dao: EventDAO) -> None:
        super().__init__(event_dao)
        self._event_dao = event_dao

    def _normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        if "event_time" in values:
            values["event_time"] = normalize_event_time(values["event_time"])
        if "event_date" in values:
            values["event_date"] = normalize_event_date(values["event_date"])
        for flag in ("is_featured", "is_home"):
            if flag in values:
                values[flag] = coerce_bool(values[flag])
        if "status" in values:
            values["status"] = validate_status(values["status"])
        return values

    # ── CRUD ──────────────────────────────────────────────────────────────

    @translate_errors("failed to create event")
    async def create(
        self, session: AsyncSession, data: Mapping[str, Any], user_id: int
    ) -> int:
        """Create an event owned by *user_id*; returns the new id.

        Raises :class:`ValidationError` listing every missing required field.
        """
        return await self._create(session, data, user_id)

    @translate_errors("failed to update event")
    async def update(
        self,
        session: AsyncSession,
        event_id: int,
        data: Mapping[str, Any],
        user_id: int,
    ) -> Event:
        """Apply a patch; only the creator may update."""
        return await self._update(session, event_id, data, user_id)

    @translate_errors("failed to delete event")
    async def delete(self, session: AsyncSession, event_id: int, user_id: int) -> None:
        """Delete an event; only the creator may delete."""
        await self._delete(session, event_id, user_id)

    @translate_errors("failed to fetch event")
    async def get(
        self, session: AsyncSession, event_id: int, is_privileged: bool = False
    ) -> Event:
        """Return one event.

        Non-active events are reported as not found to unprivileged callers,
        exactly like missing ones.
        """
        event = await self._get_existing(session, event_id)
        if not is_privileged and event.status != "active":
            raise NotFoundError("event not found")
        return event

    @translate_errors("failed to list events")
    async def list(self, session: AsyncSession, filters: Mapping[str, Any] | None = None) -> dict:
        """Public listing: active events only."""
        return await self._list(session, filters)

    @translate_errors("failed to list events for administration")
    async def list_admin(
        self, session: AsyncSession, filters: Mapping[str, Any] | None = None
    ) -> dict:
        """Admin listing: every status, optionally filtered by ``status``."""
        return await self._list(session, filters, include_hidden=True)

    # ── flag / status mutators ────────────────────────────────────────────

    @translate_errors("failed to update event featured status")
    async def update_featured_status(
        self, session: AsyncSession, event_id: int, is_featured: Any, user_id: int
    ) -> Event:
        return await self._set_fields(
            session, event_id, user_id, is_featured=coerce_bool(is_featured)
        )

    @translate_errors("failed to update event home status")
    async def update_home_status(
        self, session: AsyncSession, event_id: int, is_home: Any, user_id: int
    ) -> Event:
        return await self._set_fields(session, event_id, user_id, is_home=coerce_bool(is_home))

    @translate_errors("failed to update event status")
    async def update_status(
        self, session: AsyncSession, event_id: int, status: str, user_id: int
    ) -> Event:
        """Move an event to another lifecycle state (owner only).

        The status is validated before the event is looked up.
        """
        status = validate_status(status)
        return await self._set_fields(session, event_id, user_id, status=status)

    # ── curated reads ─────────────────────────────────────────────────────

    @translate_errors("failed to fetch featured events")
    async def list_featured(self, session: AsyncSession, limit: Any = 3) -> list[Event]:
        return await self._event_dao.list_featured(session, _limit(limit))

    @translate_errors("failed to fetch home page events")
    async def list_home(self, session: AsyncSession, limit: Any = 6) -> list[Event]:
        return await self._event_dao.list_home(session, _limit(limit))

    @translate_errors("failed to fetch upcoming events")
    async def list_upcoming(
        self, session: AsyncSession, limit: Any = 6, today: date | None = None
    ) -> list[Event]:
        """Active events from *today* (UTC by default) onward."""
        today = today or datetime.now(timezone.utc).date()
        return await self._event_dao.list_upcoming(session, _limit(limit), today)

    @translate_errors("failed to fetch event types")
    async def list_types(self, session: AsyncSession) -> list[str]:
        return await self._event_dao.list_types(session)

    @translate_errors("failed to fetch creator events")
    async def list_by_creator(
        self, session: AsyncSession, creator_id: int | None, limit: Any = 10
    ) -> list[Event]:
        if creator_id in (None, ""):
            raise ValidationError("creator id is required", fields=["creator_id"])
        return await self._event_dao.list_by_creator(
            session, coerce_int(creator_id, "creator_id"), _limit(limit)
        )


def _limit(value: Any) -> int:
    return clamp_page_size(coerce_int(value, "limit"))
