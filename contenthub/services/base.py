"""Shared pattern for owner-scoped resources: validate, authorize, persist."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, ClassVar, Generic

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from contenthub.dao.base import PAGE_SIZE_DEFAULT, BaseDAO, ModelT, clamp_page_size
from contenthub.services import AuthorizationError, NotFoundError, ValidationError

log = structlog.get_logger("contenthub.service")

_TRUTHY = frozenset({"true", "1"})


# ---------------------------------------------------------------------------
# Input normalization helpers
# ---------------------------------------------------------------------------


def coerce_bool(value: Any) -> bool:
    """Boolean-ish input: True, 1, "true", "1" are True; anything else False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return False


def coerce_int(value: Any, name: str) -> int:
    """Integer-ish input (int or numeric string) or ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer", fields=[name])
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", fields=[name]) from None


def int_filter(name: str) -> Callable[[Any], int]:
    """Coercer for an integer-valued list filter."""
    return lambda value: coerce_int(value, name)


def missing_fields(data: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    """Return every required field that is absent, None or blank."""
    missing = []
    for name in required:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def normalize_pagination(limit: Any = None, offset: Any = None) -> tuple[int, int]:
    """Turn raw limit/offset parameters into a clamped (limit, offset) pair."""
    limit_value = PAGE_SIZE_DEFAULT if limit in (None, "") else coerce_int(limit, "limit")
    offset_value = 0 if offset in (None, "") else coerce_int(offset, "offset")
    return clamp_page_size(limit_value), max(offset_value, 0)


def page_number(limit: int, offset: int) -> int:
    """1-based page number of *offset* for pages of *limit* rows."""
    return offset // limit + 1


def same_identity(owner_id: Any, requester_id: Any) -> bool:
    """True when *requester_id* (int or numeric string) names the owner.

    Booleans, floats and anything else never match.
    """
    if isinstance(requester_id, bool):
        return False
    if isinstance(requester_id, str):
        try:
            requester_id = int(requester_id.strip())
        except ValueError:
            return False
    if not isinstance(requester_id, int):
        return False
    return owner_id == requester_id


# ---------------------------------------------------------------------------
# OwnedResourceService
# ---------------------------------------------------------------------------


class OwnedResourceService(Generic[ModelT]):
    """Stateless base for resources with a single owner reference.

    Subclasses declare the resource's shape through class attributes and
    expose resource-named operations that delegate to the ``_create`` /
    ``_update`` / ``_delete`` / ``_get_existing`` / ``_list`` helpers.
    """

    resource_name: ClassVar[str]
    owner_field: ClassVar[str]
    required_fields: ClassVar[tuple[str, ...]]
    # filter name -> coercion applied to the raw query value
    filter_fields: ClassVar[dict[str, Callable[[Any], Any]]] = {}

    def __init__(self, dao: BaseDAO[ModelT]) -> None:
        self._dao = dao

    # -- hooks -------------------------------------------------------------

    def _normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        """Resource-specific normalization of a create payload or patch."""
        return values

    # -- shared checks -----------------------------------------------------

    @property
    def _server_managed(self) -> frozenset[str]:
        return frozenset({"id", "created_at", "updated_at", self.owner_field})

    def _strip_server_managed(self, data: Mapping[str, Any] | None) -> dict[str, Any]:
        return {k: v for k, v in (data or {}).items() if k not in self._server_managed}

    def _reject_unknown(self, values: Mapping[str, Any]) -> None:
        unknown = sorted(set(values) - self._dao.column_names())
        if unknown:
            raise ValidationError(
                f"unknown {self.resource_name} field(s): {', '.join(unknown)}",
                fields=unknown,
            )

    async def _get_existing(self, session: AsyncSession, pk: int | None) -> ModelT:
        if pk is None or pk == "":
            raise ValidationError(f"{self.resource_name} id is required", fields=["id"])
        record = await self._dao.get_by_id(session, coerce_int(pk, "id"))
        if record is None:
            raise NotFoundError(f"{self.resource_name} not found")
        return record

    async def _get_owned(
        self, session: AsyncSession, pk: int | None, requester_id: int | None, action: str
    ) -> ModelT:
        """Existence check, then ownership check."""
        record = await self._get_existing(session, pk)
        if not same_identity(getattr(record, self.owner_field), requester_id):
            log.warning(
                f"{self.resource_name}.forbidden",
                id=record.id,
                requester_id=requester_id,
                action=action,
            )
            raise AuthorizationError(f"not authorized to {action} this {self.resource_name}")
        return record

    # -- operations --------------------------------------------------------

    async def _create(
        self, session: AsyncSession, data: Mapping[str, Any] | None, owner_id: int
    ) -> int:
        values = self._strip_server_managed(data)
        missing = missing_fields(values, self.required_fields)
        if missing:
            raise ValidationError(
                f"incomplete {self.resource_name} data, missing: {', '.join(missing)}",
                fields=missing,
            )
        self._reject_unknown(values)
        values = self._normalize(values)
        values[self.owner_field] = owner_id

        record = await self._dao.create(session, **values)
        log.info(f"{self.resource_name}.created", id=record.id, owner_id=owner_id)
        return record.id

    async def _update(
        self,
        session: AsyncSession,
        pk: int | None,
        data: Mapping[str, Any] | None,
        requester_id: int | None,
    ) -> ModelT:
        record = await self._get_owned(session, pk, requester_id, "update")
        patch = self._strip_server_managed(data)
        self._reject_unknown(patch)
        patch = self._normalize(patch)
        if not patch:
            return record

        updated = await self._dao.update(session, record.id, **patch)
        log.info(f"{self.resource_name}.updated", id=record.id, fields=sorted(patch))
        return updated

    async def _set_fields(
        self,
        session: AsyncSession,
        pk: int | None,
        requester_id: int | None,
        **values: Any,
    ) -> ModelT:
        """Owner-only update of server-chosen fields (status / flag mutators)."""
        record = await self._get_owned(session, pk, requester_id, "update")
        updated = await self._dao.update(session, record.id, **values)
        log.info(f"{self.resource_name}.updated", id=record.id, fields=sorted(values))
        return updated

    async def _delete(
        self, session: AsyncSession, pk: int | None, requester_id: int | None
    ) -> None:
        record = await self._get_owned(session, pk, requester_id, "delete")
        await self._dao.delete(session, record.id)
        log.info(f"{self.resource_name}.deleted", id=record.id)

    async def _list(
        self,
        session: AsyncSession,
        filters: Mapping[str, Any] | None,
        *,
        include_hidden: bool = False,
    ) -> dict:
        """One page of matching records plus the independent total count."""
        filters = filters or {}
        limit, offset = normalize_pagination(filters.get("limit"), filters.get("offset"))
        criteria = {
            name: coerce(filters[name])
            for name, coerce in self.filter_fields.items()
            if filters.get(name) not in (None, "")
        }

        query = self._dao.build_query(include_hidden=include_hidden, **criteria)
        data = await self._dao.list_page(session, query, limit, offset)
        total = await self._dao.count(session, query)

        return {
            "data": data,
            "total": total,
            "page": page_number(limit, offset),
            "limit": limit,
        }
