"""
Column registry: the per-entity whitelist of queryable fields.

Every field a caller may filter, compare, search or sort on is declared
here together with its value kind.  A name that is not declared simply
does not resolve: the engine treats a miss as "no such condition", never
as an error.  The tenant and status columns are looked up separately so
the predicate builder can add the scope terms unconditionally.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import InstrumentedAttribute

logger = logging.getLogger(__name__)


class ColumnKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    TIMESTAMP = "timestamp"


def _to_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise TypeError(f"expected a scalar, got {type(value).__name__}")
    return value if isinstance(value, str) else str(value)


def _to_integer(value: Any) -> int:
    # bool is an int subclass; "true" is not a legal integer filter.
    if isinstance(value, bool):
        raise TypeError("expected an integer, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"expected an integer, got {type(value).__name__}")


def _to_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch seconds.
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            parsed = datetime.fromtimestamp(int(text), tz=timezone.utc)
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise TypeError(f"expected a timestamp, got {type(value).__name__}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_COERCERS = {
    ColumnKind.TEXT: _to_text,
    ColumnKind.INTEGER: _to_integer,
    ColumnKind.TIMESTAMP: _to_timestamp,
}


@dataclass(frozen=True)
class ColumnDescriptor:
    """A logical field name bound to a mapped column and its value kind."""

    name: str
    column: InstrumentedAttribute
    kind: ColumnKind

    def coerce(self, value: Any) -> Any:
        """
        Convert a wire value (JSON scalar or query-string text) to the
        Python type the column binds.

        ``None`` passes through untouched.  Raises ``ValueError`` or
        ``TypeError`` when *value* cannot represent this kind; callers at
        the HTTP boundary turn that into a 400.
        """
        if value is None:
            return None
        return _COERCERS[self.kind](value)


class ColumnRegistry:
    """
    Read-only mapping of field name -> ``ColumnDescriptor`` for one entity.

    Built once at import time (see ``cms.registries``).  ``tenant`` and
    ``status`` are resolved from dedicated column names and are ``None``
    when the entity has no such column.
    """

    def __init__(
        self,
        entity: str,
        model: type,
        fields: Mapping[str, ColumnKind],
        *,
        tenant_field: str | None = "site_id",
        status_field: str | None = "status",
        primary_key: str = "id",
    ) -> None:
        self.entity = entity
        self.model = model
        self._columns: dict[str, ColumnDescriptor] = {
            name: ColumnDescriptor(name, getattr(model, name), kind)
            for name, kind in fields.items()
        }
        self.tenant = self._scope_column(tenant_field, ColumnKind.INTEGER)
        self.status = self._scope_column(status_field, ColumnKind.TEXT)
        self.primary_key = getattr(model, primary_key)

    def _scope_column(self, name: str | None, kind: ColumnKind) -> ColumnDescriptor | None:
        if name is None or not hasattr(self.model, name):
            return None
        return ColumnDescriptor(name, getattr(self.model, name), kind)

    def resolve(self, field: str) -> ColumnDescriptor | None:
        return self._columns.get(field)

    def resolve_many(self, fields: Iterable[str]) -> list[ColumnDescriptor]:
        """Resolve *fields* in order, skipping misses and duplicates."""
        seen: set[str] = set()
        resolved: list[ColumnDescriptor] = []
        for field in fields:
            if field in seen:
                continue
            seen.add(field)
            descriptor = self._columns.get(field)
            if descriptor is not None:
                resolved.append(descriptor)
        return resolved

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self._columns)

    def __contains__(self, field: object) -> bool:
        return field in self._columns

    def __repr__(self) -> str:
        return f"ColumnRegistry({self.entity!r}, fields={sorted(self._columns)})"


# ---------------------------------------------------------------------------
# Process-wide lookup by entity kind
# ---------------------------------------------------------------------------

_REGISTRIES: dict[str, ColumnRegistry] = {}


def register(registry: ColumnRegistry) -> ColumnRegistry:
    if registry.entity in _REGISTRIES:
        raise ValueError(f"registry for {registry.entity!r} already defined")
    _REGISTRIES[registry.entity] = registry
    logger.debug("Registered %r", registry)
    return registry


def get_registry(entity: str) -> ColumnRegistry | None:
    return _REGISTRIES.get(entity)


def resolve(entity: str, field: str) -> ColumnDescriptor | None:
    """``resolve(entityKind, fieldName)``: a miss on either name is ``None``."""
    registry = _REGISTRIES.get(entity)
    if registry is None:
        return None
    return registry.resolve(field)
