import json
from typing import Any

from fastapi import Depends, Header, HTTPException, Query
from pydantic import ValidationError

from cms.authorization import check_permission
from cms.config import settings
from cms.enums import UserType
from cms.query import ColumnRegistry, Comparison, QuerySpec, ScopeContext


# ---------------------------------------------------------------------------
# Tenant scope and caller role
# ---------------------------------------------------------------------------

def get_scope(site_id: str | None = Header(None, alias="Site-Id")) -> ScopeContext:
    """Resolve the ``Site-Id`` header into the tenant every query is confined to."""
    if site_id is None or not site_id.strip():
        raise HTTPException(status_code=401, detail="Missing Site-Id header")
    try:
        tenant_id = int(site_id.strip())
    except ValueError:
        tenant_id = 0
    if tenant_id <= 0:
        raise HTTPException(status_code=401, detail="Site-Id must be a positive integer")
    return ScopeContext(tenant_id=tenant_id)


def get_role(user_type: str | None = Header(None, alias="X-User-Type")) -> UserType:
    """
    Caller role as forwarded by the authentication gateway in front of
    this service.  Requests without the header act as ``USER``.
    """
    if user_type is None:
        return UserType.USER
    try:
        return UserType(user_type.strip().upper())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown user type {user_type!r}")


def get_user_id(x_user_id: int | None = Header(None, alias="X-User-Id")) -> int | None:
    return x_user_id


def require_role(minimum: UserType):
    """Dependency factory rejecting callers ranked below *minimum* with 403."""

    def dependency(role: UserType = Depends(get_role)) -> UserType:
        if not check_permission(role, minimum):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions, {minimum.value} or higher required",
            )
        return role

    return dependency


# ---------------------------------------------------------------------------
# List query parameters
# ---------------------------------------------------------------------------

def _parse_json_param(name: str, raw: str | None, expected: type) -> Any:
    if raw is None or not raw.strip():
        return expected()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"Invalid {name} parameter: not valid JSON")
    if not isinstance(value, expected):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid {name} parameter: expected a JSON {expected.__name__}",
        )
    return value


class ListParams:
    """
    Reusable FastAPI dependency that parses list/search query parameters.

    ``filters`` and ``comparisons`` arrive as JSON strings::

        ?filters={"channel_id": 3, "status": "PENDING"}
        &comparisons=[{"field": "created_at", "operator": "gte", "value": "2024-01-01"}]
        &search=python&search_fields=title,description
        &sort=created_at&sort_order=desc&page=2&page_size=20

    Malformed JSON is rejected here with a 400; page and page_size range
    checks are FastAPI validation errors (422).  Field names are *not*
    checked: unknown ones are ignored by the query engine.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=settings.MAX_PAGE_SIZE,
            description=f"Items per page (max {settings.MAX_PAGE_SIZE}).",
        ),
        sort: str | None = Query(None, description="Field to sort by."),
        sort_order: str = Query("asc", pattern="^(asc|desc)$"),
        search: str | None = Query(None, description="Case-insensitive substring."),
        search_fields: str | None = Query(None, description="Comma-separated fields to search."),
        filters: str | None = Query(None, description="JSON object of exact-match filters."),
        comparisons: str | None = Query(None, description="JSON array of {field, operator, value}."),
    ) -> None:
        self.page = page
        self.page_size = page_size
        self.sort = sort
        self.sort_order = sort_order
        self.search = search
        self.search_fields = tuple(
            f.strip() for f in (search_fields or "").split(",") if f.strip()
        )
        self.filters: dict = _parse_json_param("filters", filters, dict)
        raw_comparisons: list = _parse_json_param("comparisons", comparisons, list)
        try:
            self.comparisons = tuple(Comparison.model_validate(c) for c in raw_comparisons)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid comparisons parameter: {exc.errors()[0]['msg']}")

    def to_spec(self, registry: ColumnRegistry) -> QuerySpec:
        """
        Build the ``QuerySpec``, coercing values of known fields to their
        column's kind.  A value that cannot be coerced is a 400.
        """
        filters = {
            field: _coerce(registry, field, value) for field, value in self.filters.items()
        }
        comparisons = tuple(
            c.model_copy(update={"value": _coerce(registry, c.field, c.value)})
            for c in self.comparisons
        )
        return QuerySpec(
            filters=filters,
            comparisons=comparisons,
            search=self.search,
            search_fields=self.search_fields,
            sort=self.sort,
            sort_order=self.sort_order,
            page=self.page,
            page_size=self.page_size,
        )


def _coerce(registry: ColumnRegistry, field: str, value: Any) -> Any:
    descriptor = registry.resolve(field)
    if descriptor is None:
        return value
    try:
        return descriptor.coerce(value)
    except (TypeError, ValueError, OverflowError, OSError):
        raise HTTPException(
            status_code=400,
            detail=f'Invalid value for field "{field}" ({descriptor.kind.value})',
        )
