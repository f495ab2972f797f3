from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from cms.enums import StatusEnum

ComparisonOperator = Literal["gt", "lt", "gte", "lte"]

# QuerySpec default; distinct from the calculator's fallback for
# non-positive sizes (see cms.query.pagination.DEFAULT_PAGE_SIZE).
QUERY_DEFAULT_PAGE_SIZE = 10


class Comparison(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    operator: ComparisonOperator
    value: Any = None


class QuerySpec(BaseModel):
    """
    Caller-supplied description of one list request.

    Immutable: the engine reads it and never writes back.  Field names
    are not checked here; unknown ones are dropped when the query is
    built.
    """

    model_config = ConfigDict(frozen=True)

    filters: dict[str, Any] = Field(default_factory=dict)
    comparisons: tuple[Comparison, ...] = ()
    search: str | None = None
    search_fields: tuple[str, ...] = ()
    sort: str | None = None
    sort_order: str = "asc"
    page: int = 1
    page_size: int = QUERY_DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ScopeContext:
    """The isolation boundary every scoped query is confined to."""

    tenant_id: int
    deleted_status: str = StatusEnum.DELETE.value
