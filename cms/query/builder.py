"""
Query builder: turns a ``QuerySpec`` into SQLAlchemy WHERE / ORDER BY
clauses plus offset and limit.

Design notes
------------
- The predicate is one conjunction of five groups: tenant scope, soft
  delete scope, exact-match filters, comparisons and a search disjunction.
  The two scope terms come from the registry and the ``ScopeContext``,
  never from the ``QuerySpec``, so no caller input can remove them.
- A caller ``status`` filter is conjoined with ``status != DELETE``; the
  two are never merged.
- Unresolved field names are dropped and logged at DEBUG.  A search whose
  fields all miss contributes no term (it matches everything).
- Search matches on the text form of each field, so integer and
  timestamp columns are cast to a string before the LIKE.
- Offset and limit come from ``calculate_pagination`` so the assembler
  sees the same normalized page and size that fetched the rows.
- The primary key is appended to every ordering so equal sort keys page
  deterministically.
"""
import logging
import operator
from dataclasses import dataclass

from sqlalchemy import String, and_, asc, cast, desc, or_, true
from sqlalchemy.sql.elements import ColumnElement, UnaryExpression

from cms.query.pagination import calculate_pagination
from cms.query.registry import ColumnKind, ColumnRegistry
from cms.query.spec import QuerySpec, ScopeContext

logger = logging.getLogger(__name__)

_COMPARATORS = {
    "gt": operator.gt,
    "lt": operator.lt,
    "gte": operator.ge,
    "lte": operator.le,
}


@dataclass(frozen=True)
class BuiltQuery:
    where: ColumnElement[bool]
    order_by: tuple[UnaryExpression, ...]
    limit: int
    offset: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Predicate groups
# ---------------------------------------------------------------------------

def scope_terms(registry: ColumnRegistry, scope: ScopeContext) -> list[ColumnElement[bool]]:
    """Tenant equality and soft-delete exclusion, for whichever columns exist."""
    terms: list[ColumnElement[bool]] = []
    if registry.tenant is not None:
        terms.append(registry.tenant.column == scope.tenant_id)
    if registry.status is not None:
        terms.append(registry.status.column != scope.deleted_status)
    return terms


def _filter_terms(spec: QuerySpec, registry: ColumnRegistry, dropped: list[str]) -> list:
    terms = []
    for field, value in spec.filters.items():
        descriptor = registry.resolve(field)
        if descriptor is None:
            dropped.append(field)
            continue
        if value is None:
            continue
        terms.append(descriptor.column == value)
    return terms


def _comparison_terms(spec: QuerySpec, registry: ColumnRegistry, dropped: list[str]) -> list:
    terms = []
    for comparison in spec.comparisons:
        descriptor = registry.resolve(comparison.field)
        if descriptor is None:
            dropped.append(comparison.field)
            continue
        compare = _COMPARATORS.get(comparison.operator)
        if compare is None or comparison.value is None:
            continue
        terms.append(compare(descriptor.column, comparison.value))
    return terms


def _search_term(spec: QuerySpec, registry: ColumnRegistry) -> ColumnElement[bool] | None:
    if not spec.search or not spec.search_fields:
        return None
    columns = [
        d.column if d.kind is ColumnKind.TEXT else cast(d.column, String)
        for d in registry.resolve_many(spec.search_fields)
    ]
    if not columns:
        return None
    # autoescape keeps % and _ in the search text literal.
    return or_(*(column.icontains(spec.search, autoescape=True) for column in columns))


def build_predicate(
    spec: QuerySpec, registry: ColumnRegistry, scope: ScopeContext
) -> ColumnElement[bool]:
    """Compose the single conjunctive WHERE predicate for *spec*."""
    dropped: list[str] = []
    terms = scope_terms(registry, scope)
    terms += _filter_terms(spec, registry, dropped)
    terms += _comparison_terms(spec, registry, dropped)
    search = _search_term(spec, registry)
    if search is not None:
        terms.append(search)

    if dropped:
        logger.debug("Ignoring unknown %s field(s): %s", registry.entity, ", ".join(dropped))
    if not terms:
        return true()
    return and_(*terms)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def resolve_sort(
    sort_field: str | None, sort_order: str | None, registry: ColumnRegistry
) -> UnaryExpression | None:
    """
    Return the ORDER BY term for *sort_field*, or None when it is absent
    or unknown.  Anything other than exactly ``"desc"`` sorts ascending.
    """
    if not sort_field:
        return None
    descriptor = registry.resolve(sort_field)
    if descriptor is None:
        logger.debug("Ignoring unknown %s sort field: %s", registry.entity, sort_field)
        return None
    return desc(descriptor.column) if sort_order == "desc" else asc(descriptor.column)


def build_query(spec: QuerySpec, registry: ColumnRegistry, scope: ScopeContext) -> BuiltQuery:
    where = build_predicate(spec, registry, scope)

    order_by: tuple[UnaryExpression, ...] = ()
    primary = resolve_sort(spec.sort, spec.sort_order, registry)
    if primary is not None:
        order_by += (primary,)
    order_by += (asc(registry.primary_key),)

    # Offset/limit do not depend on the total, so compute them with 0.
    meta = calculate_pagination(spec.page, spec.page_size, 0)
    return BuiltQuery(
        where=where,
        order_by=order_by,
        limit=meta.limit,
        offset=meta.offset,
        page=meta.page,
        page_size=meta.page_size,
    )
