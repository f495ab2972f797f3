# Tenant-scoped query and pagination engine.
#
#   registry   : per-entity whitelist of queryable columns
#   spec       : QuerySpec / Comparison input, ScopeContext
#   builder    : predicate composition, sort resolution, offset/limit
#   pagination : pagination arithmetic and PaginatedResult
#   executor   : runs a built query through an AsyncSession
#
# Everything except the executor is pure and synchronous.
from cms.query.builder import BuiltQuery, build_predicate, build_query, resolve_sort
from cms.query.executor import fetch_page
from cms.query.pagination import (
    DEFAULT_PAGE_SIZE,
    PaginatedResult,
    PaginationMeta,
    calculate_pagination,
    paginate,
)
from cms.query.registry import ColumnDescriptor, ColumnKind, ColumnRegistry
from cms.query.spec import Comparison, QuerySpec, ScopeContext

__all__ = [
    "BuiltQuery",
    "ColumnDescriptor",
    "ColumnKind",
    "ColumnRegistry",
    "Comparison",
    "DEFAULT_PAGE_SIZE",
    "PaginatedResult",
    "PaginationMeta",
    "QuerySpec",
    "ScopeContext",
    "build_predicate",
    "build_query",
    "calculate_pagination",
    "fetch_page",
    "paginate",
    "resolve_sort",
]
