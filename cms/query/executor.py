"""
Runs a built query against the database and assembles the page.

Two statements per call: COUNT over the predicate, then the ordered
LIMIT/OFFSET select.  Both share the exact same WHERE clause.
"""
from typing import Any, Callable, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.query.builder import BuiltQuery, build_query
from cms.query.pagination import PaginatedResult, paginate
from cms.query.registry import ColumnRegistry
from cms.query.spec import QuerySpec, ScopeContext

T = TypeVar("T")


async def count_rows(db: AsyncSession, registry: ColumnRegistry, built: BuiltQuery) -> int:
    q = select(func.count()).select_from(registry.model).where(built.where)
    return (await db.execute(q)).scalar_one()


async def fetch_rows(db: AsyncSession, registry: ColumnRegistry, built: BuiltQuery) -> list:
    q = (
        select(registry.model)
        .where(built.where)
        .order_by(*built.order_by)
        .offset(built.offset)
        .limit(built.limit)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def fetch_page(
    db: AsyncSession,
    registry: ColumnRegistry,
    spec: QuerySpec,
    scope: ScopeContext,
    serialize: Callable[[Any], T] | None = None,
) -> PaginatedResult[T]:
    """
    Build, count, fetch and assemble one page of *registry*'s entity.

    *serialize* maps each ORM row to its response shape; rows are passed
    through unchanged when it is omitted.
    """
    built = build_query(spec, registry, scope)
    total = await count_rows(db, registry, built)
    rows = await fetch_rows(db, registry, built)
    data = [serialize(row) for row in rows] if serialize else rows
    return paginate(data, built.page, built.page_size, total)
