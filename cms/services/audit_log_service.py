"""
Audit log service: read side of the append-only log table.

Rows are written by the gateway's audit hook; this service only lists
them.  Without an explicit sort the newest entries come first.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import LOGS
from cms.schemas import LogResponse


async def get_logs(
    db: AsyncSession, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[LogResponse]:
    if not spec.sort:
        spec = spec.model_copy(update={"sort": "created_at", "sort_order": "desc"})
    return await fetch_page(db, LOGS, spec, scope, LogResponse.model_validate)
