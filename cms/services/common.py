"""
Helpers shared by every service: scoped single-row lookup, partial
update and soft delete.

Single-row reads reuse the query engine's scope terms, so a detail
lookup can never see a row the list endpoint would hide.
"""
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.enums import StatusEnum
from cms.query import ColumnRegistry, ScopeContext
from cms.query.builder import scope_terms


async def get_scoped(
    db: AsyncSession, registry: ColumnRegistry, scope: ScopeContext, row_id: int
) -> Any | None:
    """Return the live row *row_id* of the caller's site, or None."""
    q = (
        select(registry.model)
        .where(registry.primary_key == row_id, *scope_terms(registry, scope))
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


def apply_update(row: Any, data: BaseModel) -> dict:
    """
    Copy the fields explicitly set in *data* onto *row*.

    Returns the applied changes so callers can react to specific fields.
    """
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(row, field, value)
    return changes


async def soft_delete(db: AsyncSession, row: Any) -> None:
    row.status = StatusEnum.DELETE.value
    await db.flush()
