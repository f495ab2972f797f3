"""
Dictionary service: per-site lookup entries (authors, origins, tags,
friend links).  Not cached: editors read these lists rarely.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.enums import DictType, StatusEnum
from cms.models import DictEntry
from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import DICTS
from cms.schemas import DictCreate, DictResponse, DictUpdate
from cms.services.common import apply_update, get_scoped, soft_delete


async def get_dicts(
    db: AsyncSession, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[DictResponse]:
    return await fetch_page(db, DICTS, spec, scope, DictResponse.model_validate)


async def get_dicts_by_type(
    db: AsyncSession, scope: ScopeContext, dict_type: DictType
) -> list[DictEntry]:
    """Return every NORMAL entry of *dict_type*, ordered by ``sort``."""
    q = (
        select(DictEntry)
        .where(
            DictEntry.site_id == scope.tenant_id,
            DictEntry.type == dict_type.value,
            DictEntry.status == StatusEnum.NORMAL.value,
        )
        .order_by(DictEntry.sort, DictEntry.id)
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_dict(db: AsyncSession, scope: ScopeContext, dict_id: int) -> DictEntry | None:
    return await get_scoped(db, DICTS, scope, dict_id)


async def create_dict(db: AsyncSession, scope: ScopeContext, data: DictCreate) -> DictEntry:
    entry = DictEntry(**data.model_dump(), site_id=scope.tenant_id)
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    return entry


async def update_dict(
    db: AsyncSession, scope: ScopeContext, dict_id: int, data: DictUpdate
) -> DictEntry | None:
    entry = await get_scoped(db, DICTS, scope, dict_id)
    if entry is None:
        return None

    apply_update(entry, data)
    await db.flush()
    await db.refresh(entry)
    return entry


async def delete_dict(db: AsyncSession, scope: ScopeContext, dict_id: int) -> bool:
    entry = await get_scoped(db, DICTS, scope, dict_id)
    if entry is None:
        return False

    await soft_delete(db, entry)
    return True
