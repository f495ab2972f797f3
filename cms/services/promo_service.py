"""
Promotion service: advertising slots with an optional display window.

The set of promotions currently on air (NORMAL and ``start_time <= now
<= end_time``) is cached under ``site:{id}:promos:active``; every write
deletes that key.  A promotion with an open-ended window is never
active.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.cache import Cache, generate_key
from cms.config import settings
from cms.enums import StatusEnum
from cms.models import Promo
from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import PROMOS
from cms.schemas import PromoCreate, PromoResponse, PromoUpdate
from cms.services.common import apply_update, get_scoped, soft_delete

logger = logging.getLogger(__name__)


def active_cache_key(scope: ScopeContext) -> str:
    return generate_key("site", scope.tenant_id, "promos", "active")


async def _invalidate(cache: Cache, scope: ScopeContext) -> None:
    await cache.delete(active_cache_key(scope))


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_promos(
    db: AsyncSession, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[PromoResponse]:
    return await fetch_page(db, PROMOS, spec, scope, PromoResponse.model_validate)


async def get_promo(db: AsyncSession, scope: ScopeContext, promo_id: int) -> Promo | None:
    return await get_scoped(db, PROMOS, scope, promo_id)


async def get_active_promos(
    db: AsyncSession, cache: Cache, scope: ScopeContext, now: datetime | None = None
) -> list[PromoResponse]:
    """Return the promotions on air at *now* (default: the current time), ordered by ``sort``."""
    cache_key = active_cache_key(scope)
    cached = await cache.get(cache_key)
    if cached is not None:
        return [PromoResponse.model_validate(item) for item in cached]

    now = now or datetime.now(timezone.utc)
    q = (
        select(Promo)
        .where(
            Promo.site_id == scope.tenant_id,
            Promo.status == StatusEnum.NORMAL.value,
            Promo.start_time <= now,
            Promo.end_time >= now,
        )
        .order_by(Promo.sort, Promo.id)
    )
    rows = (await db.execute(q)).scalars().all()
    active = [PromoResponse.model_validate(row) for row in rows]

    await cache.set(
        cache_key,
        [promo.model_dump(mode="json") for promo in active],
        ttl=settings.CACHE_TTL_ACTIVE,
    )
    return active


async def create_promo(
    db: AsyncSession, cache: Cache, scope: ScopeContext, data: PromoCreate
) -> Promo:
    promo = Promo(**data.model_dump(), site_id=scope.tenant_id)
    db.add(promo)
    await db.flush()
    await db.refresh(promo)

    await _invalidate(cache, scope)
    logger.info("Promo %d created in site %d", promo.id, scope.tenant_id)
    return promo


async def update_promo(
    db: AsyncSession, cache: Cache, scope: ScopeContext, promo_id: int, data: PromoUpdate
) -> Promo | None:
    promo = await get_scoped(db, PROMOS, scope, promo_id)
    if promo is None:
        return None

    apply_update(promo, data)
    await db.flush()
    await db.refresh(promo)

    await _invalidate(cache, scope)
    return promo


async def toggle_status(
    db: AsyncSession, cache: Cache, scope: ScopeContext, promo_id: int
) -> Promo | None:
    """Flip NORMAL to PENDING; anything else becomes NORMAL."""
    promo = await get_scoped(db, PROMOS, scope, promo_id)
    if promo is None:
        return None

    if promo.status == StatusEnum.NORMAL.value:
        promo.status = StatusEnum.PENDING.value
    else:
        promo.status = StatusEnum.NORMAL.value
    await db.flush()
    await db.refresh(promo)

    await _invalidate(cache, scope)
    return promo


async def delete_promo(
    db: AsyncSession, cache: Cache, scope: ScopeContext, promo_id: int
) -> bool:
    promo = await get_scoped(db, PROMOS, scope, promo_id)
    if promo is None:
        return False

    await soft_delete(db, promo)
    await _invalidate(cache, scope)
    return True
