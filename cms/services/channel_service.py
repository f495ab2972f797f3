"""
Channel service: the per-site channel hierarchy.

Channels form a forest keyed by ``pid`` (0 marks a root).  The full tree
of NORMAL channels is cached under ``site:{id}:channels:tree`` and that
one key is deleted on every write.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.cache import Cache, generate_key
from cms.config import settings
from cms.enums import StatusEnum
from cms.exceptions import InvalidReferenceError
from cms.models import Channel
from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import CHANNELS
from cms.schemas import ChannelCreate, ChannelResponse, ChannelTree, ChannelUpdate
from cms.services.common import apply_update, get_scoped, soft_delete

logger = logging.getLogger(__name__)


def tree_cache_key(scope: ScopeContext) -> str:
    return generate_key("site", scope.tenant_id, "channels", "tree")


async def _invalidate(cache: Cache, scope: ScopeContext) -> None:
    await cache.delete(tree_cache_key(scope))


async def _parent_exists(db: AsyncSession, pid: int, scope: ScopeContext) -> bool:
    q = select(Channel.id).where(
        Channel.id == pid,
        Channel.site_id == scope.tenant_id,
        Channel.status == StatusEnum.NORMAL.value,
    )
    return (await db.execute(q)).scalar_one_or_none() is not None


async def _is_descendant(db: AsyncSession, candidate: int, ancestor: int, scope: ScopeContext) -> bool:
    """True when *candidate* sits somewhere below *ancestor* in the tree."""
    q = select(Channel.id, Channel.pid).where(Channel.site_id == scope.tenant_id)
    parents = {row.id: row.pid for row in (await db.execute(q)).all()}
    seen: set[int] = set()
    node = candidate
    while node and node not in seen:
        if node == ancestor:
            return True
        seen.add(node)
        node = parents.get(node, 0)
    return False


def build_tree(channels: list[ChannelResponse], parent_id: int = 0) -> list[ChannelTree]:
    """
    Nest *channels* (already ordered by ``sort``) under their parents.

    Channels whose parent is missing from the list are not reachable and
    are left out.
    """
    by_parent: dict[int, list[ChannelResponse]] = {}
    for channel in channels:
        by_parent.setdefault(channel.pid, []).append(channel)

    def children_of(pid: int, path: frozenset[int]) -> list[ChannelTree]:
        return [
            ChannelTree(
                **child.model_dump(),
                children=children_of(child.id, path | {child.id}),
            )
            for child in by_parent.get(pid, [])
            if child.id not in path
        ]

    return children_of(parent_id, frozenset())


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_channels(
    db: AsyncSession, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[ChannelResponse]:
    return await fetch_page(db, CHANNELS, spec, scope, ChannelResponse.model_validate)


async def get_channel(db: AsyncSession, scope: ScopeContext, channel_id: int) -> Channel | None:
    return await get_scoped(db, CHANNELS, scope, channel_id)


async def get_tree(db: AsyncSession, cache: Cache, scope: ScopeContext) -> list[ChannelTree]:
    """Return the site's NORMAL channels as a tree, children ordered by ``sort``."""
    cache_key = tree_cache_key(scope)
    cached = await cache.get(cache_key)
    if cached is not None:
        return [ChannelTree.model_validate(node) for node in cached]

    q = (
        select(Channel)
        .where(Channel.site_id == scope.tenant_id, Channel.status == StatusEnum.NORMAL.value)
        .order_by(Channel.sort, Channel.id)
    )
    rows = (await db.execute(q)).scalars().all()
    tree = build_tree([ChannelResponse.model_validate(row) for row in rows])

    await cache.set(
        cache_key,
        [node.model_dump(mode="json") for node in tree],
        ttl=settings.CACHE_TTL_TREE,
    )
    return tree


async def create_channel(
    db: AsyncSession, cache: Cache, scope: ScopeContext, data: ChannelCreate
) -> Channel:
    if data.pid and not await _parent_exists(db, data.pid, scope):
        raise InvalidReferenceError(f"Parent channel {data.pid} does not exist in this site")

    channel = Channel(**data.model_dump(), site_id=scope.tenant_id)
    db.add(channel)
    await db.flush()
    await db.refresh(channel)

    await _invalidate(cache, scope)
    logger.info("Channel %d created in site %d", channel.id, scope.tenant_id)
    return channel


async def update_channel(
    db: AsyncSession, cache: Cache, scope: ScopeContext, channel_id: int, data: ChannelUpdate
) -> Channel | None:
    """
    Partially update a channel.  Moving a channel under itself or under
    one of its own descendants is rejected.
    """
    channel = await get_scoped(db, CHANNELS, scope, channel_id)
    if channel is None:
        return None

    if data.pid and data.pid != channel.pid:
        if data.pid == channel_id:
            raise InvalidReferenceError("A channel cannot be its own parent")
        if not await _parent_exists(db, data.pid, scope):
            raise InvalidReferenceError(f"Parent channel {data.pid} does not exist in this site")
        if await _is_descendant(db, data.pid, channel_id, scope):
            raise InvalidReferenceError("A channel cannot be moved under its own descendant")

    apply_update(channel, data)
    await db.flush()
    await db.refresh(channel)

    await _invalidate(cache, scope)
    return channel


async def delete_channel(
    db: AsyncSession, cache: Cache, scope: ScopeContext, channel_id: int
) -> bool:
    channel = await get_scoped(db, CHANNELS, scope, channel_id)
    if channel is None:
        return False

    await soft_delete(db, channel)
    await _invalidate(cache, scope)
    logger.info("Channel %d deleted in site %d", channel_id, scope.tenant_id)
    return True
