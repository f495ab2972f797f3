"""
Article service: business logic for the Article aggregate.

Design notes
------------
- List pages go through the cache-aside pattern (Redis → fallback to DB).
  The key is ``site:{id}:articles:list:{digest}`` where the digest covers
  every field of the ``QuerySpec``, so two different queries never share
  an entry.
- Every write deletes the whole ``site:{id}:articles:`` prefix.  Pages of
  other sites are left alone.
- The article's channel must be a NORMAL channel of the same site, both
  on create and when an update moves the article.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import hashlib
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.authorization import check_permission
from cms.cache import Cache, generate_key
from cms.config import settings
from cms.enums import StatusEnum, UserType
from cms.exceptions import InvalidReferenceError
from cms.models import Article, Channel
from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import ARTICLES
from cms.schemas import ArticleCreate, ArticleResponse, ArticleUpdate
from cms.services.common import apply_update, get_scoped, soft_delete

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------

def _prefix(scope: ScopeContext) -> str:
    return generate_key("site", scope.tenant_id, "articles") + ":"


def list_cache_key(spec: QuerySpec, scope: ScopeContext) -> str:
    digest = hashlib.sha1(spec.model_dump_json().encode()).hexdigest()
    return generate_key("site", scope.tenant_id, "articles", "list", digest)


async def _invalidate(cache: Cache, scope: ScopeContext) -> None:
    await cache.delete_by_prefix(_prefix(scope))


async def _ensure_channel(db: AsyncSession, channel_id: int, scope: ScopeContext) -> None:
    q = select(Channel.id).where(
        Channel.id == channel_id,
        Channel.site_id == scope.tenant_id,
        Channel.status == StatusEnum.NORMAL.value,
    )
    if (await db.execute(q)).scalar_one_or_none() is None:
        raise InvalidReferenceError(f"Channel {channel_id} does not exist in this site")


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_articles(
    db: AsyncSession, cache: Cache, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[ArticleResponse]:
    """
    Return one page of the site's articles.

    Two SQL statements are issued on a cache miss: COUNT and the
    LIMIT/OFFSET select, both over the same predicate.
    """
    cache_key = list_cache_key(spec, scope)
    cached = await cache.get(cache_key)
    if cached:
        return PaginatedResult[ArticleResponse].model_validate(cached)

    result = await fetch_page(db, ARTICLES, spec, scope, ArticleResponse.model_validate)
    await cache.set(cache_key, result.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST)
    return result


async def get_article(db: AsyncSession, scope: ScopeContext, article_id: int) -> Article | None:
    return await get_scoped(db, ARTICLES, scope, article_id)


async def create_article(
    db: AsyncSession,
    cache: Cache,
    scope: ScopeContext,
    data: ArticleCreate,
    role: UserType,
    user_id: int | None = None,
) -> Article:
    """
    Create an article in the caller's site.

    Editors and above publish directly; plain users' articles wait in
    PENDING for review.
    """
    await _ensure_channel(db, data.channel_id, scope)

    status = StatusEnum.NORMAL if check_permission(role, UserType.EDITOR) else StatusEnum.PENDING
    article = Article(
        **data.model_dump(),
        user_id=user_id,
        status=status.value,
        site_id=scope.tenant_id,
    )
    db.add(article)
    await db.flush()
    await db.refresh(article)

    await _invalidate(cache, scope)
    logger.info("Article %d created in site %d (%s)", article.id, scope.tenant_id, article.status)
    return article


async def update_article(
    db: AsyncSession, cache: Cache, scope: ScopeContext, article_id: int, data: ArticleUpdate
) -> Article | None:
    """
    Partially update an article.  Returns None when it does not exist,
    is deleted, or belongs to another site.
    """
    article = await get_scoped(db, ARTICLES, scope, article_id)
    if article is None:
        return None

    if data.channel_id is not None and data.channel_id != article.channel_id:
        await _ensure_channel(db, data.channel_id, scope)

    apply_update(article, data)
    await db.flush()
    await db.refresh(article)

    await _invalidate(cache, scope)
    return article


async def delete_article(
    db: AsyncSession, cache: Cache, scope: ScopeContext, article_id: int
) -> bool:
    article = await get_scoped(db, ARTICLES, scope, article_id)
    if article is None:
        return False

    await soft_delete(db, article)
    await _invalidate(cache, scope)
    logger.info("Article %d deleted in site %d", article_id, scope.tenant_id)
    return True
