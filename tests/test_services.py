"""
Direct service-layer tests: exercises business logic without HTTP overhead.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from cms.enums import UserType
from cms.exceptions import InvalidReferenceError
from cms.query import PaginatedResult, QuerySpec, ScopeContext
from cms.schemas import ArticleCreate, ArticleResponse, ChannelResponse, PromoCreate
from cms.services import article_service, audit_log_service, channel_service, promo_service
from conftest import InMemoryCache, make_channel

SCOPE = ScopeContext(tenant_id=1)


def _channel_response(channel_id: int, pid: int, sort: int = 0) -> ChannelResponse:
    now = datetime(2024, 1, 1)
    return ChannelResponse(
        id=channel_id, name=f"c{channel_id}", pid=pid, sort=sort, keywords="", description="",
        type="ARTICLE", status="NORMAL", site_id=1, created_at=now, updated_at=now,
    )


# ---------------------------------------------------------------------------
# channel_service.build_tree
# ---------------------------------------------------------------------------

def test_build_tree_nests_by_pid():
    tree = channel_service.build_tree([
        _channel_response(1, 0),
        _channel_response(2, 1),
        _channel_response(3, 2),
        _channel_response(4, 0),
    ])
    assert [n.id for n in tree] == [1, 4]
    assert [n.id for n in tree[0].children] == [2]
    assert [n.id for n in tree[0].children[0].children] == [3]


def test_build_tree_drops_unreachable_channels():
    tree = channel_service.build_tree([_channel_response(1, 0), _channel_response(2, 99)])
    assert [n.id for n in tree] == [1]
    assert tree[0].children == []


# ---------------------------------------------------------------------------
# article_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_articles_cache_hit_returns_same_page(db_session: AsyncSession):
    cache = InMemoryCache()
    channel = await make_channel(db_session)
    await article_service.create_article(
        db_session, cache, SCOPE, ArticleCreate(title="Cached", channel_id=channel.id), UserType.EDITOR
    )
    await db_session.commit()

    spec = QuerySpec(sort="title")
    miss = await article_service.get_articles(db_session, cache, spec, SCOPE)
    hit = await article_service.get_articles(db_session, cache, spec, SCOPE)

    assert cache.hits == 1
    assert isinstance(hit, PaginatedResult)
    assert isinstance(hit.data[0], ArticleResponse)
    assert hit.model_dump(mode="json") == miss.model_dump(mode="json")


def test_list_cache_key_differs_per_query():
    a = article_service.list_cache_key(QuerySpec(page=1), SCOPE)
    b = article_service.list_cache_key(QuerySpec(page=2), SCOPE)
    assert a != b
    assert a.startswith("site:1:articles:list:")
    assert a == article_service.list_cache_key(QuerySpec(page=1), SCOPE)


@pytest.mark.asyncio
async def test_create_article_with_foreign_channel_raises(db_session: AsyncSession):
    channel = await make_channel(db_session, site_id=2)
    with pytest.raises(InvalidReferenceError):
        await article_service.create_article(
            db_session, InMemoryCache(), SCOPE,
            ArticleCreate(title="x", channel_id=channel.id), UserType.MANAGE,
        )


# ---------------------------------------------------------------------------
# promo_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_active_promos_at_given_instant(db_session: AsyncSession):
    start = datetime(2024, 6, 1, tzinfo=timezone.utc)
    await promo_service.create_promo(
        db_session, InMemoryCache(), SCOPE,
        PromoCreate(title="June", start_time=start, end_time=start + timedelta(days=30)),
    )
    await db_session.commit()

    inside = await promo_service.get_active_promos(
        db_session, InMemoryCache(), SCOPE, now=start + timedelta(days=1)
    )
    outside = await promo_service.get_active_promos(
        db_session, InMemoryCache(), SCOPE, now=start + timedelta(days=31)
    )
    assert [p.title for p in inside] == ["June"]
    assert outside == []


# ---------------------------------------------------------------------------
# audit_log_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_logs_keep_explicit_sort(db_session: AsyncSession):
    result = await audit_log_service.get_logs(db_session, QuerySpec(sort="id", sort_order="asc"), SCOPE)
    assert result.total == 0
