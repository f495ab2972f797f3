"""
Article endpoint tests: tenant scoping, role gating, list query
parameters, soft delete and list-cache invalidation.

Each test creates the channels and articles it needs, so test order does
not matter.
"""
import json

import pytest
from httpx import AsyncClient

from conftest import InMemoryCache, headers

URL = "/api/v1/articles"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _channel(client: AsyncClient, site_id: int = 1) -> int:
    resp = await client.post("/api/v1/channels", json={"name": "News"}, headers=headers(site_id))
    assert resp.status_code == 201
    return resp.json()["id"]


async def _article(client: AsyncClient, channel_id: int, site_id: int = 1, role: str = "EDITOR", **fields) -> dict:
    payload = {"title": "Hello", "channel_id": channel_id, **fields}
    resp = await client.post(URL, json=payload, headers=headers(site_id, role))
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert set(data["cache"]) == {"hits", "misses", "hit_rate"}


@pytest.mark.asyncio
async def test_diagnostic_headers_present(async_client: AsyncClient):
    resp = await async_client.get(URL, headers=headers())
    assert resp.status_code == 200
    assert "x-response-time-ms" in resp.headers
    assert int(resp.headers["x-query-count"]) >= 0


@pytest.mark.asyncio
async def test_cors_does_not_allow_credentials_with_wildcard(async_client: AsyncClient):
    resp = await async_client.options(URL, headers={
        "Origin": "http://example.com",
        "Access-Control-Request-Method": "GET",
    })
    assert resp.headers.get("access-control-allow-origin") == "*"
    assert "access-control-allow-credentials" not in resp.headers


# ---------------------------------------------------------------------------
# Site-Id and role headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_missing_site_id_is_401(async_client: AsyncClient):
    resp = await async_client.get(URL)
    assert resp.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("site_id", ["", "abc", "0", "-3"])
async def test_invalid_site_id_is_401(async_client: AsyncClient, site_id):
    resp = await async_client.get(URL, headers={"Site-Id": site_id})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_unknown_user_type_is_401(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    resp = await async_client.post(
        URL, json={"title": "x", "channel_id": channel_id}, headers=headers(role="ROOT")
    )
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_user_article_waits_for_review(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    data = await _article(async_client, channel_id, role="USER")
    assert data["status"] == "PENDING"
    assert data["site_id"] == 1


@pytest.mark.asyncio
async def test_pending_article_can_be_reviewed_and_published(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    pending = await _article(async_client, channel_id, role="USER", title="Draft")
    url = f"{URL}/{pending['id']}"

    resp = await async_client.get(url, headers=headers(role="EDITOR"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "PENDING"

    resp = await async_client.put(url, json={"status": "NORMAL"}, headers=headers(role="EDITOR"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "NORMAL"


@pytest.mark.asyncio
async def test_missing_role_header_acts_as_user(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    resp = await async_client.post(
        URL, json={"title": "x", "channel_id": channel_id}, headers=headers(role=None)
    )
    assert resp.status_code == 201
    assert resp.json()["status"] == "PENDING"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["EDITOR", "MANAGE", "SUPERMANAGE"])
async def test_editor_and_above_publish_directly(async_client: AsyncClient, role):
    channel_id = await _channel(async_client)
    data = await _article(async_client, channel_id, role=role)
    assert data["status"] == "NORMAL"


@pytest.mark.asyncio
async def test_create_records_caller_user_id(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    resp = await async_client.post(
        URL,
        json={"title": "Mine", "channel_id": channel_id},
        headers={**headers(role="EDITOR"), "X-User-Id": "42"},
    )
    assert resp.status_code == 201
    assert resp.json()["user_id"] == 42


@pytest.mark.asyncio
async def test_create_rejects_channel_of_another_site(async_client: AsyncClient):
    other_channel = await _channel(async_client, site_id=2)
    resp = await async_client.post(
        URL, json={"title": "x", "channel_id": other_channel}, headers=headers(1, "EDITOR")
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_missing_channel(async_client: AsyncClient):
    resp = await async_client.post(URL, json={"title": "x", "channel_id": 999}, headers=headers())
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_deleted_channel(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    await async_client.delete(f"/api/v1/channels/{channel_id}", headers=headers())
    resp = await async_client.post(URL, json={"title": "x", "channel_id": channel_id}, headers=headers())
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_empty(async_client: AsyncClient):
    resp = await async_client.get(URL, headers=headers())
    assert resp.status_code == 200
    assert resp.json() == {"data": [], "total": 0, "page": 1, "page_size": 10, "total_pages": 0}


@pytest.mark.asyncio
async def test_list_is_site_scoped(async_client: AsyncClient):
    ch1 = await _channel(async_client, 1)
    ch2 = await _channel(async_client, 2)
    await _article(async_client, ch1, 1, title="site one")
    await _article(async_client, ch2, 2, title="site two")

    data = (await async_client.get(URL, headers=headers(1))).json()
    assert [a["title"] for a in data["data"]] == ["site one"]
    assert data["total"] == 1


@pytest.mark.asyncio
async def test_list_filters_search_and_sort(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    await _article(async_client, channel_id, title="Python basics", author="alice")
    await _article(async_client, channel_id, title="Advanced Python", author="bob")
    await _article(async_client, channel_id, title="Rust", author="alice")

    resp = await async_client.get(URL, headers=headers(), params={
        "search": "python",
        "search_fields": "title,description",
        "sort": "title",
        "sort_order": "desc",
    })
    assert [a["title"] for a in resp.json()["data"]] == ["Python basics", "Advanced Python"]

    resp = await async_client.get(URL, headers=headers(), params={
        "filters": json.dumps({"author": "alice"}),
        "sort": "title",
    })
    assert [a["title"] for a in resp.json()["data"]] == ["Python basics", "Rust"]


@pytest.mark.asyncio
async def test_list_comparisons(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    for top in (0, 1, 2):
        await _article(async_client, channel_id, title=f"t{top}", is_top=top)

    resp = await async_client.get(URL, headers=headers(), params={
        "comparisons": json.dumps([{"field": "is_top", "operator": "gte", "value": "1"}]),
    })
    assert resp.status_code == 200
    assert [a["title"] for a in resp.json()["data"]] == ["t1", "t2"]


@pytest.mark.asyncio
async def test_list_ignores_unknown_fields(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    await _article(async_client, channel_id)
    resp = await async_client.get(URL, headers=headers(), params={
        "filters": json.dumps({"bogus": 1}),
        "sort": "bogus",
    })
    assert resp.status_code == 200
    assert resp.json()["total"] == 1


@pytest.mark.asyncio
async def test_list_pagination(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    for i in range(7):
        await _article(async_client, channel_id, title=f"a{i}")

    resp = await async_client.get(URL, headers=headers(), params={"page": 2, "page_size": 3})
    data = resp.json()
    assert [a["title"] for a in data["data"]] == ["a3", "a4", "a5"]
    assert data["total"] == 7
    assert data["total_pages"] == 3
    assert data["page"] == 2
    assert data["page_size"] == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"filters": "{not json"},
    {"filters": "[1, 2]"},
    {"comparisons": "{}"},
    {"comparisons": json.dumps([{"field": "is_top", "operator": "eq", "value": 1}])},
    {"filters": json.dumps({"channel_id": "abc"})},
    {"comparisons": json.dumps([{"field": "created_at", "operator": "gt", "value": "soon"}])},
])
async def test_malformed_query_parameters_are_400(async_client: AsyncClient, params):
    resp = await async_client.get(URL, headers=headers(), params=params)
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"page": 0},
    {"page_size": 0},
    {"page_size": 101},
    {"sort_order": "sideways"},
])
async def test_out_of_range_paging_is_422(async_client: AsyncClient, params):
    resp = await async_client.get(URL, headers=headers(), params=params)
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Detail / update / delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_article_of_another_site_is_404(async_client: AsyncClient):
    channel_id = await _channel(async_client, 2)
    article = await _article(async_client, channel_id, 2)
    resp = await async_client.get(f"{URL}/{article['id']}", headers=headers(1))
    assert resp.status_code == 404
    resp = await async_client.get(f"{URL}/{article['id']}", headers=headers(2))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_update_requires_editor(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    article = await _article(async_client, channel_id)
    url = f"{URL}/{article['id']}"

    resp = await async_client.put(url, json={"title": "New"}, headers=headers(role="USER"))
    assert resp.status_code == 403

    resp = await async_client.put(url, json={"title": "New", "status": "PENDING"}, headers=headers(role="EDITOR"))
    assert resp.status_code == 200
    assert resp.json()["title"] == "New"
    assert resp.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_update_cannot_set_delete_status(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    article = await _article(async_client, channel_id)
    resp = await async_client.put(f"{URL}/{article['id']}", json={"status": "DELETE"}, headers=headers())
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_validates_new_channel(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    other_site_channel = await _channel(async_client, 2)
    article = await _article(async_client, channel_id)
    resp = await async_client.put(
        f"{URL}/{article['id']}", json={"channel_id": other_site_channel}, headers=headers()
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_missing_article_is_404(async_client: AsyncClient):
    resp = await async_client.put(f"{URL}/999", json={"title": "x"}, headers=headers())
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_manage_and_is_soft(async_client: AsyncClient):
    channel_id = await _channel(async_client)
    article = await _article(async_client, channel_id)
    url = f"{URL}/{article['id']}"

    assert (await async_client.delete(url, headers=headers(role="EDITOR"))).status_code == 403
    assert (await async_client.delete(url, headers=headers(role="MANAGE"))).status_code == 204

    assert (await async_client.get(url, headers=headers())).status_code == 404
    assert (await async_client.delete(url, headers=headers())).status_code == 404
    assert (await async_client.get(URL, headers=headers())).json()["total"] == 0


# ---------------------------------------------------------------------------
# List cache
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_is_cached_per_query(async_client: AsyncClient, fake_cache: InMemoryCache):
    channel_id = await _channel(async_client)
    await _article(async_client, channel_id)

    first = await async_client.get(URL, headers=headers())
    second = await async_client.get(URL, headers=headers())
    assert first.json() == second.json()
    assert fake_cache.hits == 1
    assert len(fake_cache.keys("site:1:articles:list:")) == 1

    await async_client.get(URL, headers=headers(), params={"page": 2})
    assert len(fake_cache.keys("site:1:articles:list:")) == 2


@pytest.mark.asyncio
async def test_writes_invalidate_only_their_site(async_client: AsyncClient, fake_cache: InMemoryCache):
    ch1 = await _channel(async_client, 1)
    ch2 = await _channel(async_client, 2)
    await async_client.get(URL, headers=headers(1))
    await async_client.get(URL, headers=headers(2))
    assert fake_cache.keys("site:1:articles:")
    assert fake_cache.keys("site:2:articles:")

    await _article(async_client, ch1, 1)
    assert fake_cache.keys("site:1:articles:") == []
    assert len(fake_cache.keys("site:2:articles:")) == 1

    resp = await async_client.get(URL, headers=headers(1))
    assert resp.json()["total"] == 1
    await _article(async_client, ch2, 2)
    assert fake_cache.keys("site:2:articles:") == []
