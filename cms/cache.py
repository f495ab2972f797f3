import json
import logging
import re
from typing import Any, Protocol

import redis.asyncio as redis

from cms.config import settings

logger = logging.getLogger(__name__)

# Characters with special meaning in a Redis SCAN MATCH pattern.
_GLOB_SPECIAL_RE = re.compile(r"([*?\[\]\\])")


def generate_key(*parts: object) -> str:
    """
    Join the non-empty *parts* with ``:``.

    >>> generate_key("site", 3, "channels", "tree")
    'site:3:channels:tree'
    """
    return ":".join(str(p) for p in parts if p is not None and p != "")


def escape_pattern(prefix: str) -> str:
    return _GLOB_SPECIAL_RE.sub(r"\\\1", prefix)


class Cache(Protocol):
    """The cache contract services depend on; tests inject a fake."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_by_prefix(self, prefix: str) -> None: ...


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    Reads and writes degrade gracefully: when Redis is down ``get`` misses
    and ``set`` is skipped, so a request never fails because of the cache.
    Invalidation is different.  ``delete`` and ``delete_by_prefix`` run on
    the write path and their errors propagate, so a write is never reported
    complete while a stale aggregate is still cached.  With no connection
    configured at all they are no-ops, as there is nothing to invalidate.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except redis.RedisError as exc:  # pragma: no cover
            logger.warning("Redis ping failed, cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Return the cached value for *key*, or None on a miss / error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
        except redis.RedisError as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(data)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Persist *value* under *key*; a positive *ttl* expires it after that
        many seconds.  Failures are logged and swallowed.
        """
        if not self._redis:
            return
        try:
            serialised = json.dumps(value, default=str)
            await self._redis.set(key, serialised, ex=ttl if ttl and ttl > 0 else None)
        except (TypeError, ValueError, redis.RedisError) as exc:
            logger.warning("Cache SET error for key=%r: %s", key, exc)

    async def delete(self, key: str) -> None:
        if not self._redis:
            return
        await self._redis.delete(key)
        logger.debug("Cache invalidated %r", key)

    async def delete_by_prefix(self, prefix: str) -> None:
        """Delete every key starting with *prefix* using SCAN (avoids blocking KEYS)."""
        if not self._redis:
            return
        keys: list[str] = [
            key async for key in self._redis.scan_iter(match=escape_pattern(prefix) + "*")
        ]
        if keys:
            await self._redis.delete(*keys)
        logger.debug("Cache invalidated %d key(s) with prefix %r", len(keys), prefix)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Module-level singleton shared across all request handlers.
cache = CacheManager()


def get_cache() -> Cache:
    """FastAPI dependency; tests override it with an in-memory fake."""
    return cache
