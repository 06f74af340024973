"""Redis cache implementation for the address service.

Provides async Redis operations for the cache namespaces.
Uses redis-py async client for connection pooling.

Three layers:
- RedisCacheStore: the shared connection; raw get/set/delete/flush with
  Redis errors translated to CacheUnavailable
- RedisNamespace: one logical key space ("address", "addresses", ...)
  storing orjson-encoded values with a fixed TTL
- RedisCacheManager: the set of named namespaces over one store
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Iterable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast

import orjson
import redis.asyncio as redis
from redis.exceptions import RedisError

from address_service.cache.errors import CacheStoreStopped, CacheUnavailable
from address_service.cache.keys import NAMESPACES, CacheKeys
from address_service.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Module-level connection pool
_redis_client: Redis | None = None

# Default TTL (10 minutes)
DEFAULT_TTL = 600

# Keys deleted per DEL call during namespace invalidation
DELETE_BATCH_SIZE = 500


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,  # We're storing bytes
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheStore:
    """The shared Redis connection behind every cache namespace."""

    def __init__(self, client: Redis):
        self.client = client
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def _command(self, operation: str) -> AsyncIterator[None]:
        if self._closed:
            raise CacheStoreStopped(f"Redis {operation} skipped: connection STOPPED")
        try:
            yield
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis {operation} failed: {e}") from e

    async def get(self, key: str) -> bytes | None:
        async with self._command("GET"):
            return cast(bytes | None, await self.client.get(key))

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        async with self._command("SETEX"):
            await self.client.setex(key, ttl, value)

    async def delete(self, *keys: str) -> int:
        async with self._command("DEL"):
            return cast(int, await self.client.delete(*keys))

    async def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob pattern.

        Uses SCAN to avoid blocking on large keyspaces.
        Returns the number of keys deleted.
        """
        deleted = 0
        async with self._command("SCAN/DEL"):
            batch: list[Any] = []
            async for key in self.client.scan_iter(match=pattern):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.client.delete(*batch)
        return deleted

    async def flush_db(self) -> None:
        """Remove every key of the current Redis database."""
        async with self._command("FLUSHDB"):
            await self.client.flushdb()

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            async with self._command("PING"):
                await cast(Awaitable[bool], self.client.ping())
            return True
        except CacheUnavailable:
            return False

    async def close(self) -> None:
        """Mark the store stopped and release the connection pool."""
        if self._closed:
            return
        self._closed = True
        await self.client.aclose()


class RedisNamespace:
    """A named cache: one logical key space with a fixed TTL.

    Values are JSON-compatible Python objects encoded with orjson.
    None is never stored.
    """

    def __init__(self, name: str, store: RedisCacheStore, ttl: int = DEFAULT_TTL):
        self.name = name
        self.store = store
        self.ttl = ttl

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss.

        Entries that cannot be decoded are reported as misses.
        """
        raw = await self.store.get(CacheKeys.key(self.name, key))
        if raw is None:
            return None
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache entry {self.name}::{key}")
            return None

    async def put(self, key: str, value: Any) -> None:
        """Cache a value under key. None values are skipped."""
        if value is None:
            return
        await self.store.set(CacheKeys.key(self.name, key), orjson.dumps(value), self.ttl)

    async def evict(self, key: str) -> None:
        """Remove a single entry."""
        await self.store.delete(CacheKeys.key(self.name, key))

    async def clear(self) -> int:
        """Remove every entry of this namespace.

        Returns the number of keys deleted.
        """
        return await self.store.delete_matching(CacheKeys.namespace_pattern(self.name))


class RedisCacheManager:
    """The named cache namespaces sharing one RedisCacheStore."""

    def __init__(
        self,
        store: RedisCacheStore,
        ttl: int = DEFAULT_TTL,
        names: Iterable[str] = NAMESPACES,
    ):
        self.store = store
        self._caches = {name: RedisNamespace(name, store, ttl) for name in names}

    @property
    def cache_names(self) -> list[str]:
        return list(self._caches)

    def get_cache(self, name: str) -> RedisNamespace:
        """Get a namespace by name.

        Raises:
            KeyError: If no namespace with that name is configured
        """
        return self._caches[name]
