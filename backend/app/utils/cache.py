"""
Response Caching Utilities Module

Caches parse results keyed by the requested URL. Plain and enriched results
for the same URL are stored under different keys because they have different
shapes.

Every entry uses a sliding expiration: storing a value starts the countdown
and every successful read resets it. There is no capacity bound.

Backends:
- MemoryResponseCache: process-local dictionary guarded by a lock
- RedisResponseCache: JSON values in Redis, refreshed with ``GETEX``

Usage:
    ```python
    cache = MemoryResponseCache(ttl_seconds=CACHE_TTL_METADATA)
    key = build_cache_key(url, enriched=False)
    cached = await cache.get(key)
    if cached is None:
        await cache.set(key, result.to_response())
    ```
"""

import copy
import logging
import threading
import time

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from app.core.redis_client import RedisClient


logger = logging.getLogger(__name__)


# Sliding expiration for parse results - 1 hour
CACHE_TTL_METADATA: int = 3600

# Appended to the URL for site-specific (enriched) results
ENRICHED_KEY_SUFFIX: str = "bitchute"

# Namespace for keys stored in a shared Redis instance
REDIS_KEY_PREFIX: str = "opengraph:"


def build_cache_key(url: str, enriched: bool) -> str:
    """
    Build the cache key for a parse request.

    Example:
        >>> build_cache_key("https://example.com", enriched=True)
        'https://example.combitchute'
    """
    return url + (ENRICHED_KEY_SUFFIX if enriched else "")


class ResponseCache(ABC):
    """Key/value store for parse results with sliding expiration."""

    backend_name: str = "abstract"

    def __init__(self, ttl_seconds: int = CACHE_TTL_METADATA) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value and reset its expiration, or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` with a fresh expiration window."""

    async def close(self) -> None:
        """Release backend resources."""


class MemoryResponseCache(ResponseCache):
    """
    In-process cache with sliding expiration.

    Values are deep-copied on the way in and out so callers can never mutate
    a cached entry. Expired entries are dropped when they are looked up, and
    every write purges all entries whose window has elapsed, so keys that are
    never requested again do not accumulate.

    Args:
        ttl_seconds: Sliding expiration window.
        clock: Monotonic time source, replaceable in tests.
    """

    backend_name = "memory"

    def __init__(
        self,
        ttl_seconds: int = CACHE_TTL_METADATA,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss for key '%s'", key)
                return None

            value, expires_at = entry
            if expires_at <= now:
                del self._entries[key]
                logger.debug("Cache entry for key '%s' expired", key)
                return None

            self._entries[key] = (value, now + self.ttl_seconds)

        logger.debug("Cache hit for key '%s'", key)
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any) -> None:
        stored = copy.deepcopy(value)
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            self._entries[key] = (stored, now + self.ttl_seconds)
        logger.debug("Cached value for key '%s' with TTL=%d", key, self.ttl_seconds)

    def _purge_expired(self, now: float) -> None:
        """Drop every entry whose window has elapsed. Caller holds the lock."""
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisResponseCache(ResponseCache):
    """
    Redis-backed cache with sliding expiration.

    Redis failures never fail a request: reads degrade to a miss and writes
    to a no-op, with the error logged by the client.
    """

    backend_name = "redis"

    def __init__(
        self,
        client: RedisClient,
        ttl_seconds: int = CACHE_TTL_METADATA,
        key_prefix: str = REDIS_KEY_PREFIX,
    ) -> None:
        super().__init__(ttl_seconds)
        self.client = client
        self.key_prefix = key_prefix

    def _redis_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        value = await self.client.get_json(self._redis_key(key), refresh_ttl=self.ttl_seconds)
        logger.debug("Cache %s for key '%s'", "miss" if value is None else "hit", key)
        return value

    async def set(self, key: str, value: Any) -> None:
        success = await self.client.set_json(self._redis_key(key), value, ttl=self.ttl_seconds)
        if not success:
            logger.warning("Failed to cache value for key '%s'", key)

    async def close(self) -> None:
        await self.client.close()


__all__ = [
    "CACHE_TTL_METADATA",
    "ENRICHED_KEY_SUFFIX",
    "MemoryResponseCache",
    "RedisResponseCache",
    "ResponseCache",
    "build_cache_key",
]
