"""
Async Redis Client Module

Connection holder for the Redis response cache backend, built on
``redis.asyncio``. Stored values are JSON documents; reads can refresh the
key's TTL in the same round trip (``GETEX key EX ttl``), which is how cache
hits extend an entry's lifetime.

Redis problems are logged and reported as a miss (reads) or ``False``
(writes) so an unavailable cache never fails a parse request.

Usage:
    ```python
    client = RedisClient(settings)
    if await client.connect():
        await client.set_json("opengraph:https://example.com", {"og:title": "..."}, ttl=3600)
        await client.get_json("opengraph:https://example.com", refresh_ttl=3600)
    await client.close()
    ```
"""

import asyncio
import json
import logging

from typing import Any
from urllib.parse import urlsplit

import redis.asyncio as redis

from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)

# Socket timeouts for cache round trips, in seconds
SOCKET_TIMEOUT = 5.0


class RedisClient:
    """
    Async Redis connection used for JSON response caching.

    Args:
        settings: Application settings; ``redis_url`` selects the server.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client: redis.Redis | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _mask_url(self, url: str) -> str:
        """Return ``url`` with any credentials replaced by ``***``."""
        parts = urlsplit(url)
        if "@" not in parts.netloc:
            return url
        host = parts.netloc.rsplit("@", 1)[1]
        return f"{parts.scheme}://***@{host}{parts.path}"

    async def connect(self, max_retries: int = 3, base_delay: float = 1.0) -> bool:
        """
        Open the connection and verify it with PING.

        Failed attempts are retried with exponential backoff
        (``base_delay``, ``2 * base_delay``, ...).

        Returns:
            True once Redis answers, False after ``max_retries`` failures.
        """
        target = self._mask_url(self.settings.redis_url)

        for attempt in range(1, max_retries + 1):
            conn = redis.from_url(
                self.settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=SOCKET_TIMEOUT,
                socket_timeout=SOCKET_TIMEOUT,
            )
            try:
                await conn.ping()
            except RedisConnectionError as e:
                logger.warning(
                    "Redis at %s unreachable (attempt %d/%d): %s", target, attempt, max_retries, e
                )
            except RedisError:
                logger.exception("Redis at %s rejected the connection", target)
            else:
                self._client = conn
                logger.info("Connected to Redis at %s", target)
                return True

            await conn.aclose()
            if attempt < max_retries:
                await asyncio.sleep(base_delay * 2 ** (attempt - 1))

        logger.error("Giving up on Redis at %s after %d attempts", target, max_retries)
        return False

    async def close(self) -> None:
        """Close the connection; a no-op when not connected."""
        if self._client is None:
            return

        conn, self._client = self._client, None
        try:
            await conn.aclose()
        except RedisError:
            logger.exception("Error closing Redis connection")
        else:
            logger.info("Redis connection closed")

    async def get_json(self, key: str, refresh_ttl: int | None = None) -> Any | None:
        """
        Read and decode the JSON value stored under ``key``.

        Args:
            key: Redis key.
            refresh_ttl: Reset the key's TTL to this many seconds as part of
                the read.

        Returns:
            The decoded value, or None when the key is missing, holds
            invalid JSON, or Redis fails.
        """
        if self._client is None:
            logger.error("Redis read for '%s' without a connection", key)
            return None

        try:
            if refresh_ttl:
                raw = await self._client.getex(key, ex=refresh_ttl)
            else:
                raw = await self._client.get(key)
        except RedisError:
            logger.exception("Redis read failed for '%s'", key)
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding non-JSON cache value for '%s'", key)
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Encode ``value`` as JSON and store it, expiring after ``ttl`` seconds if given."""
        if self._client is None:
            logger.error("Redis write for '%s' without a connection", key)
            return False

        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Value for '%s' is not JSON serializable", key)
            return False

        try:
            await self._client.set(key, payload, ex=ttl or None)
        except RedisError:
            logger.exception("Redis write failed for '%s'", key)
            return False

        return True


__all__ = ["RedisClient"]
