"""
Dependency Providers Module

Builds the response cache at startup and exposes FastAPI dependencies that
hand the shared cache and a ``MetadataService`` to request handlers.

The cache is created once in the application lifespan, stored on
``app.state.response_cache`` and closed at shutdown.
"""

import logging

from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.core.redis_client import RedisClient
from app.services.metadata_service import MetadataService
from app.utils.cache import MemoryResponseCache, RedisResponseCache, ResponseCache


logger = logging.getLogger(__name__)


async def create_response_cache(settings: Settings) -> ResponseCache:
    """
    Build the configured response cache backend.

    When the Redis backend is selected but Redis is unreachable, the service
    continues with the in-memory backend.
    """
    if settings.uses_redis_cache:
        client = RedisClient(settings)
        if await client.connect():
            logger.info("Using Redis response cache (TTL=%ds)", settings.cache_ttl_seconds)
            return RedisResponseCache(client, ttl_seconds=settings.cache_ttl_seconds)

        await client.close()
        logger.warning("Redis unavailable, falling back to in-memory response cache")

    logger.info("Using in-memory response cache (TTL=%ds)", settings.cache_ttl_seconds)
    return MemoryResponseCache(ttl_seconds=settings.cache_ttl_seconds)


def get_response_cache(request: Request) -> ResponseCache:
    """Return the process-wide response cache created at startup."""
    cache: ResponseCache | None = getattr(request.app.state, "response_cache", None)
    if cache is None:
        raise RuntimeError("Response cache is not initialized")
    return cache


def get_metadata_service(
    cache: ResponseCache = Depends(get_response_cache),
    settings: Settings = Depends(get_settings),
) -> MetadataService:
    """Build a MetadataService bound to the shared cache."""
    return MetadataService(cache=cache, settings=settings)


__all__ = ["create_response_cache", "get_metadata_service", "get_response_cache"]
