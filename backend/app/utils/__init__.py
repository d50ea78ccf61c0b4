"""
Utilities Package for the Open Graph parser backend.

Modules:
--------
cache:
    Response cache used by the parse endpoint:
    - build_cache_key combining the page URL with the enrichment flag
    - MemoryResponseCache with sliding expiration (default backend)
    - RedisResponseCache sharing entries across workers

logger:
    Logging configuration:
    - JSONFormatter / StandardFormatter
    - setup_logging for application-wide configuration
    - get_logger factory for module loggers

Usage:
------
    from app.utils import MemoryResponseCache, build_cache_key, get_logger
"""

from app.utils.cache import (
    CACHE_TTL_METADATA,
    MemoryResponseCache,
    RedisResponseCache,
    ResponseCache,
    build_cache_key,
)
from app.utils.logger import (
    get_logger,
    setup_logging,
)


__all__ = [
    "CACHE_TTL_METADATA",
    "MemoryResponseCache",
    "RedisResponseCache",
    "ResponseCache",
    "build_cache_key",
    "get_logger",
    "setup_logging",
]
