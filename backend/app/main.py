"""
Open Graph Parser API - FastAPI Application Entry Point.

Initializes the FastAPI application with:

- Lifespan handling that configures logging and creates the shared
  response cache (memory or Redis) at startup and closes it at shutdown
- CORS middleware so browsers on other origins can call the parser
- Request timing middleware adding ``X-Process-Time`` / ``X-Request-ID``
- The v1 API router under ``/api/v1`` and the legacy ``/OpenGraph/Parse`` route
- Root and health endpoints

Usage:
    uvicorn app.main:app --host 0.0.0.0 --port 8000
"""

import logging
import time

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api.v1 import api_router
from app.api.v1.opengraph import parse as parse_endpoint
from app.config import get_settings
from app.core.dependencies import create_response_cache
from app.utils.logger import get_logger, setup_logging


logger = get_logger(__name__)

# Status codes >= 400 are logged at WARNING
HTTP_ERROR_THRESHOLD = 400


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the shared response cache on startup and close it on shutdown.

    The cache is stored on ``app.state.response_cache`` and injected into
    handlers through ``get_response_cache``.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info("%s starting (env=%s, debug=%s)", settings.app_name, settings.app_env, settings.debug)

    app.state.response_cache = await create_response_cache(settings)

    logger.info("%s ready on %s:%d", settings.app_name, settings.host, settings.port)

    yield

    logger.info("%s shutting down", settings.app_name)
    try:
        await app.state.response_cache.close()
    except Exception:
        logger.exception("Error closing response cache")
    logger.info("%s shutdown complete", settings.app_name)


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title="Open Graph Parser API",
    description=(
        "Fetches a page and returns its Open Graph metadata, falling back to "
        "title and meta tags, with optional video enrichment and a one-hour cache."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials="*" not in _settings.cors_origins,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request and add timing headers to the response."""
    request_id = f"{time.time_ns()}"
    start_time = time.perf_counter()

    logger.debug("Request started: %s %s [Request-ID: %s]", request.method, request.url.path, request_id)

    response = await call_next(request)

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %d] [Time: %sms] [Request-ID: %s]",
        request.method,
        request.url.path,
        response.status_code,
        process_time_ms,
        request_id,
    )

    return response


# =============================================================================
# API Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")

# PascalCase route kept for existing clients
app.add_api_route(
    "/OpenGraph/Parse",
    parse_endpoint,
    methods=["GET"],
    response_model=None,
    tags=["opengraph"],
    include_in_schema=False,
)


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get("/", tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    """Return service name, version and documentation links."""
    return {
        "name": "Open Graph Parser API",
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "endpoints": {
            "parse": "/api/v1/opengraph/parse",
        },
    }


@app.get("/health", tags=["health"], summary="Health Check")
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness probe reporting the active cache backend."""
    cache = getattr(request.app.state, "response_cache", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "cache_backend": cache.backend_name if cache is not None else None,
    }


# =============================================================================
# Main Execution Block
# =============================================================================

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
    )
