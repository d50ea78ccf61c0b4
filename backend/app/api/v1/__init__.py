"""
API v1 Router Aggregator.

Combines the v1 endpoint routers into a single APIRouter registered by the
application under the ``/api/v1`` prefix.

Router Structure:
    - /opengraph: Open Graph metadata parsing
"""

from fastapi import APIRouter

from app.api.v1.opengraph import router as opengraph_router


api_router = APIRouter()

api_router.include_router(
    opengraph_router,
    prefix="/opengraph",
)


__all__ = ["api_router"]
