"""
Open Graph API Router Module

Endpoint:
    GET /parse - Fetch a page and return its Open Graph metadata

Query parameters keep the camelCase names used by existing clients
(``userAgent``, ``timeoutInMilliseconds``, ``bitchute``).

Responses:
    200: JSON object. Plain requests return flat key/value pairs; enriched
         requests (``bitchute=true``) return ``og`` plus optional ``video``
         and ``magnet``.
    400: ``text/plain`` body ``Unhandled exception: <message>``
"""

import logging

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings, get_settings
from app.core.dependencies import get_metadata_service
from app.services.metadata_service import MetadataService, ParseRequest


logger = logging.getLogger(__name__)


# =============================================================================
# API ROUTER CONFIGURATION
# =============================================================================

router = APIRouter(
    tags=["opengraph"],
    responses={
        400: {
            "description": "The page could not be fetched or parsed",
            "content": {"text/plain": {"example": "Unhandled exception: <message>"}},
        },
    },
)


ERROR_PREFIX = "Unhandled exception: "


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "/parse",
    response_model=None,
    summary="Parse Open Graph metadata",
    description="Fetch a URL and return its Open Graph (or meta-tag) metadata",
)
async def parse(
    url: Annotated[str, Query(description="Page to fetch")],
    service: Annotated[MetadataService, Depends(get_metadata_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    user_agent: Annotated[
        str | None, Query(alias="userAgent", description="User-Agent sent with the fetch")
    ] = None,
    validate: Annotated[
        bool, Query(description="Report missing required Open Graph properties")
    ] = True,
    timeout_in_milliseconds: Annotated[
        int | None,
        Query(alias="timeoutInMilliseconds", gt=0, description="Fetch timeout in milliseconds"),
    ] = None,
    bitchute: Annotated[
        bool, Query(description="Enrich the result with site-specific video data")
    ] = False,
) -> JSONResponse | PlainTextResponse:
    """
    Parse a page's metadata.

    Results are cached per URL and enrichment flag with a one-hour sliding
    expiration. Any failure is returned as a 400 with the failure message;
    no partial result is returned.
    """
    request = ParseRequest(
        url=url,
        user_agent=settings.default_user_agent if user_agent is None else user_agent,
        validate=validate,
        timeout_ms=timeout_in_milliseconds or settings.default_timeout_ms,
        enriched=bitchute,
    )

    outcome = await service.parse(request)

    if not outcome.ok:
        return PlainTextResponse(
            f"{ERROR_PREFIX}{outcome.error}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    return JSONResponse(content=outcome.response)


__all__ = ["ERROR_PREFIX", "parse", "router"]
