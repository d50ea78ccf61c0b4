"""
Metadata Service Module

Orchestrates a parse request:

1. Look up the cache key (URL, plus a suffix for enriched requests)
2. On a miss, fetch the page and extract Open Graph data
3. Fall back to ``<title>`` and meta tags when there is no Open Graph data
4. Optionally enrich the result with site-specific video data
5. Cache the JSON-ready result and return it

``parse`` never raises for pipeline failures. It returns a ``ParseOutcome``
carrying either the result or the failure message, and nothing is cached for
a failed request.
"""

import logging

from dataclasses import dataclass, replace
from typing import Any

from bs4 import BeautifulSoup

from app.config import Settings, get_settings
from app.models.metadata import EnrichedMetadata, ParseResult, PlainMetadata
from app.services.errors import MetadataServiceError
from app.services.html_fetcher import HtmlFetcher
from app.services.meta_tag_extractor import extract_meta_tags
from app.services.opengraph_extractor import extract_open_graph, parse_html
from app.services.video_enricher_service import VideoEnricherService
from app.utils.cache import ResponseCache, build_cache_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseRequest:
    """Parameters of a single parse request."""

    url: str
    user_agent: str | None = None
    validate: bool = True
    timeout_ms: int = 10000
    enriched: bool = False


@dataclass
class ParseOutcome:
    """
    Result of a parse request.

    Exactly one of ``response`` and ``error`` is set. ``response`` is the
    JSON-ready mapping sent to the client; ``cached`` tells whether it came
    from the cache.
    """

    response: dict[str, Any] | None = None
    error: str | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, response: dict[str, Any], cached: bool = False) -> "ParseOutcome":
        return cls(response=response, cached=cached)

    @classmethod
    def failure(cls, message: str) -> "ParseOutcome":
        return cls(error=message)


class MetadataService:
    """
    Resolves page metadata with caching.

    Args:
        cache: Shared response cache.
        fetcher: Page fetcher; a default ``HtmlFetcher`` when omitted.
        enricher: Site-specific enricher; built from settings when omitted.
        settings: Application settings; ``get_settings()`` when omitted.
    """

    def __init__(
        self,
        cache: ResponseCache,
        fetcher: HtmlFetcher | None = None,
        enricher: VideoEnricherService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache = cache
        self.fetcher = fetcher or HtmlFetcher()
        self.enricher = enricher or VideoEnricherService(api_url=self.settings.video_api_url)

    async def _load_document(self, request: ParseRequest) -> BeautifulSoup:
        html = await self.fetcher.fetch(request.url, request.user_agent, request.timeout_ms)
        return parse_html(html)

    async def resolve(self, request: ParseRequest) -> ParseResult:
        """
        Fetch and extract metadata without touching the cache.

        Raises:
            MetadataServiceError: If a fetch or API call fails.
        """
        soup = await self._load_document(request)
        values = extract_open_graph(soup, validate=request.validate)

        follow_up = soup
        if self.settings.refetch_for_fallback and (not values or request.enriched):
            follow_up = await self._load_document(request)

        if not values:
            logger.debug("No Open Graph data for %s, falling back to meta tags", request.url)
            values = extract_meta_tags(follow_up)

        if not request.enriched:
            return PlainMetadata(values=values)

        enriched: EnrichedMetadata = await self.enricher.enrich(request.url, values, follow_up)
        return enriched

    async def parse(self, request: ParseRequest) -> ParseOutcome:
        """
        Resolve metadata for ``request``, serving and filling the cache.

        Returns:
            ParseOutcome with the JSON-ready response or the failure message.
        """
        # Key on the URL the fetcher will actually request
        request = replace(request, url=request.url.strip())
        cache_key = build_cache_key(request.url, request.enriched)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Serving %s from cache", request.url)
            return ParseOutcome.success(cached, cached=True)

        try:
            result = await self.resolve(request)
        except MetadataServiceError as e:
            logger.warning("Failed to parse %s: %s", request.url, e)
            return ParseOutcome.failure(str(e))
        except Exception as e:
            logger.exception("Unexpected error parsing %s", request.url)
            return ParseOutcome.failure(str(e) or type(e).__name__)

        response = result.to_response()
        await self.cache.set(cache_key, response)

        logger.info(
            "Parsed %s (%s, %d keys)",
            request.url,
            "enriched" if request.enriched else "plain",
            len(response),
        )
        return ParseOutcome.success(response)


__all__ = ["MetadataService", "ParseOutcome", "ParseRequest"]
