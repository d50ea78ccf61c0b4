"""
Video Enricher Service Module

Adds a downloadable media reference to the Open Graph data of a video page.
Strategies are tried in order and the first one that yields data wins:

1. Magnet anchor: ``<a title="Magnet Link" href="magnet:?...">``. The magnet
   parameters ``xt``, ``dn``, ``tr``, ``as`` and ``xs`` are copied into the
   video reference and the raw URI is returned as ``magnet``.
2. Inline source: ``<video><source src="...">``.
3. Video metadata API: a video id is taken from a ``/video/<id>`` URL path
   (or the page's canonical link) and POSTed to the metadata endpoint; its
   ``media_url`` becomes the media reference.

When no strategy yields data the result holds only ``og``.
"""

import asyncio
import json
import logging

from typing import Any
from urllib.parse import urljoin, urlparse

import requests

from bs4 import BeautifulSoup

from app.models.metadata import EnrichedMetadata, VideoRef
from app.services.errors import VideoAPIError
from app.services.opengraph_extractor import parse_html


logger = logging.getLogger(__name__)

MAGNET_LINK_TITLE = "Magnet Link"
MAGNET_PREFIX = "magnet"
MAGNET_FIELDS: tuple[str, ...] = ("xt", "dn", "tr", "as", "xs")
VIDEO_PATH_SEGMENT = "video"

DEFAULT_VIDEO_API_URL = "https://api.bitchute.com/api/beta/video/media"
DEFAULT_API_TIMEOUT_MS = 10000
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


# =============================================================================
# PARSING HELPERS
# =============================================================================


def parse_magnet_parameters(magnet_uri: str) -> dict[str, str]:
    """
    Split a magnet URI into its parameters.

    Everything after the first ``?`` is split on ``&`` and each pair on its
    first ``=``. When a name repeats the last occurrence wins. Values are
    returned as they appear in the URI (no percent-decoding); a pair without
    ``=`` maps to an empty string.

    Example:
        >>> parse_magnet_parameters("magnet:?xt=urn:btih:ABC&tr=a&tr=b")
        {'xt': 'urn:btih:ABC', 'tr': 'b'}
    """
    query = magnet_uri.split("?", 1)[1] if "?" in magnet_uri else magnet_uri

    params: dict[str, str] = {}
    for pair in query.split("&"):
        name, _, value = pair.partition("=")
        params[name] = value
    return params


def extract_video_id(url: str | None) -> str | None:
    """
    Return the id from a ``/video/<id>`` path, or None for any other path.

    Only the first two path segments are inspected, so
    ``https://host/video/abc123/`` yields ``abc123``.
    """
    if not url:
        return None

    segments = urlparse(url).path.split("/")
    if len(segments) > 2 and segments[1] == VIDEO_PATH_SEGMENT and segments[2]:
        return segments[2]
    return None


def _video_ref(og_data: dict[str, str], **fields: str) -> VideoRef:
    return VideoRef(
        title=og_data.get("og:title", ""),
        preview=og_data.get("og:image", ""),
        **fields,
    )


# =============================================================================
# VIDEO ENRICHER SERVICE CLASS
# =============================================================================


class VideoEnricherService:
    """
    Locates media references on video pages.

    Args:
        api_url: Video metadata endpoint used by the API lookup strategy.
        session: Optional ``requests.Session`` for the API call.
        api_timeout_ms: Timeout for the API call in milliseconds.

    Example:
        >>> service = VideoEnricherService()
        >>> result = await service.enrich(url, og_data, html)
        >>> result.to_response()
        {"og": {...}, "video": {"as": "...", "title": "...", "preview": "..."}}
    """

    def __init__(
        self,
        api_url: str = DEFAULT_VIDEO_API_URL,
        session: requests.Session | None = None,
        api_timeout_ms: int = DEFAULT_API_TIMEOUT_MS,
    ) -> None:
        self.api_url = api_url
        self.api_timeout_ms = api_timeout_ms
        self._session = session

    # =========================================================================
    # STRATEGIES
    # =========================================================================

    def find_magnet(self, soup: BeautifulSoup, og_data: dict[str, str]) -> tuple[VideoRef, str] | None:
        """Build a video reference from the page's magnet anchor, if any."""
        anchor = soup.find("a", attrs={"title": MAGNET_LINK_TITLE})
        if anchor is None:
            return None

        magnet_uri = anchor.get("href")
        if not magnet_uri or not magnet_uri.startswith(MAGNET_PREFIX):
            return None

        params = parse_magnet_parameters(magnet_uri)
        fields = {name: params.get(name, "") for name in MAGNET_FIELDS}
        fields["as_"] = fields.pop("as")

        logger.debug("Found magnet link with xt=%s", fields["xt"])
        return _video_ref(og_data, **fields), magnet_uri

    def find_inline_source(self, soup: BeautifulSoup, og_data: dict[str, str]) -> VideoRef | None:
        """Build a video reference from the first ``<video><source>`` element."""
        source = soup.select_one("video > source")
        src = source.get("src") if source is not None else None
        if src is None:
            return None

        logger.debug("Found inline video source")
        return _video_ref(og_data, as_=src)

    def find_video_id(self, url: str, soup: BeautifulSoup) -> str | None:
        """Take the video id from the request URL, falling back to the canonical link."""
        video_id = extract_video_id(url)
        if video_id is not None:
            return video_id

        canonical = soup.find("link", rel="canonical")
        href = canonical.get("href") if canonical is not None else None
        if not href:
            return None
        return extract_video_id(urljoin(url, href))

    def request_media_url(self, video_id: str) -> str | None:
        """
        Ask the video metadata API for the media URL of ``video_id``.

        Returns None for a non-success status, a body that is not a JSON
        object, or a response without ``media_url``.

        Raises:
            VideoAPIError: If the API cannot be reached or times out.
        """
        body = json.dumps({"video_id": video_id})
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        timeout = self.api_timeout_ms / 1000
        post = self._session.post if self._session is not None else requests.post

        try:
            response = post(self.api_url, data=body.encode("utf-8"), headers=headers, timeout=timeout)
        except requests.exceptions.RequestException as e:
            logger.warning("Video metadata request for %s failed: %s", video_id, e)
            raise VideoAPIError(str(e) or "Video metadata request failed") from e

        if not response.ok:
            logger.info(
                "Video metadata API returned %d for video %s", response.status_code, video_id
            )
            return None

        try:
            payload: Any = response.json()
        except ValueError:
            logger.warning("Video metadata API returned a non-JSON body for video %s", video_id)
            return None

        if not isinstance(payload, dict) or payload.get("media_url") is None:
            return None
        return str(payload["media_url"])

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def enrich(
        self,
        url: str,
        og_data: dict[str, str],
        html: str | BeautifulSoup,
    ) -> EnrichedMetadata:
        """
        Resolve a media reference for ``url``.

        Args:
            url: The page URL that was requested.
            og_data: Metadata already extracted from the page.
            html: The page document (raw HTML or parsed soup).

        Returns:
            EnrichedMetadata with ``og`` always set and ``video``/``magnet``
            filled by the first strategy that succeeds.
        """
        soup = parse_html(html)
        result = EnrichedMetadata(og=og_data)

        magnet = self.find_magnet(soup, og_data)
        if magnet is not None:
            result.video, result.magnet = magnet
            return result

        inline = self.find_inline_source(soup, og_data)
        if inline is not None:
            result.video = inline
            return result

        video_id = self.find_video_id(url, soup)
        if video_id is None:
            logger.debug("No media reference or video id found for %s", url)
            return result

        media_url = await asyncio.to_thread(self.request_media_url, video_id)
        if media_url is not None:
            result.video = _video_ref(og_data, as_=media_url)

        return result


__all__ = [
    "VideoEnricherService",
    "extract_video_id",
    "parse_magnet_parameters",
]
