"""
HTML Fetcher Service Module

Retrieves a document by URL with a caller-supplied User-Agent and timeout.
A single attempt is made and the timeout bounds the whole exchange.
Timeouts and network failures propagate as ``FetchError`` so the request
fails as a whole.

HTTP error statuses are not treated as failures: the body of a 404 or 500
page is returned and parsed like any other document.

The blocking ``requests`` call is executed with ``asyncio.to_thread`` so the
event loop keeps serving other requests while a page downloads.
"""

import asyncio
import logging
import time

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from urllib.parse import urlparse

import requests

from requests.compat import chardet
from requests.utils import get_encoding_from_headers

from app.services.errors import FetchError, InvalidURLError


logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({"http", "https"})

DEFAULT_ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

DOWNLOAD_CHUNK_SIZE = 4096

# Downloads run here so the caller can stop waiting at the deadline
_download_pool = ThreadPoolExecutor(max_workers=32, thread_name_prefix="html-fetch")


def validate_fetch_url(url: str) -> str:
    """
    Check that a URL can be fetched and return it stripped.

    Raises:
        InvalidURLError: If the URL is empty, not http(s), or has no host.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidURLError("URL is required")

    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURLError(
            f"Invalid URL '{candidate}': only http and https URLs are supported"
        )
    if not parsed.netloc:
        raise InvalidURLError(f"Invalid URL '{candidate}': missing host")

    return candidate


def _decode_body(body: bytes, headers) -> str:
    """
    Decode a downloaded body.

    A charset declared in ``Content-Type`` is used as given. Otherwise the body
    is read as UTF-8, falling back to the encoding detected from its bytes.
    """
    if not body:
        return ""

    content_type = headers.get("Content-Type", "") or ""
    if "charset" in content_type.lower():
        declared = get_encoding_from_headers(headers)
        try:
            return body.decode(declared, errors="replace")
        except LookupError:
            logger.debug("Unknown charset '%s', detecting encoding instead", declared)

    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        pass

    detected = chardet.detect(body).get("encoding") if chardet is not None else None
    return body.decode(detected or "ISO-8859-1", errors="replace")


class HtmlFetcher:
    """
    Fetches raw HTML over HTTP.

    The whole exchange (connect, headers and body) must finish within the
    caller's timeout. The download runs on a worker thread that the caller
    waits on with that deadline; the worker also checks the deadline between
    body chunks and closes the response once it passes.

    Args:
        session: Optional ``requests.Session`` to issue requests with. A
            module-level ``requests.get`` is used when omitted.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session

    def _get(self, url: str, headers: dict[str, str], timeout: float) -> requests.Response:
        if self._session is not None:
            return self._session.get(url, headers=headers, timeout=timeout, stream=True)
        return requests.get(url, headers=headers, timeout=timeout, stream=True)

    def _download(
        self, url: str, headers: dict[str, str], timeout: float, deadline: float
    ) -> tuple[int, str]:
        response = self._get(url, headers, timeout)
        try:
            chunks: list[bytes] = []
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if time.monotonic() >= deadline:
                    raise requests.exceptions.ReadTimeout(f"Download of '{url}' passed its deadline")
                chunks.append(chunk)
            if time.monotonic() >= deadline:
                raise requests.exceptions.ReadTimeout(f"Download of '{url}' passed its deadline")
            body = b"".join(chunks)
        finally:
            response.close()

        return response.status_code, _decode_body(body, response.headers)

    def fetch_sync(self, url: str, user_agent: str | None, timeout_ms: int) -> str:
        """
        Fetch ``url`` and return its decoded body.

        Args:
            url: Page to retrieve (http or https).
            user_agent: User-Agent header value; sent as an empty string when None.
            timeout_ms: Limit for the entire request in milliseconds.

        Raises:
            InvalidURLError: If the URL cannot be fetched.
            FetchError: On timeout or any network failure.
        """
        url = validate_fetch_url(url)
        headers = {"User-Agent": user_agent or "", "Accept": DEFAULT_ACCEPT_HEADER}
        timeout = timeout_ms / 1000
        deadline = time.monotonic() + timeout
        timeout_message = f"The request to '{url}' timed out after {timeout_ms} milliseconds"

        future = _download_pool.submit(self._download, url, headers, timeout, deadline)
        try:
            status_code, text = future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            future.cancel()
            logger.warning("Timeout after %dms fetching %s", timeout_ms, url)
            raise FetchError(timeout_message) from e
        except requests.exceptions.Timeout as e:
            logger.warning("Timeout after %dms fetching %s", timeout_ms, url)
            raise FetchError(timeout_message) from e
        except requests.exceptions.RequestException as e:
            logger.warning("Request error fetching %s: %s", url, e)
            raise FetchError(str(e) or f"Request to '{url}' failed") from e

        if status_code >= 400:
            logger.info("Fetched %s with status %d, parsing body anyway", url, status_code)

        logger.debug("Fetched %s (%d characters)", url, len(text))
        return text

    async def fetch(self, url: str, user_agent: str | None, timeout_ms: int) -> str:
        """Async wrapper around ``fetch_sync`` running it in a worker thread."""
        return await asyncio.to_thread(self.fetch_sync, url, user_agent, timeout_ms)


__all__ = ["HtmlFetcher", "validate_fetch_url"]
