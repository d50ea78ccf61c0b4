"""
Tests for the HTML fetcher.

The target site is replaced by a mocked ``requests.Session``; no network
access is made.
"""

import time

from unittest.mock import Mock, patch

import pytest
import requests

from app.services.errors import FetchError, InvalidURLError
from app.services.html_fetcher import DEFAULT_ACCEPT_HEADER, HtmlFetcher, validate_fetch_url


class TestValidateFetchUrl:
    @pytest.mark.parametrize(
        "url",
        ["http://example.com", "https://example.com/page?q=1", "  https://example.com  "],
    )
    def test_accepts_http_urls(self, url: str) -> None:
        assert validate_fetch_url(url) == url.strip()

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "ftp://example.com/file", "file:///etc/passwd", "example.com", "https://"],
    )
    def test_rejects_unfetchable_urls(self, url: str) -> None:
        with pytest.raises(InvalidURLError):
            validate_fetch_url(url)


class TestFetchSync:
    def test_sends_user_agent_and_timeout(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, open_graph_html: str
    ) -> None:
        body = html_fetcher.fetch_sync("https://example.com/page", "test-agent", 2500)

        assert body == open_graph_html
        mock_session.get.assert_called_once_with(
            "https://example.com/page",
            headers={"User-Agent": "test-agent", "Accept": DEFAULT_ACCEPT_HEADER},
            timeout=2.5,
            stream=True,
        )

    def test_missing_user_agent_is_sent_empty(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        html_fetcher.fetch_sync("https://example.com", None, 1000)

        headers = mock_session.get.call_args.kwargs["headers"]
        assert headers["User-Agent"] == ""

    def test_timeout_raises_fetch_error(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        mock_session.get.side_effect = requests.exceptions.ReadTimeout("read timed out")

        with pytest.raises(FetchError) as exc_info:
            html_fetcher.fetch_sync("https://slow.example.com", "ua", 1500)

        assert str(exc_info.value) == (
            "The request to 'https://slow.example.com' timed out after 1500 milliseconds"
        )

    def test_connection_error_raises_fetch_error(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        mock_session.get.side_effect = requests.exceptions.ConnectionError("Name or service not known")

        with pytest.raises(FetchError, match="Name or service not known"):
            html_fetcher.fetch_sync("https://missing.example.com", "ua", 1000)

    def test_invalid_url_is_not_requested(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        with pytest.raises(InvalidURLError):
            html_fetcher.fetch_sync("javascript:alert(1)", "ua", 1000)

        mock_session.get.assert_not_called()

    def test_error_status_body_is_returned(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        mock_session.get.return_value = response_factory("<title>Not Found</title>", status_code=404)

        assert html_fetcher.fetch_sync("https://example.com/gone", "ua", 1000) == (
            "<title>Not Found</title>"
        )

    def test_utf8_body_without_charset(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        body = "<title>Привет, мир</title>".encode("utf-8")
        mock_session.get.return_value = response_factory(body, content_type="text/html")

        assert html_fetcher.fetch_sync("https://example.com", "ua", 1000) == "<title>Привет, мир</title>"

    def test_declared_charset_is_used(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        body = "<title>Привет</title>".encode("windows-1251")
        mock_session.get.return_value = response_factory(
            body, content_type="text/html; charset=windows-1251"
        )

        assert html_fetcher.fetch_sync("https://example.com", "ua", 1000) == "<title>Привет</title>"

    def test_response_is_closed(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        html_fetcher.fetch_sync("https://example.com", "ua", 1000)

        mock_session.get.return_value.close.assert_called_once()

    def test_uses_requests_without_session(self, response_factory) -> None:
        fetcher = HtmlFetcher()

        with patch("app.services.html_fetcher.requests.get") as mock_get:
            mock_get.return_value = response_factory("<p>ok</p>")
            body = fetcher.fetch_sync("https://example.com", "ua", 3000)

        assert body == "<p>ok</p>"
        assert mock_get.call_args.kwargs["timeout"] == 3.0


class TestFetchAsync:
    @pytest.mark.asyncio
    async def test_fetch_runs_sync_fetch(
        self, html_fetcher: HtmlFetcher, open_graph_html: str
    ) -> None:
        assert await html_fetcher.fetch("https://example.com", "ua", 1000) == open_graph_html

    @pytest.mark.asyncio
    async def test_fetch_propagates_errors(
        self, html_fetcher: HtmlFetcher, mock_session: Mock
    ) -> None:
        mock_session.get.side_effect = requests.exceptions.ConnectTimeout()

        with pytest.raises(FetchError, match="timed out after 500 milliseconds"):
            await html_fetcher.fetch("https://example.com", "ua", 500)


class TestOverallDeadline:
    """The timeout limits the whole request, not each read."""

    @staticmethod
    def _dripping_response(response_factory, chunks: int, delay: float) -> Mock:
        response = response_factory("")

        def drip(chunk_size=1, decode_content=False):
            for _ in range(chunks):
                time.sleep(delay)
                yield b"x"

        response.iter_content = Mock(side_effect=drip)
        return response

    def test_slow_body_times_out_at_deadline(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        # Each chunk arrives well inside a per-read timeout; the body as a whole does not
        mock_session.get.return_value = self._dripping_response(response_factory, chunks=10, delay=0.2)

        started = time.perf_counter()
        with pytest.raises(FetchError) as exc_info:
            html_fetcher.fetch_sync("https://slow.example.com", "ua", 500)
        elapsed = time.perf_counter() - started

        assert elapsed < 1.0
        assert str(exc_info.value) == (
            "The request to 'https://slow.example.com' timed out after 500 milliseconds"
        )

    def test_download_stops_after_deadline(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        response = self._dripping_response(response_factory, chunks=10, delay=0.2)
        mock_session.get.return_value = response

        with pytest.raises(FetchError):
            html_fetcher.fetch_sync("https://slow.example.com", "ua", 300)

        # The worker notices the deadline at the next chunk and releases the connection
        for _ in range(20):
            if response.close.called:
                break
            time.sleep(0.05)
        response.close.assert_called_once()

    def test_slow_headers_time_out(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        def slow_get(*args, **kwargs):
            time.sleep(0.6)
            return response_factory("<p>late</p>")

        mock_session.get.side_effect = slow_get

        started = time.perf_counter()
        with pytest.raises(FetchError, match="timed out after 200 milliseconds"):
            html_fetcher.fetch_sync("https://slow.example.com", "ua", 200)

        assert time.perf_counter() - started < 0.5

    def test_fast_chunked_body_is_joined(
        self, html_fetcher: HtmlFetcher, mock_session: Mock, response_factory
    ) -> None:
        response = response_factory("")
        response.iter_content = Mock(return_value=iter([b"<title>", b"Joined", b"</title>"]))
        mock_session.get.return_value = response

        assert html_fetcher.fetch_sync("https://example.com", "ua", 1000) == "<title>Joined</title>"
