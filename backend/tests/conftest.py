"""
Pytest Configuration and Test Fixtures for the Open Graph Parser Backend

This module provides shared fixtures:
- Test settings with an in-memory cache backend
- Mocked ``requests`` sessions standing in for the target site and video API
- Sample HTML documents (Open Graph, meta-tag only, magnet, inline video)
- FastAPI TestClient wired to mocked services through dependency overrides
"""

from collections.abc import Callable, Generator
from unittest.mock import Mock

import pytest
import requests

from fastapi.testclient import TestClient
from requests.structures import CaseInsensitiveDict

from app.config import Settings, get_settings
from app.core.dependencies import get_metadata_service, get_response_cache
from app.main import app
from app.services.html_fetcher import HtmlFetcher
from app.services.metadata_service import MetadataService
from app.services.video_enricher_service import VideoEnricherService
from app.utils.cache import MemoryResponseCache


# ==============================================================================
# Pytest Configuration
# ==============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


# ==============================================================================
# Sample Documents
# ==============================================================================

OPEN_GRAPH_HTML = """
<html>
<head>
    <title>Example Page</title>
    <meta property="og:title" content="Example Title">
    <meta property="og:type" content="website">
    <meta property="og:image" content="https://example.com/cover.png">
    <meta property="og:url" content="https://example.com/page">
    <meta name="description" content="Plain description">
</head>
<body></body>
</html>
"""

META_ONLY_HTML = """
<html>
<head>
    <title>  Fallback Title  </title>
    <meta name="description" content="Fallback description">
    <meta name="keywords" content="ignored, words">
</head>
<body></body>
</html>
"""

MAGNET_URI = (
    "magnet:?xt=urn:btih:ABCDEF&dn=My+Video&tr=udp://tracker.one"
    "&tr=udp://tracker.two&as=https://seed.example.com/v.mp4&xs=https://example.com/v.torrent"
)

MAGNET_HTML = f"""
<html>
<head>
    <meta property="og:title" content="Video Title">
    <meta property="og:image" content="https://example.com/thumb.jpg">
</head>
<body>
    <a title="Magnet Link" href="{MAGNET_URI}">Download</a>
    <video><source src="https://cdn.example.com/ignored.mp4"></video>
</body>
</html>
"""

INLINE_VIDEO_HTML = """
<html>
<head>
    <meta property="og:title" content="Inline Video">
    <meta property="og:image" content="https://example.com/inline.jpg">
</head>
<body>
    <video controls><source src="https://cdn.example.com/clip.mp4" type="video/mp4"></video>
</body>
</html>
"""

VIDEO_PAGE_HTML = """
<html>
<head>
    <meta property="og:title" content="API Video">
    <meta property="og:image" content="https://example.com/api.jpg">
</head>
<body></body>
</html>
"""


@pytest.fixture
def open_graph_html() -> str:
    return OPEN_GRAPH_HTML


@pytest.fixture
def meta_only_html() -> str:
    return META_ONLY_HTML


@pytest.fixture
def magnet_uri() -> str:
    return MAGNET_URI


@pytest.fixture
def magnet_html() -> str:
    return MAGNET_HTML


@pytest.fixture
def inline_video_html() -> str:
    return INLINE_VIDEO_HTML


@pytest.fixture
def video_page_html() -> str:
    return VIDEO_PAGE_HTML


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def mock_settings() -> Settings:
    """Settings for an isolated test environment using the in-memory cache."""
    return Settings(
        app_env="testing",
        app_name="OpenGraphParser-Test",
        debug=True,
        cache_backend="memory",
        cache_ttl_seconds=3600,
        redis_url="redis://localhost:6379/1",
        default_user_agent="bastyon",
        default_timeout_ms=10000,
        refetch_for_fallback=False,
        video_api_url="https://api.example.com/video/media",
    )


# ==============================================================================
# HTTP Mocks
# ==============================================================================


def make_response(
    text: str | bytes = "",
    status_code: int = 200,
    content_type: str = "text/html; charset=utf-8",
    json_data: object = None,
) -> Mock:
    """Build a mock ``requests.Response``."""
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = CaseInsensitiveDict({"Content-Type": content_type})
    response.text = text
    response.content = text.encode("utf-8") if isinstance(text, str) else text
    response.iter_content = Mock(side_effect=lambda chunk_size=1, decode_content=False: iter([response.content]))
    response.close = Mock()
    if json_data is None:
        response.json = Mock(side_effect=ValueError("No JSON object could be decoded"))
    else:
        response.json = Mock(return_value=json_data)
    return response


@pytest.fixture
def response_factory() -> Callable[..., Mock]:
    return make_response


@pytest.fixture
def mock_session(open_graph_html: str) -> Mock:
    """
    Mock ``requests.Session`` serving ``open_graph_html`` for every GET.

    Tests replace ``get.return_value`` / ``post.return_value`` to serve other
    documents or API responses.
    """
    session = Mock(spec=requests.Session)
    session.get = Mock(return_value=make_response(open_graph_html))
    session.post = Mock(return_value=make_response(status_code=404))
    return session


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def memory_cache() -> MemoryResponseCache:
    return MemoryResponseCache(ttl_seconds=3600)


@pytest.fixture
def html_fetcher(mock_session: Mock) -> HtmlFetcher:
    return HtmlFetcher(session=mock_session)


@pytest.fixture
def video_enricher(mock_session: Mock, mock_settings: Settings) -> VideoEnricherService:
    return VideoEnricherService(api_url=mock_settings.video_api_url, session=mock_session)


@pytest.fixture
def metadata_service(
    memory_cache: MemoryResponseCache,
    html_fetcher: HtmlFetcher,
    video_enricher: VideoEnricherService,
    mock_settings: Settings,
) -> MetadataService:
    return MetadataService(
        cache=memory_cache,
        fetcher=html_fetcher,
        enricher=video_enricher,
        settings=mock_settings,
    )


# ==============================================================================
# FastAPI Test Client
# ==============================================================================


@pytest.fixture
def test_client(
    metadata_service: MetadataService,
    memory_cache: MemoryResponseCache,
    mock_settings: Settings,
) -> Generator[TestClient, None, None]:
    """
    TestClient whose handlers use the mocked services.

    The application lifespan is not run, so the shared cache is placed on
    ``app.state`` directly.
    """
    app.dependency_overrides[get_settings] = lambda: mock_settings
    app.dependency_overrides[get_response_cache] = lambda: memory_cache
    app.dependency_overrides[get_metadata_service] = lambda: metadata_service
    app.state.response_cache = memory_cache

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
    del app.state.response_cache
