"""Shared test fixtures and configuration."""

from collections.abc import Callable
import os

import httpx
import pytest

from crawl_pipeline.config import Settings
from crawl_pipeline.errors import FetchFailedError
from crawl_pipeline.utils.fetch_gateway import FetchResult


# Complete test environment that overrides every config value the package reads
TEST_ENV = {
    "FETCH_TIMEOUT_MS": "2000",
    "USER_AGENT": "crawl-pipeline-tests/1.0",
    "MAX_VISITED_URLS": "1000",
    "CACHE_TTL_SECONDS": "86400",
    "ENABLE_READ_CACHE": "true",
    "ENABLE_LINKS_CACHE": "true",
    "CACHE_BACKEND": "memory",
    "CACHE_PUT_ATTEMPTS": "3",
    "CACHE_PUT_BACKOFF_MS": "0",
    "RETRY_TIMES": "3",
    "AUTH_BASE_URL": "",
    "AUTH_FALLBACK_URL": "",
    "LOG_LEVEL": "info",
    "LOG_JSON": "false",
    # Proxy settings - ensure they're cleared for tests
    "http_proxy": "",
    "https_proxy": "",
    "all_proxy": "",
    "no_proxy": "",
}


for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset test defaults before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build Settings without reading a developer's .env file."""

    def _factory(**overrides) -> Settings:
        return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]

    return _factory


@pytest.fixture
def mock_client_factory():
    """Build an httpx.AsyncClient whose requests are answered by ``handler``."""
    def _factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return _factory


class StubGateway:
    """FetchGateway lookalike serving canned (status, body) pairs by URL."""

    def __init__(self, pages: dict[str, tuple[int, str] | Exception]):
        self.pages = pages
        self.calls: list[str] = []

    async def fetch(self, url, *, timeout_ms=None, cancel=None, raise_for_status=True):
        self.calls.append(url)
        if cancel is not None:
            cancel.raise_if_cancelled(url)
        page = self.pages.get(url, (404, ""))
        if isinstance(page, Exception):
            raise page
        status, body = page
        result = FetchResult(url=url, status_code=status, text=body, headers={"content-type": "text/html"})
        if not result.ok:
            if raise_for_status:
                raise FetchFailedError(f"HTTP status {status}", url=url, status_code=status)
            return FetchResult(url=url, status_code=status, text="", headers=result.headers)
        return result


@pytest.fixture
def stub_gateway_factory():
    return StubGateway


ARTICLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <title>Field Guide to Pipelines | Example</title>
    <meta name="description" content="How the content pipeline turns pages into markdown.">
    <meta name="keywords" content="crawling, markdown , parsing">
    <meta name="author" content="Docs Team">
    <meta property="og:title" content="Field Guide to Pipelines">
    <meta property="og:image" content="/images/cover.png">
    <meta name="twitter:card" content="summary_large_image">
    <link rel="canonical" href="/guide">
    <link rel="icon" href="/favicon.ico">
    <script>window.analytics = true;</script>
    <style>body { color: red; }</style>
</head>
<body>
    <header><nav><a href="/">Home</a><a href="/about">About</a></nav></header>
    <a href="#main">Skip to Content</a>
    <main>
        <h1>Field Guide to Pipelines</h1>
        <p>The pipeline fetches a page, removes boilerplate, and converts the remaining
        content into <strong>clean markdown</strong> that is easy to read and index.</p>
        <p>Every stage is <em>deterministic</em>, so identical input always yields identical output.</p>
        <pre><code class="language-python">print("hello")</code></pre>
        <p>See the <a href="/docs/intro">introduction</a> or the
        <a href="https://other.example.org/ref">external reference</a>.</p>
        <img src="data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg==" alt="dot">
    </main>
    <aside class="sidebar"><a href="/related">Related</a></aside>
    <footer><p>Copyright Example</p></footer>
</body>
</html>
"""


@pytest.fixture
def article_html() -> str:
    return ARTICLE_HTML
