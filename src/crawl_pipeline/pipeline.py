"""Composition root and public entry points for read, links and sitemap operations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
import logging
from typing import TypeVar

import httpx

from crawl_pipeline.config import Settings
from crawl_pipeline.domain.context import RequestContext
from crawl_pipeline.domain.models import LinksOptions, LinksResponse, ReadOptions, ReadResponse, SitemapResult
from crawl_pipeline.domain.result import Ok, capture
from crawl_pipeline.observability.context import get_trace_context, trace_context
from crawl_pipeline.observability.metrics import PIPELINE_REQUESTS, track_latency
from crawl_pipeline.observability.tracing import create_span
from crawl_pipeline.services.auth_client import AuthSessionClient, build_request_context
from crawl_pipeline.services.cache_service import (
    CacheStore,
    FilesystemCacheStore,
    InMemoryCacheStore,
    ResponseCache,
)
from crawl_pipeline.services.links_service import LinksService
from crawl_pipeline.services.read_service import ReadService
from crawl_pipeline.services.retry_middleware import RetryMiddleware
from crawl_pipeline.utils.cancellation import CancellationToken
from crawl_pipeline.utils.fetch_gateway import FetchGateway, create_http_client
from crawl_pipeline.utils.html_cleaner import HtmlCleaner
from crawl_pipeline.utils.markdown_converter import MarkdownConverter
from crawl_pipeline.utils.markdown_translators import DEFAULT_TRANSLATORS
from crawl_pipeline.utils.sitemap_crawler import SitemapCrawler
from crawl_pipeline.utils.url_normalizer import normalize


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContentPipeline:
    """Entry points wrapped in the retry middleware, a span and latency metrics.

    Owns the HTTP client when built by ``build_pipeline``; use it as an async
    context manager (or call ``close``) to release connections.
    """

    def __init__(
        self,
        read_service: ReadService,
        links_service: LinksService,
        sitemap_crawler: SitemapCrawler,
        retry: RetryMiddleware,
        *,
        auth_client: AuthSessionClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.read_service = read_service
        self.links_service = links_service
        self.sitemap_crawler = sitemap_crawler
        self.retry = retry
        self.auth_client = auth_client
        self._http_client = http_client

    async def __aenter__(self) -> ContentPipeline:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def context_for(
        self,
        headers: Mapping[str, str],
        cancel: CancellationToken | None = None,
    ) -> RequestContext:
        return await build_request_context(headers, self.auth_client, cancel)

    async def read(self, options: ReadOptions, ctx: RequestContext | None = None) -> ReadResponse:
        return await self._run("read", ctx, lambda c: self.read_service.read(options, c))

    async def links(self, options: LinksOptions, ctx: RequestContext | None = None) -> LinksResponse:
        return await self._run("links", ctx, lambda c: self.links_service.extract(options, c))

    async def sitemap(
        self,
        url: str,
        ctx: RequestContext | None = None,
        *,
        discover: bool = False,
    ) -> SitemapResult:
        """Flat page URLs from ``url`` (a sitemap), or from the site's sitemap when ``discover`` is set."""

        async def crawl(c: RequestContext) -> SitemapResult:
            target_url = normalize(url)
            if discover:
                return await self.sitemap_crawler.discover(target_url, c.cancel)
            return await self.sitemap_crawler.parse(target_url, c.cancel)

        return await self._run("sitemap", ctx, crawl)

    async def _run(
        self,
        operation: str,
        ctx: RequestContext | None,
        call: Callable[[RequestContext], Awaitable[T]],
    ) -> T:
        ctx = ctx or RequestContext()
        token = trace_context.set({**get_trace_context(), "operation": operation})
        try:
            with create_span(f"pipeline.{operation}", attributes={"authenticated": ctx.is_authenticated}):
                with track_latency(operation):
                    result = await self.retry.run(ctx, lambda c: capture(call(c)))
                outcome = "success" if isinstance(result, Ok) else result.error.code
                PIPELINE_REQUESTS.labels(operation=operation, outcome=outcome).inc()
                return result.unwrap()
        finally:
            trace_context.reset(token)


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "filesystem":
        return FilesystemCacheStore(settings.cache_dir)
    return InMemoryCacheStore()


def build_pipeline(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
    cache_store: CacheStore | None = None,
) -> ContentPipeline:
    """Wire every collaborator explicitly; nothing is module-global."""
    client = http_client or create_http_client(settings)
    gateway = FetchGateway(client, timeout_ms=settings.fetch_timeout_ms)
    cleaner = HtmlCleaner()
    cache = ResponseCache(cache_store or build_cache_store(settings), settings)
    converter = MarkdownConverter(DEFAULT_TRANSLATORS)

    logger.debug(
        "Building pipeline (cache=%s, retry_times=%d, timeout=%dms)",
        settings.cache_backend,
        settings.retry_times,
        settings.fetch_timeout_ms,
    )
    return ContentPipeline(
        read_service=ReadService(gateway, cleaner, converter, cache),
        links_service=LinksService(gateway, cleaner, cache),
        sitemap_crawler=SitemapCrawler(gateway, max_urls=settings.max_visited_urls),
        retry=RetryMiddleware(settings.retry_times),
        auth_client=AuthSessionClient.from_settings(client, settings),
        http_client=client if http_client is None else None,
    )
