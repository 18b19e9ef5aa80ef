"""Read operation: cache lookup, fetch, clean, then markdown/metadata/robots side by side."""

from __future__ import annotations

import asyncio
from functools import partial
import logging
from typing import TYPE_CHECKING

import anyio

from crawl_pipeline.domain.models import MetadataOptions, PageMetadata, ReadOptions, ReadResponse, RobotsResult
from crawl_pipeline.errors import FetchAbortedError, PipelineError
from crawl_pipeline.utils.fetch_gateway import ensure_textual
from crawl_pipeline.utils.html_cleaner import CleaningOptions
from crawl_pipeline.utils.markdown_quality import default_markdown, fix_code_block_formatting, has_meaningful_markdown
from crawl_pipeline.utils.metadata_extractor import extract_metadata
from crawl_pipeline.utils.robots_parser import parse_robots, robots_url
from crawl_pipeline.utils.timing import build_metrics, now_ms
from crawl_pipeline.utils.url_normalizer import normalize


if TYPE_CHECKING:
    from crawl_pipeline.domain.context import RequestContext
    from crawl_pipeline.services.cache_service import ResponseCache
    from crawl_pipeline.utils.cancellation import CancellationToken
    from crawl_pipeline.utils.fetch_gateway import FetchGateway
    from crawl_pipeline.utils.html_cleaner import HtmlCleaner
    from crawl_pipeline.utils.markdown_converter import MarkdownConverter


logger = logging.getLogger(__name__)

# Enough metadata for the response's own title/description when full metadata is off.
SUMMARY_METADATA = MetadataOptions(
    title=True,
    description=True,
    language=False,
    canonical=False,
    robots=False,
    author=False,
    keywords=False,
    favicon=False,
    open_graph=False,
    twitter=False,
    is_iframe_allowed=False,
)

READ_CLEANING = CleaningOptions(extract_main_content=True, remove_base64_images=True)


class ReadService:
    def __init__(
        self,
        gateway: FetchGateway,
        cleaner: HtmlCleaner,
        converter: MarkdownConverter,
        cache: ResponseCache,
    ):
        self.gateway = gateway
        self.cleaner = cleaner
        self.converter = converter
        self.cache = cache

    async def read(self, options: ReadOptions, ctx: RequestContext) -> ReadResponse:
        start_ms = now_ms()
        target_url = normalize(options.url)
        options = options.model_copy(update={"url": target_url})

        key = self.cache.key(options, "read")
        cached = await self.cache.get_model("read", key, ReadResponse)
        if cached is not None:
            return cached.model_copy(update={"cached": True, "metrics": build_metrics(start_ms)})

        fetched = ensure_textual(await self.gateway.fetch(target_url, cancel=ctx.cancel))
        base_url = fetched.url
        raw_html = fetched.text

        cleaned = await anyio.to_thread.run_sync(partial(self.cleaner.clean, raw_html, READ_CLEANING, base_url))

        metadata_options = options.metadata_options if options.metadata else SUMMARY_METADATA
        markdown, metadata, robots = await asyncio.gather(
            self._markdown(cleaned.html) if options.markdown else _none(),
            anyio.to_thread.run_sync(partial(extract_metadata, raw_html, base_url, metadata_options, fetched.headers)),
            self._robots(target_url, ctx.cancel) if options.robots else _none(),
        )

        if markdown is not None and not has_meaningful_markdown(markdown):
            logger.debug(f"Markdown for {target_url} has too little content, using fallback")
            markdown = default_markdown(target_url, metadata.title, metadata.description, excerpt=markdown)

        response = ReadResponse(
            target_url=target_url,
            title=metadata.title,
            description=metadata.description,
            markdown=markdown,
            cleaned_html=cleaned.html if options.cleaned_html else None,
            raw_html=raw_html if options.raw_html else None,
            metadata=_non_empty(metadata) if options.metadata else None,
            robots=robots,
        )
        await self.cache.put_model("read", key, response)
        return response.model_copy(update={"metrics": build_metrics(start_ms)})

    async def _markdown(self, html: str) -> str:
        markdown = await anyio.to_thread.run_sync(self.converter.to_markdown, html)
        return fix_code_block_formatting(markdown)

    async def _robots(self, target_url: str, cancel: CancellationToken) -> RobotsResult:
        url = robots_url(target_url)
        try:
            fetched = await self.gateway.fetch(url, cancel=cancel, raise_for_status=False)
        except FetchAbortedError:
            raise
        except PipelineError as e:
            logger.warning(f"robots.txt unavailable for {target_url}: {e}")
            return RobotsResult()
        if not fetched.ok:
            return RobotsResult()
        return parse_robots(fetched.text)


async def _none() -> None:
    return None


def _non_empty(metadata: PageMetadata) -> PageMetadata | None:
    return metadata if metadata.model_dump(exclude_none=True) else None
