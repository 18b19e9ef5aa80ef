"""Links operation: cache lookup, fetch, light clean, ordered link list and optional tree."""

from __future__ import annotations

from functools import partial
import logging
from typing import TYPE_CHECKING

import anyio

from crawl_pipeline.domain.models import LinksOptions, LinksResponse
from crawl_pipeline.services.read_service import SUMMARY_METADATA
from crawl_pipeline.utils.fetch_gateway import ensure_textual
from crawl_pipeline.utils.html_cleaner import CleaningOptions
from crawl_pipeline.utils.link_extractor import build_link_tree, extract_links
from crawl_pipeline.utils.metadata_extractor import extract_metadata
from crawl_pipeline.utils.timing import build_metrics, now_ms
from crawl_pipeline.utils.url_normalizer import normalize


if TYPE_CHECKING:
    from crawl_pipeline.domain.context import RequestContext
    from crawl_pipeline.services.cache_service import ResponseCache
    from crawl_pipeline.utils.fetch_gateway import FetchGateway
    from crawl_pipeline.utils.html_cleaner import HtmlCleaner


logger = logging.getLogger(__name__)

# Navigation is where most links live, so keep the whole page.
LINKS_CLEANING = CleaningOptions(extract_main_content=False, remove_base64_images=True)


class LinksService:
    def __init__(self, gateway: FetchGateway, cleaner: HtmlCleaner, cache: ResponseCache):
        self.gateway = gateway
        self.cleaner = cleaner
        self.cache = cache

    async def extract(self, options: LinksOptions, ctx: RequestContext) -> LinksResponse:
        start_ms = now_ms()
        target_url = normalize(options.url)
        options = options.model_copy(update={"url": target_url})

        key = self.cache.key(options, "links")
        cached = await self.cache.get_model("links", key, LinksResponse)
        if cached is not None:
            return cached.model_copy(update={"cached": True, "metrics": build_metrics(start_ms)})

        fetched = ensure_textual(await self.gateway.fetch(target_url, cancel=ctx.cancel))
        base_url = fetched.url

        cleaned = await anyio.to_thread.run_sync(partial(self.cleaner.clean, fetched.text, LINKS_CLEANING, base_url))
        links = await anyio.to_thread.run_sync(
            partial(extract_links, cleaned.html, base_url, options.link_extraction_options)
        )
        summary = extract_metadata(fetched.text, base_url, SUMMARY_METADATA)

        response = LinksResponse(
            target_url=target_url,
            title=summary.title,
            description=summary.description,
            links=links,
            tree=build_link_tree(target_url, links) if options.tree else None,
        )
        logger.info(f"Extracted {len(links)} links from {target_url}")
        await self.cache.put_model("links", key, response)
        return response.model_copy(update={"metrics": build_metrics(start_ms)})
