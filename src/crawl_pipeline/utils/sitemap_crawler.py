"""Best-effort recursive sitemap resolution.

``<loc>`` values are pulled out with a regular expression rather than an XML
parser, so entities such as ``&amp;`` are returned exactly as written in the
source. Every recursive step receives the visited set and the remaining URL
budget and hands back what it found together with the updated visited set.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from crawl_pipeline.domain.models import SitemapResult
from crawl_pipeline.errors import FetchAbortedError, PipelineError
from crawl_pipeline.observability.tracing import create_span
from crawl_pipeline.utils.cancellation import CancellationToken
from crawl_pipeline.utils.robots_parser import parse_robots, robots_url


if TYPE_CHECKING:
    from crawl_pipeline.utils.fetch_gateway import FetchGateway


logger = logging.getLogger(__name__)

MAX_VISITED_URLS_LIMIT = 1000
SITEMAP_INDEX_MARKER = "<sitemapindex"
COMMON_SITEMAP_PATHS = ("/sitemap.xml", "/sitemap_index.xml")

_LOC_RE = re.compile(r"<loc>([^<]+)</loc>")


def extract_locs(content: str) -> list[str]:
    return [loc.strip() for loc in _LOC_RE.findall(content) if loc.strip()]


class SitemapCrawler:
    def __init__(self, gateway: FetchGateway, *, max_urls: int = MAX_VISITED_URLS_LIMIT):
        self._gateway = gateway
        self.max_urls = max_urls

    async def parse(self, sitemap_url: str, cancel: CancellationToken | None = None) -> SitemapResult:
        """Resolve ``sitemap_url`` into page URLs.

        Fetch failures at any depth only empty that branch. Cancellation is the
        exception: it aborts the whole tree and nothing partial is returned.
        """
        cancel = cancel or CancellationToken()
        with create_span("sitemap.parse", attributes={"sitemap.url": sitemap_url}):
            content = await self._fetch(sitemap_url, cancel)
            if content is None:
                return SitemapResult()
            urls, visited = await self._expand(content, frozenset({sitemap_url}), self.max_urls, cancel)

        if len(urls) >= self.max_urls:
            logger.info(f"Sitemap URL ceiling of {self.max_urls} reached for {sitemap_url}")

        logger.info(f"Sitemap {sitemap_url}: {len(urls)} URLs from {len(visited)} sitemap(s)")
        return SitemapResult(urls=list(urls), raw_content=content)

    async def discover(self, base_url: str, cancel: CancellationToken | None = None) -> SitemapResult:
        """Try robots.txt sitemap declarations, then the conventional locations, one at a time."""
        cancel = cancel or CancellationToken()
        parts = urlsplit(base_url)
        origin = f"{parts.scheme}://{parts.netloc}"

        candidates: list[str] = []
        robots_content = await self._fetch(robots_url(base_url), cancel)
        if robots_content:
            candidates.extend(parse_robots(robots_content).sitemaps)
        candidates.extend(f"{origin}{path}" for path in COMMON_SITEMAP_PATHS)

        for candidate in dict.fromkeys(candidates):
            result = await self.parse(candidate, cancel)
            if result.urls:
                return result
        logger.info(f"No sitemap found for {base_url}")
        return SitemapResult()

    async def _parse_child(
        self,
        url: str,
        visited: frozenset[str],
        budget: int,
        cancel: CancellationToken,
    ) -> tuple[tuple[str, ...], frozenset[str]]:
        if url in visited or budget <= 0:
            return (), visited
        visited = visited | {url}
        content = await self._fetch(url, cancel)
        if content is None:
            return (), visited
        return await self._expand(content, visited, budget, cancel)

    async def _expand(
        self,
        content: str,
        visited: frozenset[str],
        budget: int,
        cancel: CancellationToken,
    ) -> tuple[tuple[str, ...], frozenset[str]]:
        locs = extract_locs(content)
        if SITEMAP_INDEX_MARKER not in content:
            return tuple(locs[:budget]), visited

        urls: tuple[str, ...] = ()
        for child in locs:
            remaining = budget - len(urls)
            if remaining <= 0:
                logger.debug("URL budget spent; skipping remaining child sitemaps")
                break
            cancel.raise_if_cancelled(child)
            child_urls, visited = await self._parse_child(child, visited, remaining, cancel)
            urls += child_urls
        return urls, visited

    async def _fetch(self, url: str, cancel: CancellationToken) -> str | None:
        try:
            result = await self._gateway.fetch(url, cancel=cancel, raise_for_status=False)
        except FetchAbortedError:
            raise
        except PipelineError as e:
            logger.warning(f"Sitemap fetch failed for {url}: {e}")
            return None
        if not result.ok:
            logger.warning(f"Sitemap fetch for {url} returned HTTP {result.status_code}")
            return None
        return result.text
