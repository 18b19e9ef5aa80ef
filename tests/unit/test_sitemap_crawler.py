"""Unit tests for recursive sitemap resolution."""

import asyncio
import logging

import pytest

from crawl_pipeline.errors import FetchAbortedError, FetchTimeoutError
from crawl_pipeline.utils.cancellation import CancellationToken
from crawl_pipeline.utils.sitemap_crawler import SitemapCrawler, extract_locs


ROOT = "https://example.com/sitemap.xml"


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemapindex(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


@pytest.fixture
def two_child_index(stub_gateway_factory):
    return stub_gateway_factory(
        {
            ROOT: (200, sitemapindex("https://example.com/a.xml", "https://example.com/b.xml")),
            "https://example.com/a.xml": (200, urlset(*(f"https://example.com/a{i}" for i in range(3)))),
            "https://example.com/b.xml": (200, urlset(*(f"https://example.com/b{i}" for i in range(3)))),
        }
    )


class TestExtractLocs:
    def test_entities_are_not_decoded(self):
        assert extract_locs("<loc>https://x.org/?a=1&amp;b=2</loc>") == ["https://x.org/?a=1&amp;b=2"]

    def test_trims_whitespace_and_skips_blank(self):
        assert extract_locs("<loc> https://x.org/a </loc><loc>  </loc>") == ["https://x.org/a"]


class TestSitemapCrawler:
    async def test_plain_urlset(self, stub_gateway_factory):
        gateway = stub_gateway_factory({ROOT: (200, urlset("https://example.com/1", "https://example.com/2"))})
        result = await SitemapCrawler(gateway).parse(ROOT)
        assert result.urls == ["https://example.com/1", "https://example.com/2"]
        assert result.raw_content is not None and "<urlset" in result.raw_content

    async def test_index_recurses_into_children(self, two_child_index):
        result = await SitemapCrawler(two_child_index).parse(ROOT)
        assert result.urls == [f"https://example.com/a{i}" for i in range(3)] + [
            f"https://example.com/b{i}" for i in range(3)
        ]

    async def test_ceiling_stops_discovering_children(self, two_child_index):
        result = await SitemapCrawler(two_child_index, max_urls=3).parse(ROOT)
        assert result.urls == [f"https://example.com/a{i}" for i in range(3)]
        assert "https://example.com/b.xml" not in two_child_index.calls

    async def test_ceiling_truncates_mid_child(self, two_child_index):
        result = await SitemapCrawler(two_child_index, max_urls=4).parse(ROOT)
        assert len(result.urls) == 4
        assert result.urls[-1] == "https://example.com/b0"

    async def test_sitemap_documents_do_not_count_against_ceiling(self, stub_gateway_factory):
        gateway = stub_gateway_factory(
            {
                ROOT: (200, sitemapindex("https://example.com/only.xml")),
                "https://example.com/only.xml": (200, urlset("https://example.com/p")),
            }
        )
        result = await SitemapCrawler(gateway, max_urls=1).parse(ROOT)
        assert result.urls == ["https://example.com/p"]

    async def test_nested_children_below_ceiling_are_all_reached(self, stub_gateway_factory):
        gateway = stub_gateway_factory(
            {
                ROOT: (200, sitemapindex("https://example.com/mid.xml", "https://example.com/c.xml")),
                "https://example.com/mid.xml": (200, sitemapindex("https://example.com/a.xml", "https://example.com/b.xml")),
                "https://example.com/a.xml": (200, urlset("https://example.com/a")),
                "https://example.com/b.xml": (200, urlset("https://example.com/b")),
                "https://example.com/c.xml": (200, urlset("https://example.com/c")),
            }
        )
        result = await SitemapCrawler(gateway, max_urls=3).parse(ROOT)
        assert result.urls == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]

    async def test_ceiling_is_reported_once(self, stub_gateway_factory, caplog):
        gateway = stub_gateway_factory(
            {
                ROOT: (200, sitemapindex("https://example.com/mid.xml", "https://example.com/other.xml")),
                "https://example.com/mid.xml": (200, sitemapindex("https://example.com/a.xml", "https://example.com/b.xml")),
                "https://example.com/a.xml": (200, urlset(*(f"https://example.com/a{i}" for i in range(3)))),
            }
        )
        with caplog.at_level(logging.INFO, logger="crawl_pipeline.utils.sitemap_crawler"):
            result = await SitemapCrawler(gateway, max_urls=3).parse(ROOT)
        assert len(result.urls) == 3
        ceiling_messages = [r for r in caplog.records if r.levelno == logging.INFO and "ceiling" in r.getMessage()]
        assert len(ceiling_messages) == 1
        assert "https://example.com/other.xml" not in gateway.calls

    async def test_cyclic_index_terminates(self, stub_gateway_factory):
        gateway = stub_gateway_factory(
            {
                ROOT: (200, sitemapindex("https://example.com/loop.xml", ROOT)),
                "https://example.com/loop.xml": (200, sitemapindex(ROOT, "https://example.com/leaf.xml")),
                "https://example.com/leaf.xml": (200, urlset("https://example.com/page")),
            }
        )
        result = await SitemapCrawler(gateway).parse(ROOT)
        assert result.urls == ["https://example.com/page"]
        assert gateway.calls.count(ROOT) == 1

    async def test_failed_children_are_empty_branches(self, stub_gateway_factory):
        gateway = stub_gateway_factory(
            {
                ROOT: (
                    200,
                    sitemapindex(
                        "https://example.com/missing.xml",
                        "https://example.com/slow.xml",
                        "https://example.com/ok.xml",
                    ),
                ),
                "https://example.com/slow.xml": FetchTimeoutError("slow", url="https://example.com/slow.xml"),
                "https://example.com/ok.xml": (200, urlset("https://example.com/ok")),
            }
        )
        result = await SitemapCrawler(gateway).parse(ROOT)
        assert result.urls == ["https://example.com/ok"]

    async def test_non_ok_root_gives_empty_result(self, stub_gateway_factory):
        gateway = stub_gateway_factory({ROOT: (500, "oops")})
        result = await SitemapCrawler(gateway).parse(ROOT)
        assert result.urls == []
        assert result.raw_content is None

    async def test_cancellation_aborts_whole_tree(self, two_child_index):
        token = CancellationToken()
        original_fetch = two_child_index.fetch

        async def fetch_then_cancel(url, **kwargs):
            result = await original_fetch(url, **kwargs)
            if url.endswith("a.xml"):
                token.cancel("client went away")
            return result

        two_child_index.fetch = fetch_then_cancel
        with pytest.raises(FetchAbortedError):
            await SitemapCrawler(two_child_index).parse(ROOT, token)
        assert "https://example.com/b.xml" not in two_child_index.calls

    async def test_discover_prefers_robots_declaration(self, stub_gateway_factory):
        gateway = stub_gateway_factory(
            {
                "https://example.com/robots.txt": (200, "User-agent: *\nSitemap: https://example.com/custom.xml\n"),
                "https://example.com/custom.xml": (200, urlset("https://example.com/from-robots")),
                ROOT: (200, urlset("https://example.com/from-default")),
            }
        )
        result = await SitemapCrawler(gateway).discover("https://example.com/")
        assert result.urls == ["https://example.com/from-robots"]

    async def test_discover_falls_back_to_common_paths(self, stub_gateway_factory):
        gateway = stub_gateway_factory({"https://example.com/sitemap_index.xml": (200, urlset("https://example.com/p"))})
        result = await SitemapCrawler(gateway).discover("https://example.com/docs")
        assert result.urls == ["https://example.com/p"]
        assert gateway.calls[:2] == ["https://example.com/robots.txt", ROOT]

    async def test_each_parse_has_its_own_visited_set(self, two_child_index):
        crawler = SitemapCrawler(two_child_index)
        first, second = await asyncio.gather(crawler.parse(ROOT), crawler.parse(ROOT))
        assert first.urls == second.urls
        assert len(first.urls) == 6
