"""Unit tests for the command line entry point."""

import httpx
import orjson
import pytest

from crawl_pipeline import build_pipeline
from crawl_pipeline import cli as cli_module
from crawl_pipeline.cli import build_parser, run


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/sitemap.xml":
        return httpx.Response(
            200,
            text="<urlset><url><loc>https://example.com/a</loc></url></urlset>",
            headers={"Content-Type": "application/xml"},
        )
    return httpx.Response(
        200,
        text='<html><head><title>Tiny</title></head><body><main><p>Hi <a href="/next">next</a></p></main></body></html>',
        headers={"Content-Type": "text/html"},
    )


@pytest.fixture
async def pipeline(settings_factory, mock_client_factory):
    async with mock_client_factory(handler) as client:
        yield build_pipeline(settings_factory(), http_client=client)


class TestParser:
    def test_read_flags(self):
        args = build_parser().parse_args(["read", "example.com", "--no-markdown", "--robots"])
        assert args.command == "read"
        assert args.no_markdown and args.robots
        assert not args.raw_html

    def test_subcommand_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestRun:
    async def test_read_payload(self, pipeline):
        payload = await run(build_parser().parse_args(["read", "example.com/page", "--cleaned-html"]), pipeline)
        assert payload["targetUrl"] == "https://example.com/page"
        assert payload["title"] == "Tiny"
        assert "cleanedHtml" in payload

    async def test_links_payload(self, pipeline):
        payload = await run(build_parser().parse_args(["links", "https://example.com/page", "--no-tree"]), pipeline)
        assert [link["url"] for link in payload["links"]] == ["https://example.com/next"]
        assert "tree" not in payload

    async def test_sitemap_payload(self, pipeline):
        payload = await run(build_parser().parse_args(["sitemap", "https://example.com/sitemap.xml"]), pipeline)
        assert payload["urls"] == ["https://example.com/a"]


class TestMain:
    @pytest.fixture(autouse=True)
    def offline_pipeline(self, monkeypatch, settings_factory):
        monkeypatch.setattr(cli_module, "configure_logging", lambda *args, **kwargs: None)

        def fake_build_pipeline(settings):
            return build_pipeline(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        monkeypatch.setattr(cli_module, "build_pipeline", fake_build_pipeline)

    def test_prints_json_and_exits_zero(self, capsys):
        assert cli_module.main(["sitemap", "https://example.com/sitemap.xml"]) == 0
        assert orjson.loads(capsys.readouterr().out)["urls"] == ["https://example.com/a"]

    def test_invalid_url_exits_two(self, capsys):
        assert cli_module.main(["read", "not a url"]) == 2
        error = orjson.loads(capsys.readouterr().out)
        assert error["success"] is False
        assert error["code"] == "invalid_url"
