"""Command line entry point: run one pipeline operation and print the JSON response."""

from __future__ import annotations

import argparse
import asyncio
import sys

import orjson

from crawl_pipeline.config import Settings
from crawl_pipeline.domain.models import LinkExtractionOptions, LinksOptions, ReadOptions
from crawl_pipeline.errors import InvalidUrlError, PipelineError
from crawl_pipeline.observability.logging import configure_logging
from crawl_pipeline.pipeline import ContentPipeline, build_pipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crawl-pipeline", description="Fetch a page or sitemap and extract content.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    read = subparsers.add_parser("read", help="Convert a page to markdown with metadata.")
    read.add_argument("url")
    read.add_argument("--no-markdown", action="store_true", help="Skip markdown conversion.")
    read.add_argument("--no-metadata", action="store_true", help="Skip metadata extraction.")
    read.add_argument("--cleaned-html", action="store_true", help="Include the cleaned main-content HTML.")
    read.add_argument("--raw-html", action="store_true", help="Include the fetched HTML.")
    read.add_argument("--robots", action="store_true", help="Fetch and parse robots.txt for the origin.")

    links = subparsers.add_parser("links", help="List links found on a page.")
    links.add_argument("url")
    links.add_argument("--include-external", action="store_true", help="Keep links to other hosts.")
    links.add_argument("--include-media", action="store_true", help="Keep image/video/audio/document links.")
    links.add_argument("--keep-query", action="store_true", help="Do not strip query strings.")
    links.add_argument("--no-tree", action="store_true", help="Skip the path tree.")

    sitemap = subparsers.add_parser("sitemap", help="Resolve a sitemap into page URLs.")
    sitemap.add_argument("url")
    sitemap.add_argument("--discover", action="store_true", help="Treat URL as a site and locate its sitemap.")

    return parser


async def run(args: argparse.Namespace, pipeline: ContentPipeline) -> dict:
    if args.command == "read":
        options = ReadOptions(
            url=args.url,
            markdown=not args.no_markdown,
            metadata=not args.no_metadata,
            cleaned_html=args.cleaned_html,
            raw_html=args.raw_html,
            robots=args.robots,
        )
        return (await pipeline.read(options)).to_payload()
    if args.command == "links":
        options = LinksOptions(
            url=args.url,
            tree=not args.no_tree,
            link_extraction_options=LinkExtractionOptions(
                include_external=args.include_external,
                include_media=args.include_media,
                remove_query_params=not args.keep_query,
            ),
        )
        return (await pipeline.links(options)).to_payload()
    return (await pipeline.sitemap(args.url, discover=args.discover)).to_payload()


async def _main(args: argparse.Namespace, settings: Settings) -> int:
    async with build_pipeline(settings) as pipeline:
        try:
            payload = await run(args, pipeline)
        except PipelineError as e:
            sys.stdout.write(orjson.dumps(e.to_dict(), option=orjson.OPT_INDENT_2).decode() + "\n")
            return 2 if isinstance(e, InvalidUrlError) else 1
    sys.stdout.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode() + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()  # type: ignore[call-arg]
    configure_logging(settings.log_level, settings.log_json)
    return asyncio.run(_main(args, settings))


if __name__ == "__main__":
    sys.exit(main())
