"""Content-extraction pipeline: fetch a page or sitemap and turn it into markdown, metadata and links."""

from crawl_pipeline.config import Settings
from crawl_pipeline.domain import (
    LinkExtractionOptions,
    LinksOptions,
    LinksResponse,
    MetadataOptions,
    ReadOptions,
    ReadResponse,
    RequestContext,
    SitemapResult,
)
from crawl_pipeline.errors import (
    FetchAbortedError,
    FetchFailedError,
    FetchTimeoutError,
    InvalidUrlError,
    PipelineError,
)
from crawl_pipeline.pipeline import ContentPipeline, build_pipeline


__all__ = [
    "ContentPipeline",
    "FetchAbortedError",
    "FetchFailedError",
    "FetchTimeoutError",
    "InvalidUrlError",
    "LinkExtractionOptions",
    "LinksOptions",
    "LinksResponse",
    "MetadataOptions",
    "PipelineError",
    "ReadOptions",
    "ReadResponse",
    "RequestContext",
    "Settings",
    "SitemapResult",
    "build_pipeline",
]
