"""Domain layer: records, result values and request context. No network or storage here."""

from crawl_pipeline.domain.context import AuthSession, RequestContext
from crawl_pipeline.domain.models import (
    LinkExtractionOptions,
    LinkNode,
    LinksOptions,
    LinksResponse,
    LinkTreeNode,
    MetadataOptions,
    Metrics,
    PageMetadata,
    ReadOptions,
    ReadResponse,
    RobotsGroup,
    RobotsResult,
    SitemapResult,
)
from crawl_pipeline.domain.result import Err, Ok, Result, capture


__all__ = [
    "AuthSession",
    "Err",
    "LinkExtractionOptions",
    "LinkNode",
    "LinkTreeNode",
    "LinksOptions",
    "LinksResponse",
    "MetadataOptions",
    "Metrics",
    "Ok",
    "PageMetadata",
    "ReadOptions",
    "ReadResponse",
    "RequestContext",
    "Result",
    "RobotsGroup",
    "RobotsResult",
    "SitemapResult",
    "capture",
]
