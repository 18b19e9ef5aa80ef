"""Pydantic records exchanged between pipeline stages and returned to callers.

Every record is frozen: options are passed by value into the pipeline and never
mutated in place; stages derive new values with ``model_copy(update=...)``.
Serialization uses camelCase aliases and drops ``None`` fields so responses stay
sparse (unrequested or missing fields are absent rather than empty strings).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and ``None`` fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Options


class MetadataOptions(CamelModel):
    """Per-field switches for metadata extraction; everything is on by default."""

    title: bool = True
    description: bool = True
    language: bool = True
    canonical: bool = True
    robots: bool = True
    author: bool = True
    keywords: bool = True
    favicon: bool = True
    open_graph: bool = True
    twitter: bool = True
    is_iframe_allowed: bool = True


class ReadOptions(CamelModel):
    url: str = Field(min_length=1)
    markdown: bool = True
    cleaned_html: bool = False
    metadata: bool = True
    robots: bool = False
    raw_html: bool = False
    metadata_options: MetadataOptions = Field(default_factory=MetadataOptions)


class LinkExtractionOptions(CamelModel):
    include_external: bool = False
    include_media: bool = False
    remove_query_params: bool = True


class LinksOptions(CamelModel):
    url: str = Field(min_length=1)
    tree: bool = True
    link_extraction_options: LinkExtractionOptions = Field(default_factory=LinkExtractionOptions)


# Extracted data


class PageMetadata(CamelModel):
    title: str | None = None
    description: str | None = None
    language: str | None = None
    canonical: str | None = None
    robots: str | None = None
    author: str | None = None
    keywords: list[str] | None = None
    favicon: str | None = None

    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    og_url: str | None = None
    og_type: str | None = None
    og_site_name: str | None = None

    twitter_card: str | None = None
    twitter_site: str | None = None
    twitter_creator: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    twitter_image: str | None = None

    is_iframe_allowed: bool | None = None


class LinkNode(CamelModel):
    url: str
    text: str = ""
    is_external: bool = False
    is_media: bool = False


class LinkTreeNode(CamelModel):
    """Internal links grouped by URL path segment."""

    url: str
    name: str
    children: list[LinkTreeNode] = Field(default_factory=list)


class SitemapResult(CamelModel):
    urls: list[str] = Field(default_factory=list)
    raw_content: str | None = None


class RobotsGroup(CamelModel):
    user_agents: list[str] = Field(default_factory=list)
    allow: list[str] = Field(default_factory=list)
    disallow: list[str] = Field(default_factory=list)
    crawl_delay: float | None = None


class RobotsResult(CamelModel):
    groups: list[RobotsGroup] = Field(default_factory=list)
    sitemaps: list[str] = Field(default_factory=list)


class Metrics(CamelModel):
    duration_ms: float
    readable_duration: str
    start_time_ms: float
    end_time_ms: float


# Responses


class ReadResponse(CamelModel):
    success: bool = True
    cached: bool = False
    target_url: str
    title: str | None = None
    description: str | None = None
    markdown: str | None = None
    cleaned_html: str | None = None
    raw_html: str | None = None
    metadata: PageMetadata | None = None
    robots: RobotsResult | None = None
    metrics: Metrics | None = None


class LinksResponse(CamelModel):
    success: bool = True
    cached: bool = False
    target_url: str
    title: str | None = None
    description: str | None = None
    links: list[LinkNode] = Field(default_factory=list)
    tree: LinkTreeNode | None = None
    metrics: Metrics | None = None
