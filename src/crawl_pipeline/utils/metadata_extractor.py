"""Head metadata: title, description, canonical, OpenGraph, Twitter cards, robots, favicon."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from crawl_pipeline.domain.models import MetadataOptions, PageMetadata


logger = logging.getLogger(__name__)

OPEN_GRAPH_FIELDS = {
    "og_title": "og:title",
    "og_description": "og:description",
    "og_image": "og:image",
    "og_url": "og:url",
    "og_type": "og:type",
    "og_site_name": "og:site_name",
}
TWITTER_FIELDS = {
    "twitter_card": "twitter:card",
    "twitter_site": "twitter:site",
    "twitter_creator": "twitter:creator",
    "twitter_title": "twitter:title",
    "twitter_description": "twitter:description",
    "twitter_image": "twitter:image",
}
ABSOLUTE_URL_FIELDS = ("canonical", "favicon", "og_image", "og_url", "twitter_image")


def as_soup(document: str | BeautifulSoup) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document or "", "html.parser")


def _meta_content(soup: BeautifulSoup, key: str) -> str | None:
    """Content of the first ``<meta>`` whose name or property equals ``key`` (case-insensitive)."""
    key = key.lower()
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: lambda value: value is not None and value.lower() == key})
        if isinstance(tag, Tag):
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


def _document_title(soup: BeautifulSoup) -> str | None:
    if soup.title is None:
        return None
    for text in soup.title.strings:
        if text.strip():
            return text.strip()
    return None


def _link_href(soup: BeautifulSoup, predicate) -> str | None:
    for link in soup.find_all("link", href=True):
        rel = [value.lower() for value in (link.get("rel") or [])]
        if predicate(rel) and link["href"].strip():
            return link["href"].strip()
    return None


def _favicon(soup: BeautifulSoup) -> str | None:
    return (
        _link_href(soup, lambda rel: rel == ["icon"])
        or _link_href(soup, lambda rel: rel == ["shortcut", "icon"])
        or _link_href(soup, lambda rel: "apple-touch-icon" in rel)
        or _link_href(soup, lambda rel: "icon" in rel)
    )


def _csp_policies(headers: Mapping[str, str], soup: BeautifulSoup | None) -> list[str]:
    policies = [value for key, value in headers.items() if key.lower() == "content-security-policy"]
    if soup is not None:
        for meta in soup.find_all("meta", attrs={"http-equiv": True}):
            if meta["http-equiv"].strip().lower() == "content-security-policy":
                policies.append(meta.get("content") or "")
    return policies


def is_iframe_allowed(headers: Mapping[str, str] | None, soup: BeautifulSoup | None = None) -> bool:
    """False when X-Frame-Options or a CSP ``frame-ancestors`` directive forbids third-party framing."""
    headers = headers or {}
    frame_options = next((v for k, v in headers.items() if k.lower() == "x-frame-options"), "")
    if frame_options.strip().lower() in {"deny", "sameorigin"}:
        return False

    for policy in _csp_policies(headers, soup):
        for directive in policy.split(";"):
            parts = directive.split()
            if not parts or parts[0].lower() != "frame-ancestors":
                continue
            sources = [source.lower() for source in parts[1:]]
            if not sources or "'none'" in sources or "*" not in sources:
                return False
    return True


def extract_metadata(
    document: str | BeautifulSoup,
    base_url: str,
    options: MetadataOptions | None = None,
    headers: Mapping[str, str] | None = None,
) -> PageMetadata:
    """Build a sparse ``PageMetadata``; disabled or missing fields stay ``None``."""
    options = options or MetadataOptions()
    soup = as_soup(document)
    fields: dict[str, object] = {}

    if options.title:
        fields["title"] = _meta_content(soup, "og:title") or _meta_content(soup, "twitter:title") or _document_title(soup)
    if options.description:
        fields["description"] = _meta_content(soup, "description")
    if options.language:
        html_tag = soup.find("html")
        if isinstance(html_tag, Tag) and html_tag.get("lang"):
            fields["language"] = html_tag["lang"].strip() or None
    if options.canonical:
        fields["canonical"] = _link_href(soup, lambda rel: "canonical" in rel)
    if options.robots:
        fields["robots"] = _meta_content(soup, "robots")
    if options.author:
        fields["author"] = _meta_content(soup, "author")
    if options.keywords:
        raw = _meta_content(soup, "keywords")
        keywords = [kw.strip() for kw in raw.split(",") if kw.strip()] if raw else []
        fields["keywords"] = keywords or None
    if options.favicon:
        fields["favicon"] = _favicon(soup)
    if options.open_graph:
        for field, key in OPEN_GRAPH_FIELDS.items():
            fields[field] = _meta_content(soup, key)
    if options.twitter:
        for field, key in TWITTER_FIELDS.items():
            fields[field] = _meta_content(soup, key)
    if options.is_iframe_allowed:
        fields["is_iframe_allowed"] = is_iframe_allowed(headers, soup)

    for field in ABSOLUTE_URL_FIELDS:
        if fields.get(field):
            fields[field] = urljoin(base_url, str(fields[field]))

    return PageMetadata(**{key: value for key, value in fields.items() if value is not None})
