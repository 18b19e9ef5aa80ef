"""Ordered, deduplicated link extraction and path-based link trees."""

from __future__ import annotations

import logging
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from crawl_pipeline.domain.models import LinkExtractionOptions, LinkNode, LinkTreeNode
from crawl_pipeline.utils.metadata_extractor import as_soup


logger = logging.getLogger(__name__)

MEDIA_TAGS = {"img": "src", "video": "src", "audio": "src", "source": "src"}

MEDIA_EXTENSIONS = {
    "images": (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp", ".avif", ".tiff"),
    "videos": (".mp4", ".webm", ".mov", ".avi", ".mkv", ".m4v", ".ogv"),
    "audio": (".mp3", ".wav", ".ogg", ".flac", ".m4a", ".aac"),
    "documents": (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".zip", ".csv"),
}
_ALL_MEDIA_EXTENSIONS = tuple(ext for group in MEDIA_EXTENSIONS.values() for ext in group)

FRAMEWORK_PATH_MARKERS = (
    "/_next/",
    "/_nuxt/",
    "/__nuxt/",
    "/static/js/",
    "/static/css/",
    "/wp-content/",
    "/wp-includes/",
    "/wp-json/",
    "/cdn-cgi/",
    "/assets/js/",
    "/assets/css/",
)
SKIPPED_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:", "blob:")


def normalize_link(href: str, base_url: str, *, remove_query_params: bool = False) -> str | None:
    """Resolve ``href`` against ``base_url`` and canonicalize it; None for non-http(s) targets."""
    href = (href or "").strip()
    if not href or href.lower().startswith(SKIPPED_PREFIXES):
        return None
    url, _fragment = urldefrag(urljoin(base_url, href))
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    path = parts.path.rstrip("/") or "/"
    query = "" if remove_query_params else parts.query
    return urlunsplit((parts.scheme, parts.netloc.lower(), path, query, ""))


def is_media_url(url: str) -> bool:
    return urlsplit(url).path.lower().endswith(_ALL_MEDIA_EXTENSIONS)


def is_framework_resource(url: str) -> bool:
    path = urlsplit(url).path.lower()
    return any(marker in path for marker in FRAMEWORK_PATH_MARKERS)


def _link_text(element: Tag) -> str:
    if element.name == "a":
        text = " ".join(element.get_text(" ", strip=True).split())
        return text or (element.get("title") or element.get("aria-label") or "").strip()
    return (element.get("alt") or element.get("title") or "").strip()


def extract_links(
    document: str | BeautifulSoup,
    base_url: str,
    options: LinkExtractionOptions | None = None,
) -> list[LinkNode]:
    """Walk anchors (and media when asked) in document order.

    External means the resolved host differs from ``base_url``'s host. The first
    occurrence of each final URL wins, along with its text.
    """
    options = options or LinkExtractionOptions()
    soup = as_soup(document)
    source_host = (urlsplit(base_url).hostname or "").lower()

    wanted = ["a", *MEDIA_TAGS] if options.include_media else ["a"]
    seen: set[str] = set()
    links: list[LinkNode] = []

    for element in soup.find_all(wanted):
        attr = "href" if element.name == "a" else MEDIA_TAGS[element.name]
        raw = element.get(attr)
        if not isinstance(raw, str):
            continue
        url = normalize_link(raw, base_url, remove_query_params=options.remove_query_params)
        if url is None or url in seen or is_framework_resource(url):
            continue

        is_media = element.name in MEDIA_TAGS or is_media_url(url)
        if is_media and not options.include_media:
            continue
        is_external = (urlsplit(url).hostname or "") != source_host
        if is_external and not options.include_external:
            continue

        seen.add(url)
        links.append(LinkNode(url=url, text=_link_text(element), is_external=is_external, is_media=is_media))

    logger.debug("Extracted %d links from %s", len(links), base_url)
    return links


def build_link_tree(root_url: str, links: list[LinkNode]) -> LinkTreeNode:
    """Group same-host, non-media links under their path segments, in document order."""
    root = urlsplit(root_url)
    origin = f"{root.scheme}://{root.netloc}"
    tree: dict = {"url": f"{origin}/", "name": root.hostname or root.netloc, "children": {}}

    for link in links:
        if link.is_external or link.is_media:
            continue
        parts = urlsplit(link.url)
        if parts.netloc != root.netloc:
            continue
        segments = [segment for segment in parts.path.split("/") if segment]
        node = tree
        path = ""
        for index, segment in enumerate(segments):
            path = f"{path}/{segment}"
            is_leaf = index == len(segments) - 1
            key = f"{segment}?{parts.query}" if is_leaf and parts.query else segment
            url = link.url if is_leaf else f"{origin}{path}"
            node = node["children"].setdefault(key, {"url": url, "name": key, "children": {}})
    return _freeze(tree)


def _freeze(node: dict) -> LinkTreeNode:
    return LinkTreeNode(
        url=node["url"],
        name=node["name"],
        children=[_freeze(child) for child in node["children"].values()],
    )
