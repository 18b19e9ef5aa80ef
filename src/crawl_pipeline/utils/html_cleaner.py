"""Boilerplate stripping and main-content isolation.

Landmark elements (``<main>``, ``<article>``, ``[role=main]``...) win when present;
otherwise ``article_extractor``'s readability scoring picks the content node. The
result is always a single landmark root, so cleaning cleaned output is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from urllib.parse import urljoin

from article_extractor import ExtractionOptions, extract_article
from bs4 import BeautifulSoup, Comment, Tag


logger = logging.getLogger(__name__)

NOISE_TAGS = ("script", "style", "noscript", "template", "link", "meta", "base")

BOILERPLATE_SELECTORS = (
    "header",
    "footer",
    "nav",
    "aside",
    "dialog",
    ".sidebar",
    "#sidebar",
    ".nav",
    ".navbar",
    ".menu",
    ".breadcrumbs",
    "[role=navigation]",
    "[role=banner]",
    "[role=contentinfo]",
    "[role=complementary]",
    "[role=dialog]",
    "[aria-hidden=true]",
    ".modal",
    ".popup",
    ".banner",
    ".cookie-banner",
    ".cookie-consent",
    "#cookie-banner",
    ".advertisement",
    ".ads",
    ".ad-container",
    ".skip-link",
)

LANDMARK_TAGS = ("main", "article")
LANDMARK_SELECTORS = ("main", "[role=main]", "article", "#main-content", "#content", ".main-content")

URL_ATTRIBUTES = {
    "a": "href",
    "img": "src",
    "source": "src",
    "video": "src",
    "audio": "src",
    "iframe": "src",
    "track": "src",
}
UNRESOLVABLE_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")


@dataclass(frozen=True)
class CleaningOptions:
    extract_main_content: bool = True
    remove_base64_images: bool = True


@dataclass(frozen=True)
class CleanedDocument:
    html: str

    @property
    def is_empty(self) -> bool:
        return not self.html.strip()


class HtmlCleaner:
    """Never raises: malformed input degrades to whatever could be salvaged."""

    def __init__(self, *, min_word_count: int = 50):
        self._extraction_options = ExtractionOptions(
            min_word_count=min_word_count,
            include_images=True,
            include_code_blocks=True,
            safe_markdown=True,
        )

    def clean(
        self,
        html: str,
        options: CleaningOptions | None = None,
        base_url: str | None = None,
    ) -> CleanedDocument:
        options = options or CleaningOptions()
        if not html or not html.strip():
            return CleanedDocument(html="")
        try:
            return CleanedDocument(html=self._clean(html, options, base_url))
        except Exception as e:
            logger.warning(f"HTML cleaning failed for {base_url or '<inline>'}, returning input as-is: {e}")
            return CleanedDocument(html=html)

    def _clean(self, html: str, options: CleaningOptions, base_url: str | None) -> str:
        soup = BeautifulSoup(html, "html.parser")
        strip_noise(soup)
        if options.remove_base64_images:
            remove_base64_images(soup)
        if base_url:
            resolve_relative_urls(soup, base_url)

        if not options.extract_main_content:
            return str(soup).strip()

        strip_boilerplate(soup)
        root = _sole_landmark_root(soup)
        if root is not None:
            return str(root).strip()

        node = find_landmark(soup)
        if node is not None:
            return str(node).strip()

        extracted = self._readability(str(soup), base_url)
        if extracted is None:
            body = soup.body or soup
            extracted = body.decode_contents().strip()
        if not extracted:
            return ""
        return f"<article>{extracted}</article>"

    def _readability(self, html: str, base_url: str | None) -> str | None:
        result = extract_article(html, base_url, self._extraction_options)
        if not result.success or not result.content:
            logger.debug(f"Readability extraction found no content for {base_url}: {result.error}")
            return None
        # Scoring may keep chrome the landmark path would have dropped.
        soup = BeautifulSoup(result.content, "html.parser")
        strip_noise(soup)
        strip_boilerplate(soup)
        return soup.decode_contents().strip()


def strip_noise(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(list(NOISE_TAGS)):
        if not tag.decomposed:
            tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()


def strip_boilerplate(soup: BeautifulSoup) -> None:
    for tag in soup.select(", ".join(BOILERPLATE_SELECTORS)):
        if not tag.decomposed:
            tag.decompose()


def remove_base64_images(soup: BeautifulSoup) -> int:
    """Blank out inline ``data:image/...;base64,...`` sources. Returns how many were removed."""
    removed = 0
    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        if src.lower().startswith("data:image/") and ";base64," in src[:100].lower():
            img["src"] = ""
            removed += 1
    return removed


def resolve_relative_urls(soup: BeautifulSoup, base_url: str) -> None:
    for tag_name, attr in URL_ATTRIBUTES.items():
        for tag in soup.find_all(tag_name, attrs={attr: True}):
            value = tag[attr].strip()
            if not value or value.lower().startswith(UNRESOLVABLE_PREFIXES):
                continue
            tag[attr] = urljoin(base_url, value)


def find_landmark(soup: BeautifulSoup) -> Tag | None:
    """Pick the primary content landmark; among several ``<article>`` take the longest."""
    for selector in LANDMARK_SELECTORS:
        matches = soup.select(selector)
        if not matches:
            continue
        if len(matches) == 1:
            return matches[0]
        outermost = [m for m in matches if not any(p in matches for p in m.parents)]
        return max(outermost, key=lambda m: len(m.get_text(strip=True)))
    return None


def _sole_landmark_root(soup: BeautifulSoup) -> Tag | None:
    """Return the root element when the document is nothing but one landmark, i.e. already cleaned."""
    roots = [child for child in soup.children if isinstance(child, Tag) or str(child).strip()]
    if len(roots) == 1 and isinstance(roots[0], Tag) and roots[0].name in LANDMARK_TAGS:
        return roots[0]
    return None
