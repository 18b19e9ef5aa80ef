"""HTML to markdown via markdownify, driven by an injected translator table.

The table maps a tag name to a pure function; the converter turns it into
``convert_<tag>`` methods on a markdownify subclass, which is markdownify's own
extension point. Two passes run over the rendered markdown afterwards:

* ``escape_multiline_links`` keeps link labels on one logical line;
* ``remove_skip_to_content_links`` drops accessibility skip links.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import re
from types import MappingProxyType
from typing import Any

from bs4 import Tag
import markdownify


Translator = Callable[[Tag, str], str]
TranslatorTable = Mapping[str, Translator]

DEFAULT_ENGINE_OPTIONS: Mapping[str, Any] = MappingProxyType(
    {
        "heading_style": markdownify.ATX,
        "bullets": "-",
        "autolinks": False,
    }
)

_SKIP_TO_CONTENT_RE = re.compile(r"\[Skip to Content\]\([^)]*\)", re.IGNORECASE)
_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TAG_METHOD_RE = re.compile(r"[\[\]:-]")

EMPHASIS_DELIMITER = "_"
STRONG_DELIMITER = "**"


def escape_multiline_links(markdown: str) -> str:
    """Backslash-escape newlines that fall inside ``[...]`` link labels.

    Depth never drops below zero, so stray ``]`` cannot unbalance the scan.
    Newlines that are already escaped are left alone.
    """
    depth = 0
    out: list[str] = []
    for char in markdown:
        if char == "[":
            depth += 1
        elif char == "]":
            depth = max(0, depth - 1)
        if depth > 0 and char == "\n" and (not out or out[-1] != "\\"):
            out.append("\\\n")
            continue
        out.append(char)
    return "".join(out)


def remove_skip_to_content_links(markdown: str) -> str:
    return _SKIP_TO_CONTENT_RE.sub("", markdown)


def wrap_inline(text: str, delimiter: str) -> str:
    """Wrap ``text`` with ``delimiter`` while keeping surrounding whitespace outside."""
    if not text or not text.strip():
        return text or ""
    stripped = text.strip()
    prefix = text[: len(text) - len(text.lstrip())]
    suffix = text[len(text.rstrip()) :]
    return f"{prefix}{delimiter}{stripped}{delimiter}{suffix}"


class DelimitedMarkdownConverter(markdownify.MarkdownConverter):
    """markdownify uses one symbol for both emphasis and strong; these get ``_`` and ``**``."""

    def convert_em(self, el, text, *args, **kwargs):
        return wrap_inline(text, EMPHASIS_DELIMITER)

    convert_i = convert_em

    def convert_strong(self, el, text, *args, **kwargs):
        return wrap_inline(text, STRONG_DELIMITER)

    convert_b = convert_strong


def _as_method(translator: Translator):
    def convert(self, el, text, *args, **kwargs):
        return translator(el, text)

    return convert


def build_engine_class(translators: TranslatorTable) -> type[markdownify.MarkdownConverter]:
    methods = {f"convert_{_TAG_METHOD_RE.sub('_', tag)}": _as_method(fn) for tag, fn in translators.items()}
    return type("TranslatingMarkdownConverter", (DelimitedMarkdownConverter,), methods)


class MarkdownConverter:
    """Deterministic: same HTML and same table always give byte-identical markdown."""

    def __init__(self, translators: TranslatorTable | None = None, **engine_options: Any):
        self.translators: TranslatorTable = MappingProxyType(dict(translators or {}))
        self._engine_options = {**DEFAULT_ENGINE_OPTIONS, **engine_options}
        self._engine_class = build_engine_class(self.translators)

    def to_markdown(self, html: str) -> str:
        if not html or not html.strip():
            return ""
        engine = self._engine_class(**self._engine_options)
        markdown = engine.convert(html)
        markdown = _EXCESS_BLANK_LINES_RE.sub("\n\n", markdown)
        markdown = escape_multiline_links(markdown)
        markdown = remove_skip_to_content_links(markdown)
        return markdown.strip()
