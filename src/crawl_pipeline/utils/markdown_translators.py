"""Default tag translators handed to ``MarkdownConverter`` by the services.

Each translator is a pure function ``(element, converted_children) -> markdown``.
"""

from __future__ import annotations

from types import MappingProxyType

from bs4 import Tag

from crawl_pipeline.utils.markdown_converter import (
    EMPHASIS_DELIMITER,
    STRONG_DELIMITER,
    TranslatorTable,
    wrap_inline,
)


CODE_FENCE = "```"

_LANGUAGE_PREFIXES = ("language-", "lang-")


def code_language(element: Tag) -> str:
    """Language hint from ``class="language-x"``/``lang-x`` or ``data-language`` on pre or code."""
    candidates = [element]
    code = element.find("code")
    if isinstance(code, Tag):
        candidates.insert(0, code)
    for node in candidates:
        for css_class in node.get("class") or []:
            for prefix in _LANGUAGE_PREFIXES:
                if css_class.startswith(prefix) and len(css_class) > len(prefix):
                    return css_class[len(prefix) :]
        if data_language := node.get("data-language"):
            return str(data_language).strip()
    return ""


def fence_for(code: str) -> str:
    """Shortest backtick fence longer than any backtick run in ``code``."""
    fence = CODE_FENCE
    while fence in code:
        fence += "`"
    return fence


def translate_pre(element: Tag, text: str) -> str:
    code = element.get_text().strip("\n")
    fence = fence_for(code)
    language = code_language(element)
    return f"\n\n{fence}{language}\n{code}\n{fence}\n\n"


def translate_code(element: Tag, text: str) -> str:
    if element.find_parent("pre") is not None:
        return element.get_text()
    code = element.get_text().replace("\n", " ")
    if not code.strip():
        return ""
    delimiter = "`"
    while delimiter in code:
        delimiter += "`"
    padding = " " if code.startswith("`") or code.endswith("`") else ""
    return f"{delimiter}{padding}{code}{padding}{delimiter}"


def translate_emphasis(element: Tag, text: str) -> str:
    return wrap_inline(text, EMPHASIS_DELIMITER)


def translate_strong(element: Tag, text: str) -> str:
    return wrap_inline(text, STRONG_DELIMITER)


def drop_element(element: Tag, text: str) -> str:
    return ""


DEFAULT_TRANSLATORS: TranslatorTable = MappingProxyType(
    {
        "pre": translate_pre,
        "code": translate_code,
        "em": translate_emphasis,
        "i": translate_emphasis,
        "strong": translate_strong,
        "b": translate_strong,
        "script": drop_element,
        "style": drop_element,
        "noscript": drop_element,
    }
)
