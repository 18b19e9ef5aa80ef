"""Checks and touch-ups applied to converted markdown before it is returned."""

from __future__ import annotations

import re


MIN_MEANINGFUL_WORDS = 10

_FENCE_RE = re.compile(r"^\s*(`{3,}|~{3,})")

CODE_LANGUAGES = (
    "ts|tsx|js|jsx|typescript|javascript|python|py|java|c|cpp|csharp|cs|go|rust|ruby|php|html|css|scss|sass|less"
    "|json|xml|yaml|yml|bash|sh|shell|zsh|sql|swift|kotlin|dart|r|scala|perl|powershell|ps1|graphql|markdown|md"
    "|toml|ini|dockerfile|vue|svelte|astro|hcl|terraform|lua|elixir|elm|haskell|ocaml|fsharp|clojure|groovy"
    "|console|diff|text"
)
# A bare language name, or a file path whose extension is one.
_LABEL_RE = re.compile(rf"^(?:[\w\-./]+\.)?({CODE_LANGUAGES})$")
_LABELLED_FENCE_RE = re.compile(rf"^(?:[\w\-./]+\.)?({CODE_LANGUAGES})\s*(`{{3,}})$")


def has_meaningful_markdown(markdown: str | None) -> bool:
    """True when the markdown has at least ten words longer than two characters."""
    if not markdown:
        return False
    words = [word for word in markdown.split() if len(word) > 2]
    return len(words) >= MIN_MEANINGFUL_WORDS


def default_markdown(
    url: str,
    title: str | None = None,
    description: str | None = None,
    *,
    excerpt: str | None = None,
) -> str:
    """Deterministic stand-in for pages whose content could not be converted."""
    parts = [f"# {title or url}"]
    if description:
        parts.append(description)
    if excerpt and excerpt.strip():
        parts.append(excerpt.strip())
    parts.append(f"No readable content could be extracted from [{url}]({url}).")
    return "\n\n".join(parts)


def _closes(line: str, fence: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= len(fence) and stripped == fence[0] * len(stripped)


def _lift_label(out: list[str]) -> str:
    """Pop a language label sitting on the line, or the paragraph, right before a bare fence."""
    if out and (match := _LABEL_RE.match(out[-1].strip())):
        out.pop()
        return match.group(1)
    if len(out) >= 2 and not out[-1].strip() and (match := _LABEL_RE.match(out[-2].strip())):
        del out[-2:]
        return match.group(1)
    return ""


def fix_code_block_formatting(markdown: str) -> str:
    """Tidy fenced code blocks.

    A stray language label (``python``, or a path such as ``src/app.ts``) left on the
    line before a bare opening fence, or glued in front of it, moves into the fence's
    info string. Every block then gets a blank line on both sides and whitespace after
    fences is trimmed. Lines inside a block are never touched.
    """
    out: list[str] = []
    open_fence: str | None = None
    just_closed = False
    for line in markdown.split("\n"):
        if open_fence is not None:
            if _closes(line, open_fence):
                out.append(line.rstrip())
                open_fence = None
                just_closed = True
            else:
                out.append(line)
            continue

        if just_closed and line.strip():
            out.append("")
        just_closed = False

        if labelled := _LABELLED_FENCE_RE.match(line.strip()):
            line = f"{labelled.group(2)}{labelled.group(1)}"

        match = _FENCE_RE.match(line)
        if match:
            fence = line.rstrip()
            if fence.strip() == match.group(1):
                fence += _lift_label(out)
            if out and out[-1].strip():
                out.append("")
            out.append(fence)
            open_fence = match.group(1)
            continue
        out.append(line)
    return "\n".join(out)
