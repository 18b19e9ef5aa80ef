"""Turn loose user input into a canonical http(s) target URL.

Purely syntactic: no DNS, no network. Dotted-quad hosts are accepted on shape
alone, so ``256.256.256.256`` passes.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from crawl_pipeline.errors import InvalidUrlError


_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s")
_IPV4_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
_HOST_CHARS_RE = re.compile(r"^[a-z0-9.-]+$", re.IGNORECASE)
_TLD_RE = re.compile(r"^[a-z]{2,63}$", re.IGNORECASE)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_plausible_hostname(hostname: str) -> bool:
    """Check hostname shape: localhost, a dotted quad, or labels ending in an alphabetic TLD."""
    if hostname == "localhost" or _IPV4_RE.match(hostname):
        return True
    if "." not in hostname or not _HOST_CHARS_RE.match(hostname):
        return False
    labels = hostname.split(".")
    for label in labels:
        if not label or label.startswith("-") or label.endswith("-"):
            return False
    return bool(_TLD_RE.match(labels[-1]))


def normalize(value: str) -> str:
    """Return the canonical target URL for ``value`` or raise ``InvalidUrlError``.

    >>> normalize("example.com")
    'https://example.com/'
    """
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidUrlError("URL is empty", url=value)
    if _WHITESPACE_RE.search(candidate):
        raise InvalidUrlError("URL must not contain spaces", url=value)
    if candidate.isdigit():
        raise InvalidUrlError("URL must not be a bare number", url=value)

    if not _SCHEME_RE.match(candidate):
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(f"Unparseable URL: {exc}", url=value) from exc

    if not hostname:
        raise InvalidUrlError("URL has no hostname", url=value)
    if not is_plausible_hostname(hostname):
        raise InvalidUrlError(f"Invalid hostname: {hostname}", url=value)

    scheme = parts.scheme.lower()
    netloc = hostname
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{hostname}:{port}"
    userinfo, sep, _ = parts.netloc.rpartition("@")
    if sep:
        netloc = f"{userinfo}@{netloc}"

    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))
