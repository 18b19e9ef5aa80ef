"""Minimal robots.txt parsing: user-agent groups, allow/disallow rules and sitemaps."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from crawl_pipeline.domain.models import RobotsGroup, RobotsResult


logger = logging.getLogger(__name__)


def parse_robots(text: str | None) -> RobotsResult:
    """Parse robots.txt content. Unknown directives and rules before any user-agent are ignored."""
    if not text:
        return RobotsResult()

    groups: list[dict] = []
    sitemaps: list[str] = []
    current: dict | None = None

    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if ":" not in line:
            continue
        field, value = (part.strip() for part in line.split(":", 1))
        field = field.lower()

        if field == "user-agent":
            # Consecutive user-agent lines share one group.
            if current is None or current["has_rules"]:
                current = {"user_agents": [], "allow": [], "disallow": [], "crawl_delay": None, "has_rules": False}
                groups.append(current)
            current["user_agents"].append(value)
        elif field in ("allow", "disallow"):
            if current is None:
                continue
            current["has_rules"] = True
            if value:
                current[field].append(value)
        elif field == "crawl-delay":
            if current is None:
                continue
            current["has_rules"] = True
            try:
                current["crawl_delay"] = float(value)
            except ValueError:
                logger.debug("Ignoring non-numeric crawl-delay: %r", value)
        elif field == "sitemap" and value:
            sitemaps.append(value)

    return RobotsResult(
        groups=[
            RobotsGroup(
                user_agents=group["user_agents"],
                allow=group["allow"],
                disallow=group["disallow"],
                crawl_delay=group["crawl_delay"],
            )
            for group in groups
        ],
        sitemaps=sitemaps,
    )


def robots_url(target_url: str) -> str:
    parts = urlsplit(target_url)
    return f"{parts.scheme}://{parts.netloc}/robots.txt"
