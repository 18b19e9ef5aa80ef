"""Wall-clock timing metrics attached to every response."""

from __future__ import annotations

import time

from crawl_pipeline.domain.models import Metrics


def now_ms() -> float:
    return time.time() * 1000


def format_duration(duration_ms: float) -> str:
    """Human-readable duration: ``12.34ms``, ``1.50s`` or ``2m 5.00s``."""
    if duration_ms < 1000:
        return f"{duration_ms:.2f}ms"
    if duration_ms < 60000:
        return f"{duration_ms / 1000:.2f}s"
    minutes = int(duration_ms // 60000)
    seconds = (duration_ms % 60000) / 1000
    return f"{minutes}m {seconds:.2f}s"


def build_metrics(start_ms: float, end_ms: float | None = None) -> Metrics:
    end_ms = now_ms() if end_ms is None else end_ms
    duration_ms = max(0.0, end_ms - start_ms)
    return Metrics(
        duration_ms=duration_ms,
        readable_duration=format_duration(duration_ms),
        start_time_ms=start_ms,
        end_time_ms=end_ms,
    )
