"""Prometheus metrics for pipeline golden signals."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


PIPELINE_REQUESTS = Counter(
    "crawl_pipeline_requests_total",
    "Pipeline invocations by operation and outcome",
    ["operation", "outcome"],
)

PIPELINE_LATENCY = Histogram(
    "crawl_pipeline_latency_seconds",
    "End-to-end pipeline latency by operation",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0),
)

CACHE_LOOKUPS = Counter(
    "crawl_pipeline_cache_lookups_total",
    "Cache lookups by kind and result (hit, miss, error, disabled)",
    ["kind", "result"],
)

FETCH_FAILURES = Counter(
    "crawl_pipeline_fetch_failures_total",
    "Outbound fetch failures by reason",
    ["reason"],
)


@contextmanager
def track_latency(operation: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        PIPELINE_LATENCY.labels(operation=operation).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
