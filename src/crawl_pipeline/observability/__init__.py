"""Observability: structured logging, trace context, spans and Prometheus metrics."""

from crawl_pipeline.observability.context import get_trace_context, set_trace_context, trace_context
from crawl_pipeline.observability.logging import JsonFormatter, configure_logging
from crawl_pipeline.observability.metrics import (
    CACHE_LOOKUPS,
    FETCH_FAILURES,
    PIPELINE_LATENCY,
    PIPELINE_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from crawl_pipeline.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CACHE_LOOKUPS",
    "FETCH_FAILURES",
    "PIPELINE_LATENCY",
    "PIPELINE_REQUESTS",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
