"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from quickfind.observability.context import get_trace_context, trace_context
from quickfind.observability.logging import JsonFormatter, configure_logging
from quickfind.observability.metrics import (
    INDEX_ERRORS,
    INDEX_RUN_LATENCY,
    INDEXED_ENTRIES,
    SEARCH_LATENCY,
    SEARCH_RESULTS,
    get_metrics,
    init_metrics,
    track_latency,
)
from quickfind.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEXED_ENTRIES",
    "INDEX_ERRORS",
    "INDEX_RUN_LATENCY",
    "SEARCH_LATENCY",
    "SEARCH_RESULTS",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "trace_context",
    "track_latency",
]
