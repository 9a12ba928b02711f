"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "chadm_requests_total",
    "Total HTTP requests served by the facade",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "chadm_request_latency_seconds",
    "Latency of HTTP requests served by the facade",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

UPSTREAM_REQUESTS = Counter(
    "chadm_upstream_requests_total",
    "Calls made to the upstream document store",
    labelnames=("backend", "operation", "outcome"),
    registry=REGISTRY,
)

UPSTREAM_LATENCY = Histogram(
    "chadm_upstream_latency_seconds",
    "Latency of upstream document store calls",
    labelnames=("backend", "operation"),
    registry=REGISTRY,
)

COUNT_LOOKUP_FAILURES = Counter(
    "chadm_count_lookup_failures_total",
    "Per-collection count lookups that fell back to zero",
    labelnames=("backend",),
    registry=REGISTRY,
)

SHAPE_MISMATCHES = Counter(
    "chadm_shape_mismatches_total",
    "Upstream payloads whose shape was not recognised",
    labelnames=("kind",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "UPSTREAM_REQUESTS",
    "UPSTREAM_LATENCY",
    "COUNT_LOOKUP_FAILURES",
    "SHAPE_MISMATCHES",
    "metrics_response",
]
