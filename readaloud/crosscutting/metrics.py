"""
===============================================================================
FILE: crosscutting/metrics.py
===============================================================================

CRC CARD (Module)
-------------------------------------------------------------------------------
Name:
    Metrics (Prometheus), low-coupling observability

Responsibilities:
    - Define the relay's Prometheus collectors in a private registry.
    - Offer small, stable record_* helpers for call sites.
    - Keep label cardinality low (no request ids, no page text).
    - Render the /metrics payload.

Collaborators:
    - crosscutting.middleware: HTTP request count and latency.
    - infrastructure.services.retry (BackoffCaller): one sample per attempt.
    - application.usecases.read_aloud: speech outcomes.
===============================================================================
"""

from __future__ import annotations

import re

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_registry = CollectorRegistry()

# ------------------------
# HTTP
# ------------------------
_requests_total = Counter(
    "readaloud_requests_total",
    "Total HTTP requests",
    ["endpoint", "method", "status"],
    registry=_registry,
)

_request_latency = Histogram(
    "readaloud_request_latency_seconds",
    "HTTP request latency (seconds)",
    ["endpoint", "method"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
    registry=_registry,
)

# ------------------------
# Text generation
# ------------------------
_llm_attempts_total = Counter(
    "readaloud_llm_attempts_total",
    "Backend attempts by outcome classification",
    ["backend", "outcome"],
    registry=_registry,
)

_llm_attempt_latency = Histogram(
    "readaloud_llm_attempt_latency_seconds",
    "Latency of one backend attempt (seconds)",
    ["backend"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0),
    registry=_registry,
)

_llm_backoff_total = Counter(
    "readaloud_llm_backoff_total",
    "Backoff sleeps caused by rate limiting",
    ["backend"],
    registry=_registry,
)

_rewrite_chunks = Histogram(
    "readaloud_rewrite_chunk_count",
    "Chunks per rewrite request",
    ["mode"],
    buckets=(1, 2, 3, 4, 6, 8),
    registry=_registry,
)

# ------------------------
# Speech
# ------------------------
_speech_requests_total = Counter(
    "readaloud_speech_requests_total",
    "Speech synthesis requests by outcome",
    ["service", "outcome"],
    registry=_registry,
)


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------
def record_request_metrics(
    endpoint: str,
    method: str,
    status_code: int,
    latency_seconds: float,
) -> None:
    """HTTP metrics; status grouped as 2xx/4xx/5xx."""
    normalized = _normalize_endpoint(endpoint)
    _requests_total.labels(
        endpoint=normalized,
        method=method,
        status=_status_bucket(status_code),
    ).inc()
    _request_latency.labels(endpoint=normalized, method=method).observe(
        latency_seconds
    )


def record_llm_attempt(backend: str, outcome: str, latency_seconds: float) -> None:
    """One sample per backend attempt (outcome: success, RateLimited, ...)."""
    _llm_attempts_total.labels(backend=backend, outcome=outcome).inc()
    _llm_attempt_latency.labels(backend=backend).observe(latency_seconds)


def record_llm_backoff(backend: str) -> None:
    _llm_backoff_total.labels(backend=backend).inc()


def observe_rewrite_chunks(mode: str, count: int) -> None:
    _rewrite_chunks.labels(mode=mode).observe(count)


def record_speech_request(service: str, outcome: str) -> None:
    _speech_requests_total.labels(service=service, outcome=outcome).inc()


# -----------------------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------------------
def _normalize_endpoint(path: str) -> str:
    """Replace numeric path segments by `{id}`."""
    return re.sub(r"/\d+", "/{id}", path)


def _status_bucket(code: int) -> str:
    if 200 <= code < 300:
        return "2xx"
    if 400 <= code < 500:
        return "4xx"
    if 500 <= code < 600:
        return "5xx"
    return "other"


def get_metrics_response() -> tuple[bytes, str]:
    """Body and content-type for /metrics."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST
