"""Prometheus metrics for Twenty API traffic and schema cache behaviour.

Provides:
- twenty_requests_total / twenty_request_duration_seconds: per endpoint kind
- schema_cache_events_total: hit / miss / refresh / invalidate counts
- track_request(): context manager recording one outbound request
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

# ── Transport Metrics ────────────────────────────────────────────────────────

twenty_requests_total = Counter(
    "twenty_requests_total",
    "Total requests sent to the Twenty API",
    ["endpoint", "status"],
)

twenty_request_duration_seconds = Histogram(
    "twenty_request_duration_seconds",
    "Twenty API request duration in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ── Schema Cache Metrics ─────────────────────────────────────────────────────

schema_cache_events_total = Counter(
    "schema_cache_events_total",
    "Schema cache lookups by outcome",
    ["event"],
)


@contextmanager
def track_request(endpoint: str) -> Iterator[None]:
    """Record duration and outcome of one Twenty API request.

    Usage:
        with track_request("graphql"):
            response = await client.post(...)
    """
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        twenty_request_duration_seconds.labels(endpoint=endpoint).observe(
            time.perf_counter() - start
        )
        twenty_requests_total.labels(endpoint=endpoint, status=status).inc()
