"""Prometheus metrics for the bedding ratings service.

All metrics are module-level singletons registered on the default
``REGISTRY`` when this module is first imported.  Import them from here
rather than redefining them: registering the same metric name twice raises
``ValueError``.

Metrics defined here:

  rating_submissions_total{outcome}
      Counter: submissions by terminal outcome
      (persisted, rejected, throttled, persist_failed).

  rating_summaries_total
      Counter: summaries served.

  http_requests_total{method, path, status}
      Counter: HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram: HTTP request latency in seconds.

Usage::

    from bedding_ratings.api.metrics import rating_submissions_total
    rating_submissions_total.labels(outcome="persisted").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Rating metrics
# ---------------------------------------------------------------------------

rating_submissions_total: Counter = Counter(
    "rating_submissions_total",
    "Rating submissions by terminal outcome.",
    labelnames=["outcome"],
)
"""Counter incremented once per ``POST /ratings`` that reaches the service.

Labels:
  outcome: one of persisted, rejected, throttled, persist_failed
"""

rating_summaries_total: Counter = Counter(
    "rating_summaries_total",
    "Rating summaries served.",
)

# ---------------------------------------------------------------------------
# HTTP metrics (populated by middleware in main.py)
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the FastAPI application.",
    labelnames=["method", "path", "status"],
)
"""Counter incremented after every HTTP response.

Labels:
  method: HTTP method (GET, POST, …)
  path:   route template where available (``/ratings/summary/{location_key}``)
  status: HTTP response status code as string (e.g. '201', '429')
"""

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# ---------------------------------------------------------------------------
# Response helper
# ---------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
