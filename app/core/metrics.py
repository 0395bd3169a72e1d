from __future__ import annotations

from typing import Any, Callable

from prometheus_client import Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.core.config import settings

HTTP_LABELS = ("method", "route", "status_code")


class _Disabled:
    """Stand-in when METRICS_ENABLED is off; accepts the same calls and records nothing."""

    def labels(self, *_: Any, **__: Any) -> "_Disabled":
        return self

    def observe(self, *_: Any, **__: Any) -> None:
        return None

    def inc(self, *_: Any, **__: Any) -> None:
        return None


def _metric(build: Callable[[str], Any], suffix: str) -> Any:
    if not settings.METRICS_ENABLED:
        return _Disabled()
    return build(f"{settings.METRICS_NAMESPACE}_{suffix}")


# --- HTTP surface ---
REQUEST_LATENCY = _metric(
    lambda name: Histogram(name, "Latency of requests to the app, in seconds.", HTTP_LABELS, buckets=settings.METRICS_LATENCY_BUCKETS),
    "http_request_duration_seconds",
)
REQUEST_COUNT = _metric(
    lambda name: Counter(name, "Requests served by the app.", HTTP_LABELS),
    "http_requests_total",
)
REQUEST_ERRORS = _metric(
    lambda name: Counter(name, "Requests answered with a 4xx or 5xx status.", HTTP_LABELS),
    "http_errors_total",
)

# --- Shopify Admin API ---
UPSTREAM_LATENCY = _metric(
    lambda name: Histogram(name, "Latency of Shopify Admin GraphQL calls, in seconds.", ["operation"], buckets=settings.METRICS_LATENCY_BUCKETS),
    "shopify_request_duration_seconds",
)
UPSTREAM_CALLS = _metric(
    lambda name: Counter(name, "Shopify Admin GraphQL calls by operation and outcome.", ["operation", "outcome"]),
    "shopify_requests_total",
)
CREATION_STEPS = _metric(
    lambda name: Counter(name, "Product creation steps by step name and outcome.", ["step", "outcome"]),
    "product_creation_steps_total",
)


def normalize_path(request) -> str:
    """Route template (`/api/products`) when matched, raw path otherwise."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def record_request_metrics(request, status_code: int, elapsed: float) -> None:
    labels = (request.method, normalize_path(request), str(status_code))
    REQUEST_COUNT.labels(*labels).inc()
    REQUEST_LATENCY.labels(*labels).observe(elapsed)
    if status_code >= 400:
        REQUEST_ERRORS.labels(*labels).inc()


def record_upstream_call(operation: str, outcome: str, elapsed: float) -> None:
    UPSTREAM_CALLS.labels(operation=operation, outcome=outcome).inc()
    UPSTREAM_LATENCY.labels(operation=operation).observe(elapsed)


def record_creation_step(step: str, ok: bool) -> None:
    CREATION_STEPS.labels(step=step, outcome="ok" if ok else "failed").inc()


def export_metrics() -> tuple[bytes, str]:
    if not settings.METRICS_ENABLED:
        return b"", "text/plain; charset=utf-8"
    return generate_latest(), CONTENT_TYPE_LATEST
