"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS_TOTAL = Counter(
    "mdreview_http_requests_total",
    "Total number of HTTP requests.",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "mdreview_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    ["method", "route", "status"],
    buckets=(
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
    ),
)

COMMENT_MUTATIONS_TOTAL = Counter(
    "mdreview_comment_mutations_total",
    "Comment store mutations by operation.",
    ["operation"],
)

SELECTION_RESOLUTIONS_TOTAL = Counter(
    "mdreview_selection_resolutions_total",
    "Selection-to-line resolutions by outcome.",
    ["outcome"],
)

STORAGE_FAILURES_TOTAL = Counter(
    "mdreview_storage_failures_total",
    "Failed reads/writes against the local key-value storage.",
    ["operation"],
)


def observe_http_request(
    *,
    method: str,
    route: str,
    status_code: int,
    duration_ms: float,
) -> None:
    status = str(status_code)
    HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=status).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method, route=route, status=status
    ).observe(duration_ms / 1000.0)


def record_comment_mutation(operation: str) -> None:
    COMMENT_MUTATIONS_TOTAL.labels(operation=operation).inc()


def record_selection_resolution(resolved: bool) -> None:
    SELECTION_RESOLUTIONS_TOTAL.labels(outcome="resolved" if resolved else "unresolved").inc()


def record_storage_failure(operation: str) -> None:
    STORAGE_FAILURES_TOTAL.labels(operation=operation).inc()
