"""Prometheus metrics for monitoring and observability."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging_config import SERVICE_NAME, SERVICE_VERSION

# ==============================================================================
# APPLICATION INFO
# ==============================================================================

app_info = Info("local_directory", "Local directory API information")
app_info.info({"version": SERVICE_VERSION, "service": SERVICE_NAME})

# ==============================================================================
# HTTP METRICS
# ==============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    ["method", "endpoint"],
)

# ==============================================================================
# CONTENT SOURCE METRICS
# ==============================================================================

content_requests_total = Counter(
    "content_requests_total",
    "Content reads and submissions by the source that served them",
    ["operation", "source"],
)

content_request_duration_seconds = Histogram(
    "content_request_duration_seconds",
    "Remote content service call duration in seconds",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ==============================================================================
# CIRCUIT BREAKER METRICS
# ==============================================================================

CIRCUIT_STATE_VALUES = {"closed": 0, "open": 1, "half_open": 2}

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open, 2=half_open)",
    ["circuit_name"],
)

circuit_breaker_failures_total = Counter(
    "circuit_breaker_failures_total",
    "Total circuit breaker failures",
    ["circuit_name"],
)

circuit_breaker_rejected_total = Counter(
    "circuit_breaker_rejected_total",
    "Total circuit breaker rejected calls",
    ["circuit_name"],
)

circuit_breaker_opened_total = Counter(
    "circuit_breaker_opened_total",
    "Total times circuit breaker opened",
    ["circuit_name"],
)

# ==============================================================================
# DIRECTORY METRICS
# ==============================================================================

directory_mutations_total = Counter(
    "directory_mutations_total",
    "Successful listing mutations",
    ["operation"],
)

search_results_count = Histogram(
    "search_results_count",
    "Number of listings matched per search (before paging)",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 1000),
)

analytics_events_total = Counter(
    "analytics_events_total",
    "Analytics events by recording outcome",
    ["result"],
)

# ==============================================================================
# DATABASE METRICS
# ==============================================================================

db_operations_total = Counter(
    "db_operations_total",
    "Total database operations",
    ["operation", "status"],
)

# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def record_content_source(operation: str, source: str) -> None:
    content_requests_total.labels(operation=operation, source=source).inc()


def set_circuit_state(circuit_name: str, state: str) -> None:
    circuit_breaker_state.labels(circuit_name=circuit_name).set(CIRCUIT_STATE_VALUES[state])


@lru_cache(maxsize=2048)
def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path to reduce cardinality.

    Examples:
        /v1/businesses/123 -> /v1/businesses/{id}
        /v1/reviews/1b4e28ba-2fa1-11d2-883f-0016d3cca427 -> /v1/reviews/{id}
        /v1/blog/local-bistro-covid-survival-story -> /v1/blog/{slug}
    """
    path = re.sub(
        r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "/{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+(?=/|$)", "/{id}", path)
    path = re.sub(r"^(/v1/blog)/[^/]+$", r"\1/{slug}", path)
    path = re.sub(r"/[a-zA-Z0-9_-]{20,}", "/{id}", path)
    return path


# ==============================================================================
# PROMETHEUS MIDDLEWARE
# ==============================================================================


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=method, endpoint=endpoint, status="500").inc()
            raise
        finally:
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                time.time() - start_time
            )
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        http_requests_total.labels(
            method=method, endpoint=endpoint, status=str(response.status_code)
        ).inc()
        return response


# ==============================================================================
# METRICS ENDPOINT
# ==============================================================================


def get_metrics() -> Response:
    """Generate Prometheus metrics response."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "analytics_events_total",
    "circuit_breaker_state",
    "content_requests_total",
    "db_operations_total",
    "directory_mutations_total",
    "get_metrics",
    "http_request_duration_seconds",
    "http_requests_total",
    "normalize_endpoint",
    "record_content_source",
    "search_results_count",
    "set_circuit_state",
]
