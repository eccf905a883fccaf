"""Prometheus metrics for the application."""

import time

from prometheus_client import Counter, Histogram, Info, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from roomgen import __version__

# --- Metrics ---

APP_INFO = Info("roomgen", "Room redesign generation service info")
APP_INFO.info({"version": __version__, "name": "roomgen"})

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60],
)

GENERATION_OUTCOMES = Counter(
    "generation_outcomes_total",
    "Generation requests by final outcome",
    ["outcome"],
)

POLL_ATTEMPTS = Histogram(
    "generation_poll_attempts",
    "Status checks made per prediction before it resolved",
    buckets=[1, 2, 5, 10, 15, 20, 25, 30],
)


# --- Middleware ---


def _route_label(request: Request) -> str:
    """Matched route template, so path parameters and unknown paths stay low-cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        path = _route_label(request)

        REQUEST_COUNT.labels(method=method, path=path, status=response.status_code).inc()
        REQUEST_DURATION.labels(method=method, path=path).observe(duration)

        return response


def metrics_response() -> Response:
    """Generate Prometheus /metrics response."""
    return Response(
        content=generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
