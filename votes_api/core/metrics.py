"""Prometheus metrics: request latency histogram and the /metrics payload."""
from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

access_logger = logging.getLogger("votes_api.access")

LATENCY_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.5, 1, 2, 5)


class Metrics:
    """Per-app registry so several apps (e.g. in tests) never collide."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        ProcessCollector(registry=self.registry)
        PlatformCollector(registry=self.registry)
        GCCollector(registry=self.registry)
        self.http_duration = Histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            ["method", "route", "status_code"],
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )

    def observe(self, method: str, route: str, status_code: int, seconds: float) -> None:
        self.http_duration.labels(method, route, str(status_code)).observe(seconds)

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


def _route_label(request) -> str:
    # FastAPI puts the matched route in the scope; fall back to the raw path.
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Time every request, feed the histogram and write one access log line."""

    def __init__(self, app, *, metrics: Metrics | None) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - start
            if self._metrics is not None:
                self._metrics.observe(request.method, _route_label(request), status_code, elapsed)
            client = request.client.host if request.client else "-"
            access_logger.info(
                '%s "%s %s HTTP/%s" %d %.1fms "%s"',
                client,
                request.method,
                request.url.path,
                request.scope.get("http_version", "1.1"),
                status_code,
                elapsed * 1000,
                request.headers.get("user-agent", "-"),
            )
