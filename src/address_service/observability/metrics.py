"""Prometheus metrics for the address service.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count, in progress)
- Cache metrics (hits and misses per namespace)
- Cache lifecycle metrics (full clear outcomes)

Usage:
    from address_service.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.http_requests_total.labels(method="GET", path="/api/addresses", status=200).inc()
"""

from __future__ import annotations

import logging
import re
import time
from typing import TYPE_CHECKING

from prometheus_client import REGISTRY, Counter, Gauge, Histogram
from prometheus_client import generate_latest as prometheus_generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from address_service.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Identifier segments under /api/addresses
_ID_SEGMENT = re.compile(r"^/api/addresses/(?!clear-cache$)(user/)?[^/]+")

# Probe and scrape endpoints
_UNTRACKED = ("/health", "/metrics")

_LATENCY_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)


class MetricsRegistry:
    """The service's Prometheus collectors.

    Collectors are registered on the default prometheus_client registry the
    first time initialize() runs. With metrics disabled every collector
    stays None and the record_* helpers do nothing.
    """

    def __init__(self) -> None:
        self.http_requests_total: Counter | None = None
        self.http_request_duration_seconds: Histogram | None = None
        self.http_requests_in_progress: Gauge | None = None
        self.cache_hits_total: Counter | None = None
        self.cache_misses_total: Counter | None = None
        self.cache_clears_total: Counter | None = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            return

        self.http_requests_total = Counter(
            "address_http_requests_total", "Total HTTP requests", ["method", "path", "status"]
        )
        self.http_request_duration_seconds = Histogram(
            "address_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=_LATENCY_BUCKETS,
        )
        self.http_requests_in_progress = Gauge(
            "address_http_requests_in_progress", "HTTP requests currently in progress", ["method"]
        )
        self.cache_hits_total = Counter(
            "address_cache_hits_total", "Cache hits by namespace", ["namespace"]
        )
        self.cache_misses_total = Counter(
            "address_cache_misses_total", "Cache misses by namespace", ["namespace"]
        )
        self.cache_clears_total = Counter(
            "address_cache_clears_total", "Full cache clears by outcome", ["outcome"]
        )
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Current values in Prometheus exposition format."""
        if self.http_requests_total is None:
            return b"# Metrics disabled\n"
        return prometheus_generate_latest(REGISTRY)


metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """The process-wide registry, initialized on first access."""
    if not metrics_registry.initialized:
        metrics_registry.initialize()
    return metrics_registry


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time every API request.

    Requests are labelled with the matched route template so identifiers
    never become label values. Probe and scrape endpoints are not counted.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.metrics.http_requests_total is None or request.url.path.startswith(_UNTRACKED):
            return await call_next(request)

        method = request.method
        in_progress = self.metrics.http_requests_in_progress.labels(method=method)
        in_progress.inc()
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            path = _route_template(request)
            self.metrics.http_requests_total.labels(
                method=method, path=path, status=status_code
            ).inc()
            self.metrics.http_request_duration_seconds.labels(method=method, path=path).observe(
                time.perf_counter() - start
            )
            in_progress.dec()


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return str(route.path)
    return normalize_path(request.url.path)


def normalize_path(path: str) -> str:
    """Replace identifiers in a request path with placeholders.

    Used for requests that did not match a route.

    Examples:
        /api/addresses/3f2a... -> /api/addresses/{id}
        /api/addresses/user/u1 -> /api/addresses/user/{userId}
        /api/addresses/clear-cache -> unchanged
    """
    match = _ID_SEGMENT.match(path)
    if match is None:
        return path
    placeholder = "/api/addresses/user/{userId}" if match.group(1) else "/api/addresses/{id}"
    return placeholder + path[match.end() :]


def record_cache_hit(namespace: str) -> None:
    metrics = get_metrics()
    if metrics.cache_hits_total is not None:
        metrics.cache_hits_total.labels(namespace=namespace).inc()


def record_cache_miss(namespace: str) -> None:
    metrics = get_metrics()
    if metrics.cache_misses_total is not None:
        metrics.cache_misses_total.labels(namespace=namespace).inc()


def record_cache_clear(outcome: str) -> None:
    """Record the outcome of a full cache clear: success, failure or skipped."""
    metrics = get_metrics()
    if metrics.cache_clears_total is not None:
        metrics.cache_clears_total.labels(outcome=outcome).inc()
