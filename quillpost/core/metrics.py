"""Prometheus metrics, owned by the application instance.

The collector lives on ``app.state.metrics`` and is injected into handlers
through ``get_metrics``; each app gets its own ``CollectorRegistry`` so
nothing is registered globally.
"""
import re
import time
from typing import Protocol

from fastapi import Request
from fastapi.responses import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from quillpost.core.config import settings

# Domain events counted by handlers: name -> help text
EVENTS: dict[str, str] = {
    "users_registered": "Total number of user registrations",
    "login_success": "Total number of successful logins",
    "login_failed": "Total number of failed logins",
    "auth_errors": "Total number of rejected credentials",
    "profile_updates": "Total number of profile updates",
    "avatar_uploads": "Total number of avatar uploads",
    "post_images_uploaded": "Total number of post images uploaded",
    "posts_created": "Total number of posts created",
    "posts_updated": "Total number of posts updated",
    "posts_deleted": "Total number of posts deleted",
    "post_views": "Total number of post views recorded",
    "post_likes": "Total number of post likes",
    "post_unlikes": "Total number of post unlikes",
    "comments_created": "Total number of comments created",
    "comments_deleted": "Total number of comments deleted",
}

_UUID_SEGMENT = re.compile(r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$")
_SKIP_PATHS = {"/metrics"}


class MetricsSink(Protocol):
    def incr(self, name: str) -> None:
        ...

    def value(self, name: str) -> float:
        ...


class PrometheusMetrics:
    """Counters for HTTP traffic and domain events on a private registry."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.requests_total = Counter(
            "http_requests_total",
            "Total number of HTTP requests",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "path"],
            registry=self.registry,
        )
        self.active_requests = Gauge(
            "http_active_requests",
            "Current number of active requests",
            registry=self.registry,
        )
        self._events = {
            name: Counter(f"{name}_total", help_text, registry=self.registry)
            for name, help_text in EVENTS.items()
        }

    def incr(self, name: str) -> None:
        self._events[name].inc()

    def value(self, name: str) -> float:
        return self.registry.get_sample_value(f"{name}_total") or 0.0

    def render(self) -> bytes:
        return generate_latest(self.registry)


def normalize_path(path: str) -> str:
    """Collapse id segments so per-resource paths share one label."""
    segments = [":id" if _UUID_SEGMENT.match(seg) else seg for seg in path.split("/") if seg]
    return "/" + "/".join(segments)


def get_metrics(request: Request) -> MetricsSink:
    return request.app.state.metrics


async def metrics_endpoint(request: Request) -> Response:
    metrics: PrometheusMetrics = request.app.state.metrics
    if not settings.METRICS_ENABLED:
        return Response(b"metrics disabled", media_type="text/plain")
    return Response(metrics.render(), media_type=CONTENT_TYPE_LATEST)


async def record_request_metrics(request: Request, call_next):
    if request.url.path in _SKIP_PATHS:
        return await call_next(request)

    metrics: PrometheusMetrics = request.app.state.metrics
    path = normalize_path(request.url.path)
    start = time.perf_counter()
    metrics.active_requests.inc()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        metrics.active_requests.dec()
        metrics.requests_total.labels(method=request.method, path=path, status=str(status_code)).inc()
        metrics.request_duration.labels(method=request.method, path=path).observe(time.perf_counter() - start)
