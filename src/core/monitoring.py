"""Monitoring and metrics collection.

This module provides Prometheus metrics collection for relayed requests.
"""

from typing import Optional

from prometheus_client import Counter, Histogram, Info
import structlog

from .config import Settings

logger = structlog.get_logger(__name__)

# Extension methods share one label value.
_METHOD_LABELS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

# Prometheus metrics
relay_requests = Counter(
    "relay_requests_total",
    "Total number of relayed requests",
    ["method", "outcome"]
)

relay_duration = Histogram(
    "relay_request_duration_seconds",
    "Relay request duration in seconds",
    ["method"]
)

relay_response_bytes = Histogram(
    "relay_response_bytes",
    "Size of relayed response bodies in bytes",
    buckets=(0, 1024, 32 * 1024, 256 * 1024, 1024 * 1024, 8 * 1024 * 1024, 64 * 1024 * 1024)
)

error_count = Counter(
    "errors_total",
    "Total number of errors",
    ["type", "component"]
)

# Application info
app_info = Info(
    "app_info",
    "Application information"
)


def setup_monitoring(settings: Settings) -> None:
    """Setup monitoring and metrics collection."""
    logger.info("Setting up monitoring")

    app_info.info({
        "version": settings.app_version,
        "name": settings.app_name,
    })


def track_relay(
    method: str,
    outcome: str,
    duration: float,
    body_size: Optional[int] = None,
) -> None:
    """Track relay request metrics.

    Args:
        method: Inbound HTTP method.
        outcome: Relay outcome (relayed, forbidden, failed, no_response).
        duration: Relay duration in seconds.
        body_size: Size of the relayed body in bytes, if one was relayed.
    """
    if method not in _METHOD_LABELS:
        method = "OTHER"
    relay_requests.labels(method=method, outcome=outcome).inc()
    relay_duration.labels(method=method).observe(duration)

    if body_size is not None:
        relay_response_bytes.observe(body_size)


def track_error(error_type: str, component: str) -> None:
    """Track error occurrence.

    Args:
        error_type: Type of error.
        component: Component where error occurred.
    """
    error_count.labels(type=error_type, component=component).inc()
