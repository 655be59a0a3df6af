"""Logging, Prometheus metrics and tracing wiring."""

from __future__ import annotations

from nomasoft.observability.logging import configure_logging
from nomasoft.observability.metrics import (
    MetricsMiddleware,
    metrics_response,
    record_contact_outcome,
)

__all__ = [
    "MetricsMiddleware",
    "configure_logging",
    "metrics_response",
    "record_contact_outcome",
]
