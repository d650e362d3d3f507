"""Observability for the tagged cache.

Provides structured logging and Prometheus metrics:
- JSON or console logging with correlation IDs
- Counters for hits, misses, corrupt entries and invalidations
"""

from tagcache.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
)
from tagcache.observability.metrics import (
    MetricsRegistry,
    get_metrics,
    metrics_registry,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "correlation_id_var",
    # Metrics
    "MetricsRegistry",
    "metrics_registry",
    "get_metrics",
]
