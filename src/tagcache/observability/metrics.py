"""Prometheus metrics for the tagged cache.

Provides counters and gauges for:
- Load hits, misses and corrupt entries removed
- Saves and removals
- Entries invalidated by bulk cleaning, per cleaning mode
- Memory filling, entry and tag counts (gauges set by the stats command)

Usage:
    from tagcache.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, generate_latest

from tagcache.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        """No-op."""
        pass

    def set(self, value: float) -> None:
        """No-op."""
        pass


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    cache_hits_total: Any = field(default_factory=NoOpMetric)
    cache_misses_total: Any = field(default_factory=NoOpMetric)
    cache_corrupt_total: Any = field(default_factory=NoOpMetric)
    cache_saves_total: Any = field(default_factory=NoOpMetric)
    cache_removals_total: Any = field(default_factory=NoOpMetric)
    cache_invalidated_total: Any = field(default_factory=NoOpMetric)
    cache_filling_percent: Any = field(default_factory=NoOpMetric)
    cache_entries: Any = field(default_factory=NoOpMetric)
    cache_tags: Any = field(default_factory=NoOpMetric)

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.cache_hits_total = Counter(
            "tagcache_hits_total",
            "Loads that returned a stored payload",
        )
        self.cache_misses_total = Counter(
            "tagcache_misses_total",
            "Loads of absent ids",
        )
        self.cache_corrupt_total = Counter(
            "tagcache_corrupt_total",
            "Entries removed because their payload could not be decoded",
        )
        self.cache_saves_total = Counter(
            "tagcache_saves_total",
            "Entries written",
        )
        self.cache_removals_total = Counter(
            "tagcache_removals_total",
            "Single-entry removals",
        )
        self.cache_invalidated_total = Counter(
            "tagcache_invalidated_total",
            "Entries deleted by bulk cleaning",
            ["mode"],
        )

        # Index sizes, set by `tagcache stats`
        self.cache_filling_percent = Gauge(
            "tagcache_filling_percent",
            "Redis used memory as a percentage of maxmemory",
        )
        self.cache_entries = Gauge(
            "tagcache_entries",
            "Cache entries currently stored",
        )
        self.cache_tags = Gauge(
            "tagcache_tags",
            "Registered tag names",
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"

        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry
