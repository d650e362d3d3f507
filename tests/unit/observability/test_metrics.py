"""Tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from tagcache.backend import TaggedRedisBackend
from tagcache.invalidation import CleaningMode
from tagcache.observability.metrics import MetricsRegistry, NoOpMetric, get_metrics


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsRegistry:
    """Tests for MetricsRegistry."""

    def test_get_metrics_initializes_once(self) -> None:
        """The global registry is initialized on first access."""
        metrics = get_metrics()

        assert metrics is get_metrics()
        assert metrics._initialized

    def test_uninitialized_registry_uses_noop(self) -> None:
        """Before initialization, metrics accept calls and do nothing."""
        registry = MetricsRegistry()

        assert isinstance(registry.cache_hits_total, NoOpMetric)
        registry.cache_invalidated_total.labels(mode="all").inc(3)

    def test_generate_latest(self) -> None:
        """Exposition output names the cache counters."""
        output = get_metrics().generate_latest()

        assert b"tagcache_hits_total" in output


class TestBackendCounters:
    """Counters driven by backend operations."""

    @pytest.mark.asyncio
    async def test_hits_and_misses(self, backend: TaggedRedisBackend) -> None:
        """Loads count hits and misses."""
        get_metrics()
        hits, misses = _sample("tagcache_hits_total"), _sample("tagcache_misses_total")
        await backend.save("v", "item")

        await backend.load("item")
        await backend.load("missing")

        assert _sample("tagcache_hits_total") == hits + 1
        assert _sample("tagcache_misses_total") == misses + 1

    @pytest.mark.asyncio
    async def test_invalidated_by_mode(self, backend: TaggedRedisBackend) -> None:
        """Bulk cleaning counts deleted entries per mode."""
        get_metrics()
        labels = {"mode": "matching_tag"}
        before = _sample("tagcache_invalidated_total", labels)
        await backend.save("a", "A", ["t"])
        await backend.save("b", "B", ["t"])

        await backend.clean(CleaningMode.MATCHING_TAG, ["t"])

        assert _sample("tagcache_invalidated_total", labels) == before + 2


class TestGauges:
    """Gauges refreshed from cache statistics."""

    def test_noop_gauge_accepts_set(self) -> None:
        """Uninitialized gauges ignore set()."""
        registry = MetricsRegistry()

        assert isinstance(registry.cache_entries, NoOpMetric)
        registry.cache_entries.set(5)

    def test_gauges_exported(self) -> None:
        """Set gauges appear in the exposition output."""
        metrics = get_metrics()
        metrics.cache_filling_percent.set(42)
        metrics.cache_entries.set(3)
        metrics.cache_tags.set(2)

        assert _sample("tagcache_filling_percent") == 42
        assert _sample("tagcache_entries") == 3
        assert b"tagcache_tags 2.0" in metrics.generate_latest()
