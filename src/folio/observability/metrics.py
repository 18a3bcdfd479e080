"""Prometheus metrics for the pagination engine.

Provides metrics for:
- Store round-trips (count and latency by read kind)
- Jump hops by strategy
- Bookmark lookups (hit/miss)
- Totals computations by outcome

Usage:
    from folio.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.jump_hops_total.labels(strategy="bookmark").inc(3)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from folio.config import settings

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> NoOpMetric:
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        """No-op."""

    def observe(self, amount: float) -> None:
        """No-op."""


_NOOP = NoOpMetric()


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    store_reads_total: Any = _NOOP
    store_read_duration_seconds: Any = _NOOP
    jump_hops_total: Any = _NOOP
    bookmark_lookups_total: Any = _NOOP
    totals_computations_total: Any = _NOOP

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

        try:
            from prometheus_client import REGISTRY, Counter, Histogram

            self._registry = REGISTRY

            self.store_reads_total = Counter(
                "folio_store_reads_total",
                "Store round-trips issued by the pagination engine",
                ["kind"],
            )

            self.store_read_duration_seconds = Histogram(
                "folio_store_read_duration_seconds",
                "Store round-trip latency in seconds",
                ["kind"],
                buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            )

            self.jump_hops_total = Counter(
                "folio_jump_hops_total",
                "Sequential page hops performed while resolving jumps",
                ["strategy"],
            )

            self.bookmark_lookups_total = Counter(
                "folio_bookmark_lookups_total",
                "Bookmark lookups during jump resolution",
                ["result"],
            )

            self.totals_computations_total = Counter(
                "folio_totals_computations_total",
                "Total-count computations",
                ["status"],
            )

            self._initialized = True
            logger.info("Prometheus metrics initialized")

        except ImportError:
            logger.warning("prometheus_client not installed, metrics disabled")
            self._initialized = True

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"

        from prometheus_client import generate_latest

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
