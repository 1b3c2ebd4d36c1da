"""
Metrics Collection

Prometheus metrics for the tile cache. Each ``TileMetrics`` instance owns its
own ``CollectorRegistry`` so several applications (and test cases) can live in
one process without clashing on metric names.

Tracked:
- Tile requests by source and cache status
- Request errors by source and error type
- Upstream fetch latency
- Background cache write outcomes
- Storage errors by operation
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import structlog
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class TileMetrics:
    """Prometheus metrics collector for the tile cache service."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Registry to attach metrics to, a private one by default
        """
        self.registry = registry or CollectorRegistry()
        self.logger = structlog.get_logger(collector_type="TileMetrics")

        self.counters: Dict[str, Counter] = {}
        self.histograms: Dict[str, Histogram] = {}

        self._create_metric(
            'counter', 'tile_requests_total',
            'Total number of tiles served',
            ['source', 'cache_status']
        )
        self._create_metric(
            'counter', 'tile_request_errors_total',
            'Total number of failed tile requests',
            ['source', 'error_type']
        )
        self._create_metric(
            'histogram', 'upstream_fetch_duration_seconds',
            'Duration of upstream tile fetches',
            ['source']
        )
        self._create_metric(
            'counter', 'tile_cache_writes_total',
            'Total number of background cache writes',
            ['status']
        )
        self._create_metric(
            'counter', 'tile_storage_errors_total',
            'Total number of object store errors',
            ['operation']
        )

    def _create_metric(
        self,
        metric_type: str,
        name: str,
        description: str,
        labels: Optional[List[str]] = None
    ) -> None:
        """Create a Prometheus metric in this collector's registry."""
        labels = labels or []

        if metric_type == 'counter':
            self.counters[name] = Counter(
                name, description, labels,
                registry=self.registry
            )
        elif metric_type == 'histogram':
            self.histograms[name] = Histogram(
                name, description, labels,
                registry=self.registry
            )
        else:
            raise ValueError(f"Unsupported metric type: {metric_type}")

    def record_tile_served(self, source: str, cache_status: str) -> None:
        self.counters['tile_requests_total'].labels(
            source=source, cache_status=cache_status
        ).inc()

    def record_request_error(self, source: str, error_type: str) -> None:
        self.counters['tile_request_errors_total'].labels(
            source=source or "unknown", error_type=error_type
        ).inc()

    def record_cache_write(self, success: bool) -> None:
        status = "success" if success else "failure"
        self.counters['tile_cache_writes_total'].labels(status=status).inc()

    def record_storage_error(self, operation: str) -> None:
        self.counters['tile_storage_errors_total'].labels(operation=operation).inc()

    @contextmanager
    def time_upstream_fetch(self, source: str) -> Iterator[None]:
        """Observe the duration of the enclosed upstream fetch."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.histograms['upstream_fetch_duration_seconds'].labels(
                source=source
            ).observe(time.perf_counter() - start)

    def get_sample_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Current value of a sample, ``None`` when it was never recorded."""
        return self.registry.get_sample_value(name, labels or {})

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)
