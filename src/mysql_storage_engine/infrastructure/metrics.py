"""Prometheus metrics for the storage engine."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    REGISTRY,
    CollectorRegistry,
)

from mysql_storage_engine.ports.inbound.storage_engine import KeyFoundError, KeyNotFoundError


class MetricsRegistry:
    """Registry of all storage engine metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        self.operations_total = Counter(
            "storage_operations_total",
            "Total storage operations",
            ["operation", "status"],  # status: success, not_found, found, error
            registry=self._registry,
        )

        self.operation_latency_seconds = Histogram(
            "storage_operation_latency_seconds",
            "Storage operation latency in seconds",
            ["operation"],  # get, put, del, has, size
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

        self.migrated_entries_total = Counter(
            "storage_migrated_entries_total",
            "Entries processed by migration",
            ["outcome"],  # migrated, skipped, failed
            registry=self._registry,
        )

        self.size_query_failures_total = Counter(
            "storage_size_query_failures_total",
            "Size queries that failed and reported zero",
            registry=self._registry,
        )

        self.info = Info(
            "storage_engine",
            "Storage engine information",
            registry=self._registry,
        )

    @contextmanager
    def observe(self, operation: str) -> Iterator[None]:
        """Time an operation and count it by outcome.

        Domain errors are counted as ``not_found`` / ``found``; anything else
        as ``error``. The exception is always re-raised.
        """
        start = time.perf_counter()
        status = "success"
        try:
            yield
        except KeyNotFoundError:
            status = "not_found"
            raise
        except KeyFoundError:
            status = "found"
            raise
        except Exception:
            status = "error"
            raise
        finally:
            self.operation_latency_seconds.labels(operation=operation).observe(
                time.perf_counter() - start
            )
            self.operations_total.labels(operation=operation, status=status).inc()


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Create the global metrics registry.

    The engine is a library, so it exposes metrics on the host's registry
    rather than starting its own HTTP server.

    Args:
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from mysql_storage_engine import ENGINE_NAME, __version__
    _metrics.info.info({
        "name": ENGINE_NAME,
        "version": __version__,
    })

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = setup_metrics()
    return _metrics
