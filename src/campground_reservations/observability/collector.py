# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Unified metrics collector supporting both dict-based and Prometheus metrics.

This module provides the UnifiedMetricsCollector class that serves as the
single source of truth for all metrics in the campground reservations library.

Features:
    1. Thread-safe counter/gauge/histogram operations
    2. Prometheus metric registration on first use
    3. Dict snapshot for JSON export and tests
    4. Label cardinality protection (max 1000 unique combinations per metric)

Usage:
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter(RESERVATIONS_ADMITTED_TOTAL,
    ...                       labels={'campground_id': 'cg-1'})
    >>> metrics = collector.get_metrics()
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from .constants import (
    ADMISSION_LOCK_WAIT_SECONDS,
    INDEX_REPAIRS_TOTAL,
    LATENCY_BUCKETS,
    RESERVATION_TRANSITIONS_TOTAL,
    RESERVATIONS_ACTIVE,
    RESERVATIONS_ADMITTED_TOTAL,
    RESERVATIONS_EXPIRED_TOTAL,
    RESERVATIONS_REJECTED_TOTAL,
    SWEEP_DURATION_BUCKETS,
    SWEEP_DURATION_SECONDS,
    SWEEP_FAILURES_TOTAL,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    RESERVATIONS_ADMITTED_TOTAL: MetricDefinition(
        RESERVATIONS_ADMITTED_TOTAL,
        "counter",
        "Total reservations admitted",
        ("campground_id",),
    ),
    RESERVATIONS_REJECTED_TOTAL: MetricDefinition(
        RESERVATIONS_REJECTED_TOTAL,
        "counter",
        "Total reservation requests rejected",
        ("reason",),
    ),
    RESERVATION_TRANSITIONS_TOTAL: MetricDefinition(
        RESERVATION_TRANSITIONS_TOTAL,
        "counter",
        "Total reservation status transitions",
        ("status",),
    ),
    ADMISSION_LOCK_WAIT_SECONDS: MetricDefinition(
        ADMISSION_LOCK_WAIT_SECONDS,
        "histogram",
        "Time spent waiting for a campground admission lock",
        (),
        buckets=LATENCY_BUCKETS,
    ),
    RESERVATIONS_ACTIVE: MetricDefinition(
        RESERVATIONS_ACTIVE,
        "gauge",
        "Active reservations held in the interval index",
        ("campground_id",),
    ),
    RESERVATIONS_EXPIRED_TOTAL: MetricDefinition(
        RESERVATIONS_EXPIRED_TOTAL,
        "counter",
        "Total reservations expired by the sweep",
        ("reason",),
    ),
    SWEEP_FAILURES_TOTAL: MetricDefinition(
        SWEEP_FAILURES_TOTAL,
        "counter",
        "Total per-item sweep failures",
        (),
    ),
    SWEEP_DURATION_SECONDS: MetricDefinition(
        SWEEP_DURATION_SECONDS,
        "histogram",
        "Duration of expiry sweeps",
        (),
        buckets=SWEEP_DURATION_BUCKETS,
    ),
    INDEX_REPAIRS_TOTAL: MetricDefinition(
        INDEX_REPAIRS_TOTAL,
        "counter",
        "Total interval index entries repaired by reconciliation",
        ("action",),
    ),
}


class UnifiedMetricsCollector:
    """
    Unified metrics collector supporting both dict-based and Prometheus metrics.

    Thread Safety:
        All operations use RLock for thread-safe access.

    Cardinality Protection:
        To prevent unbounded memory growth, a maximum of MAX_LABEL_COMBINATIONS
        unique label combinations are tracked per metric.
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to mirror metrics to prometheus_client
            registry: Optional Prometheus CollectorRegistry for testing
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        self._lock = threading.RLock()
        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)

        logger.debug(
            "UnifiedMetricsCollector initialized (prometheus=%s)",
            "enabled" if self._enable_prometheus else "disabled",
        )

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """
        Check if adding this label combination would exceed cardinality limit.

        Returns:
            True if the label combination is allowed, False otherwise
        """
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                "Cardinality limit (%d) reached for metric %s. "
                "Dropping label combination: %s",
                self.MAX_LABEL_COMBINATIONS,
                name,
                label_key,
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom(self, name: str, metric_type: str) -> Any | None:
        """Get or create the Prometheus metric backing ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name) or MetricDefinition(
                name, metric_type, f"Dynamic {metric_type}: {name}"
            )
            try:
                if metric_type == "counter":
                    metric: Any = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                elif metric_type == "gauge":
                    metric = Gauge(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                else:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=defn.buckets or LATENCY_BUCKETS,
                        registry=self._registry,
                    )
            except ValueError as e:
                # Duplicate registration in the shared default registry
                logger.warning("Failed to create Prometheus %s %s: %s", metric_type, name, e)
                metric = None
            self._prom_metrics[name] = metric
            return metric

    def _apply_prom(
        self,
        name: str,
        metric_type: str,
        method: str,
        value: float,
        labels: dict[str, str] | None,
    ) -> None:
        metric = self._get_or_create_prom(name, metric_type)
        if metric is None:
            return
        try:
            target = metric.labels(**labels) if labels else metric
            getattr(target, method)(value)
        except ValueError as e:
            logger.debug("Prometheus %s update failed for %s: %s", metric_type, name, e)

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        self._apply_prom(name, "counter", "inc", value, labels)

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        self._apply_prom(name, "gauge", "set", value, labels)

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            observations = self._histograms[name][label_key]
            observations.append(value)
            # Keep only recent observations to prevent memory growth
            if len(observations) > 10000:
                del observations[:-5000]

        self._apply_prom(name, "histogram", "observe", value, labels)

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {name: dict(values) for name, values in self._counters.items()}
            gauges = {name: dict(values) for name, values in self._gauges.items()}
            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {"counters": counters, "gauges": gauges, "histograms": histograms}

    def counter_value(self, name: str, labels: dict[str, str] | None = None) -> int:
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def reset(self) -> None:
        """Reset all dict-based metrics to zero."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

        logger.debug("Metrics collector reset")

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus


# =============================================================================
# Singleton Pattern
# =============================================================================

_global_collector: UnifiedMetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> UnifiedMetricsCollector:
    """
    Get or create the global metrics collector singleton.

    Args:
        enable_prometheus: Whether to enable Prometheus metrics
            (only used on first call)
    """
    global _global_collector

    if _global_collector is None:
        with _collector_lock:
            if _global_collector is None:
                _global_collector = UnifiedMetricsCollector(
                    enable_prometheus=enable_prometheus
                )

    return _global_collector


def reset_metrics_collector() -> None:
    """
    Reset the global metrics collector singleton (mainly for testing).

    Prometheus metrics already registered in the default registry stay
    registered; the next collector logs a warning and keeps dict metrics only.
    """
    global _global_collector
    with _collector_lock:
        if _global_collector:
            _global_collector.reset()
        _global_collector = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
