# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the campground reservations core.

Classes:
    UnifiedMetricsCollector: Unified metrics collector supporting dict and Prometheus.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    UnifiedMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    ADMISSION_LOCK_WAIT_SECONDS,
    INDEX_REPAIRS_TOTAL,
    METRIC_PREFIX,
    RESERVATION_TRANSITIONS_TOTAL,
    RESERVATIONS_ACTIVE,
    RESERVATIONS_ADMITTED_TOTAL,
    RESERVATIONS_EXPIRED_TOTAL,
    RESERVATIONS_REJECTED_TOTAL,
    SWEEP_DURATION_SECONDS,
    SWEEP_FAILURES_TOTAL,
)

__all__ = [
    "ADMISSION_LOCK_WAIT_SECONDS",
    "INDEX_REPAIRS_TOTAL",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "RESERVATIONS_ACTIVE",
    "RESERVATIONS_ADMITTED_TOTAL",
    "RESERVATIONS_EXPIRED_TOTAL",
    "RESERVATIONS_REJECTED_TOTAL",
    "RESERVATION_TRANSITIONS_TOTAL",
    "SWEEP_DURATION_SECONDS",
    "SWEEP_FAILURES_TOTAL",
    "MetricDefinition",
    # Unified collector
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
