# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `campground_res_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `campground_id` - Campground (bounded by the catalog size)
    - `reason` - Rejection or expiry reason (enum)
    - `status` - Reservation status (enum)

    NEVER use:
    - `reservation_id` - Unique per reservation (unbounded!)
    - `user_id` - Unique per user (unbounded!)
"""


METRIC_PREFIX = "campground_res"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Admission Metrics (admission/controller.py)
# =============================================================================

RESERVATIONS_ADMITTED_TOTAL = f"{METRIC_PREFIX}_reservations_admitted_total"
"""Total reservations admitted."""

RESERVATIONS_REJECTED_TOTAL = f"{METRIC_PREFIX}_reservations_rejected_total"
"""Total reservation requests rejected (capacity, timeout, repository error)."""

RESERVATION_TRANSITIONS_TOTAL = f"{METRIC_PREFIX}_reservation_transitions_total"
"""Total reservation status transitions, by target status."""

ADMISSION_LOCK_WAIT_SECONDS = f"{METRIC_PREFIX}_admission_lock_wait_seconds"
"""Time spent waiting for a campground's admission lock (histogram)."""


# =============================================================================
# Active State Gauges
# =============================================================================

RESERVATIONS_ACTIVE = f"{METRIC_PREFIX}_reservations_active"
"""Number of Pending/Confirmed reservations held in the interval index."""


# =============================================================================
# Lifecycle Metrics (lifecycle/manager.py)
# =============================================================================

RESERVATIONS_EXPIRED_TOTAL = f"{METRIC_PREFIX}_reservations_expired_total"
"""Total reservations expired by the sweep."""

SWEEP_FAILURES_TOTAL = f"{METRIC_PREFIX}_sweep_failures_total"
"""Total per-item sweep failures (retried on the next run)."""

SWEEP_DURATION_SECONDS = f"{METRIC_PREFIX}_sweep_duration_seconds"
"""Duration of expiry sweeps (histogram)."""

INDEX_REPAIRS_TOTAL = f"{METRIC_PREFIX}_index_repairs_total"
"""Total interval index entries repaired by sweep reconciliation."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS = [0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0]
"""Buckets for lock wait histograms (seconds)."""

SWEEP_DURATION_BUCKETS = [0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0]
"""Buckets for sweep duration histograms (seconds)."""


__all__ = [
    "ADMISSION_LOCK_WAIT_SECONDS",
    "INDEX_REPAIRS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "RESERVATIONS_ACTIVE",
    "RESERVATIONS_ADMITTED_TOTAL",
    "RESERVATIONS_EXPIRED_TOTAL",
    "RESERVATIONS_REJECTED_TOTAL",
    "RESERVATION_TRANSITIONS_TOTAL",
    "SWEEP_DURATION_BUCKETS",
    "SWEEP_DURATION_SECONDS",
    "SWEEP_FAILURES_TOTAL",
]
