"""
Shared fixtures for benchmark tests.
"""

import pytest

from campground_reservations.admission import AdmissionController
from campground_reservations.config import ReservationConfig
from campground_reservations.index import IntervalIndex
from campground_reservations.observability.collector import UnifiedMetricsCollector
from campground_reservations.repositories.memory import (
    MemoryCampgroundRepository,
    MemoryReservationRepository,
)
from campground_reservations.types.catalog import Campground

CAMPGROUND_COUNT = 50


@pytest.fixture
def benchmark_campgrounds():
    return MemoryCampgroundRepository(
        [Campground(f"bench-{i}", max_reservations=10_000) for i in range(CAMPGROUND_COUNT)]
    )


@pytest.fixture
def benchmark_controller(benchmark_campgrounds):
    """Controller with metrics kept in dicts only."""
    return AdmissionController(
        benchmark_campgrounds,
        MemoryReservationRepository(namespace="benchmark"),
        IntervalIndex(),
        config=ReservationConfig(admission_timeout=30.0),
        metrics=UnifiedMetricsCollector(enable_prometheus=False),
    )
