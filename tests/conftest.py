"""Shared fixtures for the campground reservations test suite."""

import pytest

from campground_reservations.config import ReservationConfig
from campground_reservations.observability.collector import UnifiedMetricsCollector
from campground_reservations.repositories.memory import (
    MemoryCampgroundRepository,
    MemoryReservationRepository,
    MemoryTagRepository,
)
from campground_reservations.types.catalog import Campground, Tag


@pytest.fixture
def metrics():
    """Dict-only collector so tests never touch the global Prometheus registry."""
    return UnifiedMetricsCollector(enable_prometheus=False)


@pytest.fixture
def config():
    return ReservationConfig(admission_timeout=1.0, pending_ttl=3600.0, sweep_interval=0.05)


@pytest.fixture
def campgrounds():
    return MemoryCampgroundRepository(
        [
            Campground("cg-1", max_reservations=2, name="Pine Hollow"),
            Campground("cg-2", max_reservations=1, name="Lakeside"),
        ]
    )


@pytest.fixture
def reservations():
    return MemoryReservationRepository(namespace="test")


@pytest.fixture
def tags():
    return MemoryTagRepository(
        [
            Tag("t-a", "Lakefront"),
            Tag("t-b", "Pet friendly"),
            Tag("t-c", "Hiking"),
            Tag("t-d", "RV hookups"),
        ]
    )
