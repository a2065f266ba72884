# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Campground Reservations - capacity-safe booking core for campgrounds.

This library provides reservation admission control against per-campground
capacity, a reservation lifecycle with TTL expiry, and tag-based
"similar campgrounds" ranking.

Key Features:
    - Peak-occupancy admission over half-open date ranges
    - Per-campground asyncio locks; different campgrounds never contend
    - Derived interval index, rebuilt from storage and reconciled by the sweep
    - Background expiry of stale Pending holds and ended stays
    - Shared-tag similarity ranking with an inverted tag index
    - Multiple repository options (memory, Redis)
    - Prometheus metrics

Quick Start:
    >>> from campground_reservations import (
    ...     Campground, MemoryCampgroundRepository, create_service,
    ... )
    >>>
    >>> campgrounds = MemoryCampgroundRepository([Campground("cg-1", max_reservations=2)])
    >>> service = create_service(campgrounds)
    >>> async with service:
    ...     body = await service.create_reservation(
    ...         {"campgroundId": "cg-1", "startDate": "2024-06-01",
    ...          "endDate": "2024-06-05"},
    ...         user_id="user-1",
    ...     )

Main Exports:
    - ReservationService, create_service: Request-facing facade
    - AdmissionController, LifecycleManager: Core components
    - IntervalIndex: Peak-occupancy index
    - TagSimilarityRanker, TagCatalog: Similarity and tags
    - MemoryReservationRepository, RedisReservationRepository: Storage
    - ReservationConfig: Configuration options

Note: RedisReservationRepository requires the 'redis' extra. Install with:
    pip install campground-reservations[redis]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING, cast

from .admission import AdmissionController, CampgroundLocks
from .catalog import TagCatalog
from .config import ReservationConfig
from .exceptions import (
    AdmissionTimeoutError,
    CapacityExceededError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    RepositoryError,
    ReservationSystemError,
    ValidationError,
)
from .index import IntervalEntry, IntervalIndex
from .lifecycle import LifecycleManager
from .repositories import (
    CampgroundRepository,
    HealthCheckResult,
    MemoryCampgroundRepository,
    MemoryReservationRepository,
    MemoryTagRepository,
    ReservationRepository,
    TagRepository,
)
from .service import ReservationService, create_service, error_payload
from .similarity import TagSimilarityRanker
from .types import (
    Campground,
    DateRange,
    Reservation,
    ReservationStatus,
    Tag,
)

# Lazy import for optional redis repository
if TYPE_CHECKING:
    from .repositories.redis import RedisReservationRepository

__all__ = [
    "AdmissionController",
    "AdmissionTimeoutError",
    "Campground",
    "CampgroundLocks",
    "CampgroundRepository",
    "CapacityExceededError",
    "ConfigurationError",
    "ConflictError",
    "DateRange",
    "HealthCheckResult",
    "IntervalEntry",
    "IntervalIndex",
    "InvalidTransitionError",
    "LifecycleManager",
    "MemoryCampgroundRepository",
    "MemoryReservationRepository",
    "MemoryTagRepository",
    "NotFoundError",
    "RedisReservationRepository",
    "RepositoryError",
    "Reservation",
    "ReservationConfig",
    "ReservationRepository",
    "ReservationService",
    "ReservationStatus",
    "ReservationSystemError",
    "Tag",
    "TagCatalog",
    "TagRepository",
    "TagSimilarityRanker",
    "ValidationError",
    "__version__",
    "create_service",
    "error_payload",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis repository."""
    if name == "RedisReservationRepository":
        from .repositories import redis as redis_module

        return cast(type, redis_module.RedisReservationRepository)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
