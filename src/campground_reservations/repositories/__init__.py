# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Repository implementations for campgrounds, tags and reservations.

Available repositories:
- CampgroundRepository, TagRepository, ReservationRepository: abstract interfaces
- MemoryCampgroundRepository, MemoryTagRepository, MemoryReservationRepository:
  in-memory implementations for single-process deployments and tests
- RedisReservationRepository: persistent reservation storage (requires redis extra)

Note: RedisReservationRepository is lazily imported to avoid requiring the
redis package when only the in-memory repositories are used.
"""

from typing import TYPE_CHECKING, cast

from campground_reservations.repositories.base import (
    CampgroundRepository,
    HealthCheckResult,
    ReservationRepository,
    TagRepository,
)
from campground_reservations.repositories.memory import (
    MemoryCampgroundRepository,
    MemoryReservationRepository,
    MemoryTagRepository,
)

# Lazy import for optional redis repository
if TYPE_CHECKING:
    from campground_reservations.repositories.redis import RedisReservationRepository

__all__ = [
    # Base classes
    "CampgroundRepository",
    "HealthCheckResult",
    # Memory repositories
    "MemoryCampgroundRepository",
    "MemoryReservationRepository",
    "MemoryTagRepository",
    # Redis repository (lazy loaded)
    "RedisReservationRepository",
    "ReservationRepository",
    "TagRepository",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis repository."""
    if name == "RedisReservationRepository":
        try:
            from campground_reservations.repositories import redis as redis_module

            return cast(type, getattr(redis_module, name))
        except ImportError as e:  # pragma: no cover
            raise ImportError(  # pragma: no cover
                f"'{name}' requires the 'redis' extra. "
                "Install with: pip install campground-reservations[redis]"
            ) from e
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
