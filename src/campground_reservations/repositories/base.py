# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base repositories for the campground reservations core.

This module provides the abstract repository interfaces the admission
controller, lifecycle manager, similarity ranker and tag catalog depend on.
Components receive repositories explicitly; there is no ambient registry.

Features:
- Campground lookups (capacity, tags, rating)
- Tag storage with unique names
- Reservation storage as the system of record for the interval index
"""

import abc
import logging
from dataclasses import dataclass
from typing import Any

from ..types.catalog import Campground, Tag
from ..types.reservation import Reservation

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    """
    Structured health check result for repository monitoring.

    Attributes:
        healthy: Whether the repository is operational
        backend_type: Type of repository (e.g., 'redis', 'memory')
        namespace: Repository namespace
        error: Error message if unhealthy
        metadata: Additional repository-specific information
    """

    healthy: bool
    backend_type: str
    namespace: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


class CampgroundRepository(abc.ABC):
    """Read-mostly access to campgrounds owned by the catalog subsystem."""

    @abc.abstractmethod
    async def get(self, campground_id: str) -> Campground | None:
        """
        Get a campground by id.

        Returns:
            The campground if it exists, None otherwise
        """
        pass

    @abc.abstractmethod
    async def list_all(self) -> list[Campground]:
        """Return every campground."""
        pass

    @abc.abstractmethod
    async def save(self, campground: Campground) -> None:
        """Insert or replace a campground."""
        pass

    @abc.abstractmethod
    async def delete(self, campground_id: str) -> bool:
        """
        Delete a campground.

        Returns:
            True if it existed
        """
        pass


class TagRepository(abc.ABC):
    """Storage for tags."""

    @abc.abstractmethod
    async def get(self, tag_id: str) -> Tag | None:
        pass

    @abc.abstractmethod
    async def get_by_name(self, name: str) -> Tag | None:
        """Case-insensitive lookup by name."""
        pass

    @abc.abstractmethod
    async def list_all(self) -> list[Tag]:
        pass

    @abc.abstractmethod
    async def save(self, tag: Tag) -> None:
        pass

    @abc.abstractmethod
    async def delete(self, tag_id: str) -> bool:
        pass


class ReservationRepository(abc.ABC):
    """
    System of record for reservations.

    The interval index is rebuilt from ``list_active`` at startup, so every
    implementation must return every Pending and Confirmed reservation there.
    """

    def __init__(self, namespace: str = "campground_reservations"):
        """
        Initialize the repository with a namespace for isolation.

        Args:
            namespace: Namespace for isolating data across different instances
        """
        self.namespace = namespace

    @abc.abstractmethod
    async def get(self, reservation_id: str) -> Reservation | None:
        pass

    @abc.abstractmethod
    async def save(self, reservation: Reservation) -> None:
        """
        Insert or replace a reservation.

        Raises:
            RepositoryError: If the write fails
        """
        pass

    @abc.abstractmethod
    async def list_by_campground(self, campground_id: str) -> list[Reservation]:
        pass

    @abc.abstractmethod
    async def list_by_user(self, user_id: str) -> list[Reservation]:
        pass

    @abc.abstractmethod
    async def list_active(self) -> list[Reservation]:
        """Return every Pending or Confirmed reservation."""
        pass

    @abc.abstractmethod
    async def health_check(self) -> HealthCheckResult:
        pass

    async def list_active_by_campground(self, campground_id: str) -> list[Reservation]:
        return [r for r in await self.list_by_campground(campground_id) if r.is_active]

    async def close(self) -> None:  # noqa: B027
        """Release any held resources. No-op by default."""

    async def __aenter__(self) -> "ReservationRepository":
        return self

    async def __aexit__(self, exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()


__all__ = [
    "CampgroundRepository",
    "HealthCheckResult",
    "ReservationRepository",
    "TagRepository",
]
