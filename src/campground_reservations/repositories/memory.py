# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
In-memory repositories for the campground reservations core.

Suitable for testing, development and single-process deployments. Every
read returns a copy, so callers can never mutate stored state by accident.
"""

import asyncio
import dataclasses
import logging
from collections import defaultdict

from ..types.catalog import Campground, Tag
from ..types.reservation import Reservation
from .base import (
    CampgroundRepository,
    HealthCheckResult,
    ReservationRepository,
    TagRepository,
)

logger = logging.getLogger(__name__)


def _copy_campground(campground: Campground) -> Campground:
    return dataclasses.replace(campground, tags=set(campground.tags))


class MemoryCampgroundRepository(CampgroundRepository):
    """Dict-backed campground storage."""

    def __init__(self, campgrounds: list[Campground] | None = None) -> None:
        self._campgrounds: dict[str, Campground] = {
            c.id: _copy_campground(c) for c in campgrounds or ()
        }
        self._lock = asyncio.Lock()

    async def get(self, campground_id: str) -> Campground | None:
        async with self._lock:
            campground = self._campgrounds.get(campground_id)
            return _copy_campground(campground) if campground else None

    async def list_all(self) -> list[Campground]:
        async with self._lock:
            return [_copy_campground(c) for c in self._campgrounds.values()]

    async def save(self, campground: Campground) -> None:
        async with self._lock:
            self._campgrounds[campground.id] = _copy_campground(campground)

    async def delete(self, campground_id: str) -> bool:
        async with self._lock:
            return self._campgrounds.pop(campground_id, None) is not None


class MemoryTagRepository(TagRepository):
    """Dict-backed tag storage with a case-insensitive name index."""

    def __init__(self, tags: list[Tag] | None = None) -> None:
        self._tags: dict[str, Tag] = {t.id: t for t in tags or ()}
        self._lock = asyncio.Lock()

    async def get(self, tag_id: str) -> Tag | None:
        async with self._lock:
            return self._tags.get(tag_id)

    async def get_by_name(self, name: str) -> Tag | None:
        wanted = name.strip().casefold()
        async with self._lock:
            for tag in self._tags.values():
                if tag.name.casefold() == wanted:
                    return tag
            return None

    async def list_all(self) -> list[Tag]:
        async with self._lock:
            return list(self._tags.values())

    async def save(self, tag: Tag) -> None:
        async with self._lock:
            self._tags[tag.id] = tag

    async def delete(self, tag_id: str) -> bool:
        async with self._lock:
            return self._tags.pop(tag_id, None) is not None


class MemoryReservationRepository(ReservationRepository):
    """
    An in-memory reservation store.

    Primary storage: Dict[reservation_id, Reservation]
    Secondary indexes: campground_id -> ids, user_id -> ids

    Note:
        This repository is NOT suitable for multi-process deployments; state
        is lost on restart.
    """

    def __init__(self, namespace: str = "campground_reservations_memory") -> None:
        super().__init__(namespace)
        self._reservations: dict[str, Reservation] = {}
        self._by_campground: dict[str, set[str]] = defaultdict(set)
        self._by_user: dict[str, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()
        logger.debug(
            "Initialized MemoryReservationRepository with namespace '%s'", namespace
        )

    async def get(self, reservation_id: str) -> Reservation | None:
        async with self._lock:
            reservation = self._reservations.get(reservation_id)
            return reservation.model_copy() if reservation else None

    async def save(self, reservation: Reservation) -> None:
        async with self._lock:
            self._reservations[reservation.id] = reservation.model_copy()
            self._by_campground[reservation.campground_id].add(reservation.id)
            self._by_user[reservation.user_id].add(reservation.id)

    def _collect(self, ids: set[str]) -> list[Reservation]:
        found = [self._reservations[i].model_copy() for i in ids]
        return sorted(found, key=lambda r: (r.created_at, r.id))

    async def list_by_campground(self, campground_id: str) -> list[Reservation]:
        async with self._lock:
            return self._collect(self._by_campground.get(campground_id, set()))

    async def list_by_user(self, user_id: str) -> list[Reservation]:
        async with self._lock:
            return self._collect(self._by_user.get(user_id, set()))

    async def list_active(self) -> list[Reservation]:
        async with self._lock:
            return self._collect(
                {rid for rid, r in self._reservations.items() if r.is_active}
            )

    async def health_check(self) -> HealthCheckResult:
        async with self._lock:
            count = len(self._reservations)
        return HealthCheckResult(
            healthy=True,
            backend_type="memory",
            namespace=self.namespace,
            metadata={"reservations": count},
        )

    async def clear(self) -> None:
        async with self._lock:
            self._reservations.clear()
            self._by_campground.clear()
            self._by_user.clear()
            logger.debug("Cleared all reservations")


__all__ = [
    "MemoryCampgroundRepository",
    "MemoryReservationRepository",
    "MemoryTagRepository",
]
