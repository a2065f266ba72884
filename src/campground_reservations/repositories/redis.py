# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
RedisReservationRepository for the campground reservations core

This module persists reservations in Redis so they survive restarts and
the interval index can be rebuilt from them at startup.

Key layout (``{ns}`` is the configured namespace):
- ``{ns}:reservation:{id}``: JSON-encoded reservation record
- ``{ns}:campground:{campground_id}:reservations``: set of reservation ids
- ``{ns}:user:{user_id}:reservations``: set of reservation ids
- ``{ns}:reservations:active``: set of Pending/Confirmed reservation ids

Every save runs as a MULTI/EXEC transaction so the record and its set
memberships change together.
"""

import json
import logging
import os
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..exceptions import RepositoryError
from ..types.reservation import Reservation
from .base import HealthCheckResult, ReservationRepository

logger = logging.getLogger(__name__)


class RedisReservationRepository(ReservationRepository):
    """
    Redis-backed system of record for reservations.

    Example:
        >>> async with RedisReservationRepository("redis://localhost:6379") as repo:
        ...     await repo.save(reservation)
    """

    def __init__(
        self,
        redis_url: str | None = None,
        redis_client: Any | None = None,
        namespace: str = "campground_reservations",
        max_connections: int = 10,
    ) -> None:
        """
        Initialize the Redis repository.

        Args:
            redis_url: Redis connection URL. If not provided, falls back to the
                REDIS_URL environment variable, then to "redis://localhost:6379".
            redis_client: Optional pre-configured async Redis client. The
                repository does not close clients it did not create.
            namespace: Namespace prefix for keys
            max_connections: Maximum connections in the pool
        """
        super().__init__(namespace)
        self.redis_url = redis_url or os.environ.get(
            "REDIS_URL", "redis://localhost:6379"
        )
        self._owned_redis = redis_client is None
        self._redis: Any = redis_client or Redis.from_url(
            self.redis_url,
            max_connections=max_connections,
            decode_responses=True,
        )

    # Keys

    def _reservation_key(self, reservation_id: str) -> str:
        return f"{self.namespace}:reservation:{reservation_id}"

    def _campground_key(self, campground_id: str) -> str:
        return f"{self.namespace}:campground:{campground_id}:reservations"

    def _user_key(self, user_id: str) -> str:
        return f"{self.namespace}:user:{user_id}:reservations"

    @property
    def _active_key(self) -> str:
        return f"{self.namespace}:reservations:active"

    # Serialization

    @staticmethod
    def _decode(raw: str | bytes) -> Reservation:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return Reservation.from_dict(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise RepositoryError(f"Corrupt reservation record: {e}") from e

    async def _load_many(self, ids: set[Any]) -> list[Reservation]:
        if not ids:
            return []
        keys = [self._reservation_key(_as_str(i)) for i in sorted(ids, key=_as_str)]
        try:
            raws = await self._redis.mget(keys)
        except RedisError as e:
            raise RepositoryError(f"Failed to load reservations: {e}") from e

        reservations = []
        for key, raw in zip(keys, raws, strict=True):
            if raw is None:
                logger.warning("Dangling reservation reference: %s", key)
                continue
            reservations.append(self._decode(raw))
        return sorted(reservations, key=lambda r: (r.created_at, r.id))

    # Repository interface

    async def get(self, reservation_id: str) -> Reservation | None:
        try:
            raw = await self._redis.get(self._reservation_key(reservation_id))
        except RedisError as e:
            raise RepositoryError(
                f"Failed to load reservation {reservation_id}: {e}"
            ) from e
        return self._decode(raw) if raw is not None else None

    async def save(self, reservation: Reservation) -> None:
        payload = json.dumps(reservation.to_dict())
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.set(self._reservation_key(reservation.id), payload)
                pipe.sadd(self._campground_key(reservation.campground_id), reservation.id)
                pipe.sadd(self._user_key(reservation.user_id), reservation.id)
                if reservation.is_active:
                    pipe.sadd(self._active_key, reservation.id)
                else:
                    pipe.srem(self._active_key, reservation.id)
                await pipe.execute()
        except RedisError as e:
            raise RepositoryError(
                f"Failed to save reservation {reservation.id}: {e}"
            ) from e

    async def _members(self, key: str) -> set[Any]:
        try:
            return set(await self._redis.smembers(key))
        except RedisError as e:
            raise RepositoryError(f"Failed to read {key}: {e}") from e

    async def list_by_campground(self, campground_id: str) -> list[Reservation]:
        return await self._load_many(
            await self._members(self._campground_key(campground_id))
        )

    async def list_by_user(self, user_id: str) -> list[Reservation]:
        return await self._load_many(await self._members(self._user_key(user_id)))

    async def list_active(self) -> list[Reservation]:
        reservations = await self._load_many(await self._members(self._active_key))
        # The active set is only a hint; the record's status is authoritative
        return [r for r in reservations if r.is_active]

    async def health_check(self) -> HealthCheckResult:
        """Perform health check on the repository."""
        try:
            await self._redis.ping()
            active = await self._redis.scard(self._active_key)
            return HealthCheckResult(
                healthy=True,
                backend_type="redis",
                namespace=self.namespace,
                metadata={"redis_url": self.redis_url, "active_reservations": active},
            )
        except RedisError as e:
            return HealthCheckResult(
                healthy=False,
                backend_type="redis",
                namespace=self.namespace,
                error=str(e),
            )

    async def close(self) -> None:
        """Close the connection pool if this repository created it."""
        if self._owned_redis and self._redis is not None:
            try:
                await self._redis.aclose()
            except RedisError as e:
                logger.error("Error closing Redis connection: %s", e)


def _as_str(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


__all__ = ["RedisReservationRepository"]
