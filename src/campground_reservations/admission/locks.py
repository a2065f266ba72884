# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Per-campground admission locks with bounded waits."""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator

from ..exceptions import AdmissionTimeoutError

logger = logging.getLogger(__name__)


class CampgroundLocks:
    """
    One asyncio.Lock per campground id, created on first use.

    Operations on different campgrounds never contend; operations on the same
    campground are serialized. Waiting is bounded so a hot campground cannot
    queue callers indefinitely.

    Locks are never discarded: the number of campgrounds is bounded by the
    catalog, and dropping a lock another coroutine is waiting on would break
    mutual exclusion.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        """
        Args:
            timeout: Default maximum wait in seconds
        """
        self._timeout = timeout
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, campground_id: str) -> asyncio.Lock:
        # setdefault keeps lock creation atomic on the event loop
        return self._locks.setdefault(campground_id, asyncio.Lock())

    @contextlib.asynccontextmanager
    async def hold(
        self, campground_id: str, timeout: float | None = None
    ) -> AsyncIterator[float]:
        """
        Hold a campground's lock for the duration of the block.

        Yields:
            Seconds spent waiting for the lock

        Raises:
            AdmissionTimeoutError: If the lock was not acquired within the timeout
        """
        wait_limit = self._timeout if timeout is None else timeout
        lock = self._lock_for(campground_id)
        started = time.monotonic()
        try:
            await asyncio.wait_for(lock.acquire(), timeout=wait_limit)
        except asyncio.TimeoutError as e:
            logger.warning(
                "Admission lock timeout: campground_id=%s, timeout=%.2fs",
                campground_id,
                wait_limit,
            )
            raise AdmissionTimeoutError(campground_id, wait_limit) from e

        try:
            yield time.monotonic() - started
        finally:
            lock.release()

    def locked(self, campground_id: str) -> bool:
        lock = self._locks.get(campground_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


__all__ = ["CampgroundLocks"]
