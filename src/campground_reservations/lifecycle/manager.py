# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Time-driven reservation lifecycle.

The LifecycleManager owns the only transition into Expired:

- Pending reservations expire once ``created_at + pending_ttl`` has passed.
- Confirmed (and Pending) reservations expire once their stay has ended,
  i.e. at 00:00 UTC of the range end date.

Each expiry is persisted first and then removed from the interval index,
under the owning campground's admission lock. While holding that lock the
sweep also reconciles the campground's index entries with the repository,
so a cache that drifted (a crash between write and index update, a record
changed by another process) converges within one sweep cycle.
"""

import asyncio
import contextlib
import logging
import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any

from ..admission.locks import CampgroundLocks
from ..config import ReservationConfig
from ..exceptions import AdmissionTimeoutError, RepositoryError
from ..index.interval_index import IntervalIndex
from ..observability.collector import UnifiedMetricsCollector, get_metrics_collector
from ..observability.constants import (
    INDEX_REPAIRS_TOTAL,
    RESERVATION_TRANSITIONS_TOTAL,
    RESERVATIONS_ACTIVE,
    RESERVATIONS_EXPIRED_TOTAL,
    SWEEP_DURATION_SECONDS,
    SWEEP_FAILURES_TOTAL,
)
from ..repositories.base import ReservationRepository
from ..types.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Expires reservations and keeps the interval index consistent.

    The manager shares its IntervalIndex and CampgroundLocks with the
    AdmissionController; both must be the same instances for the capacity
    guarantee to hold.
    """

    def __init__(
        self,
        reservations: ReservationRepository,
        index: IntervalIndex,
        locks: CampgroundLocks,
        config: ReservationConfig | None = None,
        metrics: UnifiedMetricsCollector | None = None,
    ) -> None:
        """
        Initialize the lifecycle manager.

        Args:
            reservations: System of record for reservations
            index: Interval index shared with the admission controller
            locks: Per-campground locks shared with the admission controller
            config: Reservation configuration (TTL and sweep interval)
            metrics: Metrics collector (defaults to the global collector)
        """
        self._config = config or ReservationConfig()
        self._reservations = reservations
        self._index = index
        self._locks = locks
        self._metrics = metrics
        if self._metrics is None and self._config.metrics_enabled:
            self._metrics = get_metrics_collector()

        self._sweep_task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    # ------------------------------------------------------------------
    # Expiry rules
    # ------------------------------------------------------------------

    def expiry_reason(self, reservation: Reservation, now: datetime) -> str | None:
        """
        Return why ``reservation`` is due to expire at ``now``, or None.

        Reasons are ``"ttl"`` for an unconfirmed hold that outlived
        ``pending_ttl`` and ``"ended"`` for a stay whose end has passed.
        """
        if not reservation.is_active:
            return None
        if reservation.status is ReservationStatus.PENDING:
            deadline = reservation.created_at + timedelta(seconds=self._config.pending_ttl)
            if deadline <= now:
                return "ttl"
        if reservation.date_range.end_instant() <= now:
            return "ended"
        return None

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    async def sweep_expired(self, now: datetime | None = None) -> list[str]:
        """
        Expire every due reservation and reconcile the index.

        Per-item failures are logged and counted but never raised; the item
        stays active and is picked up again by the next sweep. Running the
        sweep again on an already-swept set changes nothing.

        Args:
            now: Evaluation time (defaults to the current UTC time; naive
                values are taken as UTC)

        Returns:
            Ids of the reservations expired by this run
        """
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        started = time.monotonic()
        candidates = await self._reservations.list_active()

        by_campground: dict[str, list[Reservation]] = defaultdict(list)
        for reservation in candidates:
            by_campground[reservation.campground_id].append(reservation)
        # Campgrounds only the index knows about still need reconciliation
        campground_ids = set(by_campground) | self._index.campground_ids()

        expired: list[str] = []
        failures = 0
        for campground_id in sorted(campground_ids):
            due = [
                r for r in by_campground.get(campground_id, ())
                if self.expiry_reason(r, now) is not None
            ]
            try:
                async with self._locks.hold(campground_id):
                    for reservation in due:
                        try:
                            if await self._expire_one(reservation.id, now):
                                expired.append(reservation.id)
                        except RepositoryError as e:
                            failures += 1
                            logger.warning(
                                "Sweep failed to expire reservation %s: %s",
                                reservation.id,
                                e,
                            )
                        except Exception:
                            failures += 1
                            logger.exception(
                                "Unexpected error expiring reservation %s",
                                reservation.id,
                            )
                    try:
                        await self._reconcile(campground_id)
                    except Exception:
                        failures += 1
                        logger.exception(
                            "Index reconciliation failed for campground %s",
                            campground_id,
                        )
            except AdmissionTimeoutError:
                failures += max(len(due), 1)
                logger.warning(
                    "Sweep skipped campground %s: lock not acquired, %d reservations deferred",
                    campground_id,
                    len(due),
                )
                continue

            self._record_active(campground_id)

        duration = time.monotonic() - started
        if self._metrics:
            self._metrics.observe_histogram(SWEEP_DURATION_SECONDS, duration)
            if failures:
                self._metrics.inc_counter(SWEEP_FAILURES_TOTAL, value=failures)

        if expired or failures:
            logger.info(
                "Sweep complete: expired=%d, failures=%d, campgrounds=%d, duration=%.3fs",
                len(expired),
                failures,
                len(campground_ids),
                duration,
            )
        else:
            logger.debug("Sweep complete: nothing to expire")
        return expired

    async def _expire_one(self, reservation_id: str, now: datetime) -> bool:
        # Re-read under the lock: a cancel or confirm may have landed meanwhile
        current = await self._reservations.get(reservation_id)
        if current is None:
            return False
        reason = self.expiry_reason(current, now)
        if reason is None:
            return False

        expired = current.with_status(ReservationStatus.EXPIRED, at=now)
        await self._reservations.save(expired)
        self._index.remove(current.campground_id, current.id)

        if self._metrics:
            self._metrics.inc_counter(RESERVATIONS_EXPIRED_TOTAL, labels={"reason": reason})
            self._metrics.inc_counter(
                RESERVATION_TRANSITIONS_TOTAL,
                labels={"status": ReservationStatus.EXPIRED.value},
            )
        logger.info(
            "Reservation expired: reservation_id=%s, campground_id=%s, reason=%s",
            current.id,
            current.campground_id,
            reason,
        )
        return True

    async def _reconcile(self, campground_id: str) -> None:
        """Make a campground's index entries match its active reservations."""
        active = {
            r.id: r
            for r in await self._reservations.list_active_by_campground(campground_id)
        }
        indexed = self._index.reservation_ids(campground_id)

        for reservation_id in indexed - active.keys():
            self._index.remove(campground_id, reservation_id)
            self._record_repair("dropped")
            logger.warning(
                "Dropped stale index entry: campground_id=%s, reservation_id=%s",
                campground_id,
                reservation_id,
            )

        for reservation_id in active.keys() - indexed:
            reservation = active[reservation_id]
            self._index.insert(
                campground_id, reservation.id, reservation.date_range, reservation.count
            )
            self._record_repair("restored")
            logger.warning(
                "Restored missing index entry: campground_id=%s, reservation_id=%s",
                campground_id,
                reservation_id,
            )

    def _record_repair(self, action: str) -> None:
        if self._metrics:
            self._metrics.inc_counter(INDEX_REPAIRS_TOTAL, labels={"action": action})

    def _record_active(self, campground_id: str) -> None:
        if self._metrics:
            self._metrics.set_gauge(
                RESERVATIONS_ACTIVE,
                len(self._index.reservation_ids(campground_id)),
                labels={"campground_id": campground_id},
            )

    # ------------------------------------------------------------------
    # Startup and background loop
    # ------------------------------------------------------------------

    async def rebuild_index(self) -> int:
        """
        Rebuild the interval index from the repository.

        Intended for startup, before the controller starts admitting.

        Returns:
            Number of active reservations loaded
        """
        active = await self._reservations.list_active()
        return self._index.rebuild(active)

    async def start(self, rebuild: bool = True) -> None:
        """
        Start the background sweep loop.

        Args:
            rebuild: Rebuild the interval index from the repository first
        """
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        if rebuild:
            await self.rebuild_index()
        self._running = True
        self._sweep_task = asyncio.create_task(
            self._sweep_loop(),
            name="reservation_sweep",
        )
        logger.debug(
            "Started reservation sweep task (interval=%.1fs)", self._config.sweep_interval
        )

    async def stop(self) -> None:
        """Cancel the background sweep loop and wait for it to finish."""
        self._running = False
        if self._sweep_task and not self._sweep_task.done():
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
        self._sweep_task = None
        logger.debug("Stopped reservation sweep task")

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.sweep_interval)
                await self.sweep_expired()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Reservation sweep cycle failed")

    async def __aenter__(self) -> "LifecycleManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.stop()


__all__ = ["LifecycleManager"]
