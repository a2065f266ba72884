# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Admission control for campground reservations.

The AdmissionController is the only component that creates reservations.
It guarantees that, for every campground and every instant, the units held
by Pending and Confirmed reservations never exceed the campground's
``max_reservations``, regardless of how concurrent requests interleave.

Admission is a check-then-act sequence (peak query, then persist and index)
while holding the campground's lock from CampgroundLocks. Confirm and cancel
reuse the same lock, which also serializes them per reservation.
"""

import logging
from datetime import datetime

from ..config import ReservationConfig
from ..exceptions import (
    AdmissionTimeoutError,
    CapacityExceededError,
    NotFoundError,
    RepositoryError,
    ValidationError,
)
from ..index.interval_index import IntervalIndex
from ..observability.collector import UnifiedMetricsCollector, get_metrics_collector
from ..observability.constants import (
    ADMISSION_LOCK_WAIT_SECONDS,
    RESERVATION_TRANSITIONS_TOTAL,
    RESERVATIONS_ACTIVE,
    RESERVATIONS_ADMITTED_TOTAL,
    RESERVATIONS_REJECTED_TOTAL,
)
from ..repositories.base import CampgroundRepository, ReservationRepository
from ..types.catalog import Campground
from ..types.date_range import DateRange
from ..types.reservation import Reservation, ReservationStatus
from .locks import CampgroundLocks

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Sole gate for creating reservations and for user-driven status changes.

    Side effects are confined to the reservation record and its interval
    index entry; no operation touches another campground.
    """

    def __init__(
        self,
        campgrounds: CampgroundRepository,
        reservations: ReservationRepository,
        index: IntervalIndex | None = None,
        locks: CampgroundLocks | None = None,
        config: ReservationConfig | None = None,
        metrics: UnifiedMetricsCollector | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            campgrounds: Campground lookups (capacity)
            reservations: System of record for reservations
            index: Interval index shared with the lifecycle manager
            locks: Per-campground locks shared with the lifecycle manager
            config: Reservation configuration
            metrics: Metrics collector (defaults to the global collector)
        """
        self._config = config or ReservationConfig()
        self._campgrounds = campgrounds
        self._reservations = reservations
        self._index = index if index is not None else IntervalIndex()
        self._locks = locks or CampgroundLocks(timeout=self._config.admission_timeout)
        self._metrics = metrics
        if self._metrics is None and self._config.metrics_enabled:
            self._metrics = get_metrics_collector()

    @property
    def index(self) -> IntervalIndex:
        return self._index

    @property
    def locks(self) -> CampgroundLocks:
        return self._locks

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_campground(self, campground_id: str) -> Campground:
        campground = await self._campgrounds.get(campground_id)
        if campground is None:
            raise NotFoundError("campground", campground_id)
        return campground

    async def _require_reservation(self, reservation_id: str) -> Reservation:
        reservation = await self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError("reservation", reservation_id)
        return reservation

    async def _was_written(self, reservation: Reservation) -> bool:
        """Check whether a save that raised still stored the record."""
        try:
            return await self._reservations.get(reservation.id) is not None
        except Exception:
            logger.warning(
                "Could not verify reservation write: reservation_id=%s",
                reservation.id,
                exc_info=True,
            )
            return False

    def _record_rejection(self, reason: str) -> None:
        if self._metrics:
            self._metrics.inc_counter(
                RESERVATIONS_REJECTED_TOTAL, labels={"reason": reason}
            )

    def _record_transition(self, status: ReservationStatus) -> None:
        if self._metrics:
            self._metrics.inc_counter(
                RESERVATION_TRANSITIONS_TOTAL, labels={"status": status.value}
            )

    def _record_active(self, campground_id: str) -> None:
        if self._metrics:
            self._metrics.set_gauge(
                RESERVATIONS_ACTIVE,
                len(self._index.reservation_ids(campground_id)),
                labels={"campground_id": campground_id},
            )

    @staticmethod
    def _validate_request(date_range: DateRange, count: int) -> None:
        if not isinstance(date_range, DateRange):
            raise ValidationError("date_range must be a DateRange")
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValidationError("count must be an integer")
        if count < 1:
            raise ValidationError(f"count must be at least 1, got {count}")

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    async def request_reservation(
        self,
        campground_id: str,
        date_range: DateRange,
        count: int = 1,
        user_id: str = "",
        now: datetime | None = None,
    ) -> Reservation:
        """
        Admit a reservation if capacity allows, atomically per campground.

        Args:
            campground_id: The campground to book
            date_range: Half-open range of nights
            count: Units to reserve
            user_id: The booking user
            now: Creation timestamp override (defaults to the current UTC time)

        Returns:
            The new Pending reservation

        Raises:
            ValidationError: Malformed range or count (raised before locking)
            NotFoundError: Unknown campground
            AdmissionTimeoutError: The campground lock was not acquired in time
            CapacityExceededError: Admission would overbook the campground
            RepositoryError: Persisting failed; nothing was indexed
        """
        self._validate_request(date_range, count)
        campground = await self._require_campground(campground_id)

        if count > campground.max_reservations:
            self._record_rejection("capacity")
            raise CapacityExceededError(
                f"Requested {count} units but campground {campground_id} "
                f"only has {campground.max_reservations}",
                campground_id=campground_id,
                requested=count,
                available=campground.max_reservations,
            )

        try:
            async with self._locks.hold(campground_id) as waited:
                if self._metrics:
                    self._metrics.observe_histogram(ADMISSION_LOCK_WAIT_SECONDS, waited)

                peak = self._index.query(campground_id, date_range)
                if peak + count > campground.max_reservations:
                    self._record_rejection("capacity")
                    available = max(campground.max_reservations - peak, 0)
                    logger.info(
                        "Reservation rejected: campground_id=%s, range=%s, "
                        "requested=%d, available=%d",
                        campground_id,
                        date_range,
                        count,
                        available,
                    )
                    raise CapacityExceededError(
                        f"Campground {campground_id} has {available} of "
                        f"{campground.max_reservations} units free in {date_range}",
                        campground_id=campground_id,
                        requested=count,
                        available=available,
                    )

                reservation = Reservation.create(
                    campground_id=campground_id,
                    user_id=user_id,
                    date_range=date_range,
                    count=count,
                    created_at=now,
                )
                # The index is only touched once the record is known to exist,
                # so a failed or cancelled save leaves nothing behind.
                try:
                    await self._reservations.save(reservation)
                except Exception as e:
                    if not await self._was_written(reservation):
                        self._record_rejection("repository")
                        if isinstance(e, RepositoryError):
                            raise
                        raise RepositoryError(
                            f"Failed to persist reservation for campground {campground_id}: {e}"
                        ) from e
                    logger.warning(
                        "Save reported an error but the record was written: "
                        "reservation_id=%s, error=%s",
                        reservation.id,
                        e,
                    )
                self._index.insert(campground_id, reservation.id, date_range, count)
        except AdmissionTimeoutError:
            self._record_rejection("timeout")
            raise

        if self._metrics:
            self._metrics.inc_counter(
                RESERVATIONS_ADMITTED_TOTAL, labels={"campground_id": campground_id}
            )
        self._record_active(campground_id)
        logger.info(
            "Reservation admitted: reservation_id=%s, campground_id=%s, range=%s, count=%d",
            reservation.id,
            campground_id,
            date_range,
            count,
        )
        return reservation

    # ------------------------------------------------------------------
    # User-driven transitions
    # ------------------------------------------------------------------

    async def confirm(self, reservation_id: str) -> Reservation:
        """
        Move a Pending reservation to Confirmed.

        Idempotent on Confirmed reservations; the index is never touched.

        Raises:
            NotFoundError: Unknown reservation
            InvalidTransitionError: The reservation is Cancelled or Expired
        """
        snapshot = await self._require_reservation(reservation_id)
        async with self._locks.hold(snapshot.campground_id):
            reservation = await self._require_reservation(reservation_id)
            if reservation.status is ReservationStatus.CONFIRMED:
                return reservation

            confirmed = reservation.with_status(ReservationStatus.CONFIRMED)
            await self._reservations.save(confirmed)

        self._record_transition(ReservationStatus.CONFIRMED)
        logger.info("Reservation confirmed: reservation_id=%s", reservation_id)
        return confirmed

    async def cancel(self, reservation_id: str) -> Reservation:
        """
        Move a Pending or Confirmed reservation to Cancelled and free its capacity.

        Idempotent on Cancelled reservations.

        Raises:
            NotFoundError: Unknown reservation
            InvalidTransitionError: The reservation is Expired
        """
        snapshot = await self._require_reservation(reservation_id)
        campground_id = snapshot.campground_id
        async with self._locks.hold(campground_id):
            reservation = await self._require_reservation(reservation_id)
            if reservation.status is ReservationStatus.CANCELLED:
                return reservation

            cancelled = reservation.with_status(ReservationStatus.CANCELLED)
            # Persist first: if the write fails the index still matches the record
            await self._reservations.save(cancelled)
            self._index.remove(campground_id, reservation_id)

        self._record_transition(ReservationStatus.CANCELLED)
        self._record_active(campground_id)
        logger.info("Reservation cancelled: reservation_id=%s", reservation_id)
        return cancelled

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_reservation(self, reservation_id: str) -> Reservation:
        return await self._require_reservation(reservation_id)

    async def list_reservations(
        self, campground_id: str, active_only: bool = False
    ) -> list[Reservation]:
        await self._require_campground(campground_id)
        if active_only:
            return await self._reservations.list_active_by_campground(campground_id)
        return await self._reservations.list_by_campground(campground_id)

    async def list_user_reservations(self, user_id: str) -> list[Reservation]:
        return await self._reservations.list_by_user(user_id)

    async def occupancy(self, campground_id: str, date_range: DateRange) -> int:
        """
        Peak reserved units over ``date_range`` for display.

        Lock-free: the value may be slightly stale and must not be used for
        admission decisions.
        """
        await self._require_campground(campground_id)
        return self._index.query(campground_id, date_range)

    async def availability(self, campground_id: str, date_range: DateRange) -> int:
        """Units still bookable over the whole of ``date_range`` (lock-free)."""
        campground = await self._require_campground(campground_id)
        peak = self._index.query(campground_id, date_range)
        return max(campground.max_reservations - peak, 0)


__all__ = ["AdmissionController"]
