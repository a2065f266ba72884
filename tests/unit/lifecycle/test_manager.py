"""Tests for LifecycleManager expiry, reconciliation and the background loop."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from campground_reservations.admission import AdmissionController, CampgroundLocks
from campground_reservations.config import ReservationConfig
from campground_reservations.exceptions import CapacityExceededError, RepositoryError
from campground_reservations.index import IntervalIndex
from campground_reservations.lifecycle import LifecycleManager
from campground_reservations.observability.constants import (
    INDEX_REPAIRS_TOTAL,
    RESERVATIONS_EXPIRED_TOTAL,
    SWEEP_FAILURES_TOTAL,
)
from campground_reservations.types.date_range import DateRange
from campground_reservations.types.reservation import Reservation, ReservationStatus

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def dr(start: str, end: str) -> DateRange:
    return DateRange.parse(start, end)


@pytest.fixture
def index():
    return IntervalIndex()


@pytest.fixture
def locks():
    return CampgroundLocks(timeout=0.05)


@pytest.fixture
def controller(campgrounds, reservations, index, locks, config, metrics):
    return AdmissionController(
        campgrounds, reservations, index, locks=locks, config=config, metrics=metrics
    )


@pytest.fixture
def manager(reservations, index, locks, config, metrics):
    return LifecycleManager(reservations, index, locks, config=config, metrics=metrics)


class TestExpiryRules:
    def test_pending_within_ttl(self, manager):
        r = Reservation.create("cg", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW)
        assert manager.expiry_reason(r, NOW + timedelta(minutes=59)) is None

    def test_pending_past_ttl(self, manager):
        r = Reservation.create("cg", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW)
        assert manager.expiry_reason(r, NOW + timedelta(hours=1)) == "ttl"

    def test_confirmed_ignores_ttl(self, manager):
        r = Reservation.create(
            "cg", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW
        ).with_status(ReservationStatus.CONFIRMED)
        assert manager.expiry_reason(r, NOW + timedelta(days=2)) is None

    def test_confirmed_ended(self, manager):
        r = Reservation.create(
            "cg", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW
        ).with_status(ReservationStatus.CONFIRMED)
        assert manager.expiry_reason(r, datetime(2024, 6, 12, tzinfo=timezone.utc)) == "ended"
        assert manager.expiry_reason(r, datetime(2024, 6, 11, 23, tzinfo=timezone.utc)) is None

    def test_terminal_never_due(self, manager):
        r = Reservation.create(
            "cg", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW
        ).with_status(ReservationStatus.CANCELLED)
        assert manager.expiry_reason(r, NOW + timedelta(days=30)) is None


class TestSweepExpired:
    @pytest.mark.asyncio
    async def test_ttl_expiry_frees_capacity(self, controller, manager, reservations, metrics):
        """A stale Pending hold is expired and the capacity it held is reusable."""
        stay = dr("2024-06-10", "2024-06-12")
        stale = await controller.request_reservation(
            "cg-2", stay, now=NOW - timedelta(hours=2)
        )
        with pytest.raises(CapacityExceededError):
            await controller.request_reservation("cg-2", stay)

        expired = await manager.sweep_expired(NOW)

        assert expired == [stale.id]
        assert (await reservations.get(stale.id)).status is ReservationStatus.EXPIRED
        assert stale.id not in controller.index
        assert metrics.counter_value(RESERVATIONS_EXPIRED_TOTAL, {"reason": "ttl"}) == 1

        admitted = await controller.request_reservation("cg-2", stay)
        assert admitted.status is ReservationStatus.PENDING

    @pytest.mark.asyncio
    async def test_fresh_pending_kept(self, controller, manager):
        r = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(minutes=5)
        )
        assert await manager.sweep_expired(NOW) == []
        assert r.id in controller.index

    @pytest.mark.asyncio
    async def test_confirmed_stay_ended(self, controller, manager, reservations, metrics):
        r = await controller.request_reservation(
            "cg-1", dr("2024-05-28", "2024-06-01"), now=NOW - timedelta(minutes=5)
        )
        await controller.confirm(r.id)

        assert await manager.sweep_expired(NOW) == [r.id]
        assert (await reservations.get(r.id)).status is ReservationStatus.EXPIRED
        assert metrics.counter_value(RESERVATIONS_EXPIRED_TOTAL, {"reason": "ended"}) == 1

    @pytest.mark.asyncio
    async def test_rerun_is_noop(self, controller, manager, reservations):
        r = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(hours=2)
        )
        assert await manager.sweep_expired(NOW) == [r.id]
        snapshot = await reservations.get(r.id)

        assert await manager.sweep_expired(NOW) == []
        assert await reservations.get(r.id) == snapshot

    @pytest.mark.asyncio
    async def test_naive_now_taken_as_utc(self, controller, manager):
        r = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(hours=2)
        )
        assert await manager.sweep_expired(NOW.replace(tzinfo=None)) == [r.id]

    @pytest.mark.asyncio
    async def test_failing_item_does_not_stop_sweep(
        self, controller, manager, reservations, metrics
    ):
        """A write failure is counted, the rest expire, and the next run retries."""
        old = NOW - timedelta(hours=2)
        bad = await controller.request_reservation("cg-1", dr("2024-06-10", "2024-06-12"), now=old)
        good = await controller.request_reservation("cg-2", dr("2024-06-10", "2024-06-12"), now=old)

        original_save = reservations.save

        async def flaky_save(reservation):
            if reservation.id == bad.id:
                raise RepositoryError("write timed out")
            await original_save(reservation)

        with patch.object(reservations, "save", side_effect=flaky_save):
            first = await manager.sweep_expired(NOW)

        assert first == [good.id]
        assert bad.id in controller.index
        assert (await reservations.get(bad.id)).status is ReservationStatus.PENDING
        assert metrics.counter_value(SWEEP_FAILURES_TOTAL) == 1

        assert await manager.sweep_expired(NOW) == [bad.id]
        assert bad.id not in controller.index

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, controller, manager, reservations, metrics):
        bad = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(hours=2)
        )
        with patch.object(reservations, "save", side_effect=RuntimeError("bug")):
            assert await manager.sweep_expired(NOW) == []
        assert bad.id in controller.index
        assert metrics.counter_value(SWEEP_FAILURES_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_lock_timeout_defers_campground(self, controller, manager, locks, metrics):
        old = NOW - timedelta(hours=2)
        blocked = await controller.request_reservation("cg-1", dr("2024-06-10", "2024-06-12"), now=old)
        other = await controller.request_reservation("cg-2", dr("2024-06-10", "2024-06-12"), now=old)

        async with locks.hold("cg-1"):
            expired = await manager.sweep_expired(NOW)

        assert expired == [other.id]
        assert blocked.id in controller.index
        assert metrics.counter_value(SWEEP_FAILURES_TOTAL) == 1
        assert await manager.sweep_expired(NOW) == [blocked.id]

    @pytest.mark.asyncio
    async def test_concurrent_cancel_wins(self, controller, manager, reservations):
        """A reservation cancelled after listing is re-read and left alone."""
        r = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(hours=2)
        )
        listed = await reservations.list_active()
        await controller.cancel(r.id)

        with patch.object(reservations, "list_active", return_value=listed):
            assert await manager.sweep_expired(NOW) == []
        assert (await reservations.get(r.id)).status is ReservationStatus.CANCELLED


class TestReconciliation:
    @pytest.mark.asyncio
    async def test_drops_stale_entry(self, manager, index, metrics):
        index.insert("cg-1", "ghost", dr("2024-06-10", "2024-06-12"), 1)

        await manager.sweep_expired(NOW)

        assert "ghost" not in index
        assert metrics.counter_value(INDEX_REPAIRS_TOTAL, {"action": "dropped"}) == 1

    @pytest.mark.asyncio
    async def test_drops_entry_of_archived_reservation(self, controller, manager, reservations, index):
        r = await controller.request_reservation(
            "cg-1", dr("2024-06-10", "2024-06-12"), now=NOW - timedelta(minutes=1)
        )
        # Simulate another process cancelling without touching this index
        await reservations.save(r.with_status(ReservationStatus.CANCELLED))

        await manager.sweep_expired(NOW)

        assert r.id not in index

    @pytest.mark.asyncio
    async def test_restores_missing_entry(self, manager, reservations, index, metrics):
        r = Reservation.create(
            "cg-1", "u", dr("2024-06-10", "2024-06-12"), created_at=NOW - timedelta(minutes=1)
        )
        await reservations.save(r)

        await manager.sweep_expired(NOW)

        assert r.id in index
        assert index.query("cg-1", r.date_range) == 1
        assert metrics.counter_value(INDEX_REPAIRS_TOTAL, {"action": "restored"}) == 1


class TestRebuildAndLoop:
    @pytest.mark.asyncio
    async def test_rebuild_index(self, manager, reservations, index):
        rng = dr("2024-06-10", "2024-06-12")
        active = Reservation.create("cg-1", "u", rng)
        archived = Reservation.create("cg-1", "u", rng).with_status(ReservationStatus.CANCELLED)
        await reservations.save(active)
        await reservations.save(archived)
        index.insert("cg-9", "leftover", rng, 1)

        assert await manager.rebuild_index() == 1
        assert index.reservation_ids("cg-1") == {active.id}
        assert "leftover" not in index

    @pytest.mark.asyncio
    async def test_background_loop_expires(self, reservations, index, locks, metrics):
        config = ReservationConfig(pending_ttl=60.0, sweep_interval=0.01)
        manager = LifecycleManager(reservations, index, locks, config=config, metrics=metrics)
        stale = Reservation.create(
            "cg-1",
            "u",
            dr("2099-06-10", "2099-06-12"),
            created_at=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        await reservations.save(stale)

        async with manager:
            assert manager.is_running
            assert stale.id in index
            for _ in range(100):
                if (await reservations.get(stale.id)).status is ReservationStatus.EXPIRED:
                    break
                await asyncio.sleep(0.01)

        assert not manager.is_running
        assert (await reservations.get(stale.id)).status is ReservationStatus.EXPIRED
        assert stale.id not in index

    @pytest.mark.asyncio
    async def test_loop_survives_cycle_error(self, reservations, index, locks, metrics):
        config = ReservationConfig(sweep_interval=0.01)
        manager = LifecycleManager(reservations, index, locks, config=config, metrics=metrics)
        calls = 0

        async def failing_sweep(now=None):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("repository unreachable")
            return []

        with patch.object(manager, "sweep_expired", side_effect=failing_sweep):
            await manager.start(rebuild=False)
            for _ in range(100):
                if calls >= 3:
                    break
                await asyncio.sleep(0.01)
            assert manager.is_running
            await manager.stop()

        assert calls >= 3

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, manager):
        await manager.start(rebuild=False)
        task = manager._sweep_task
        await manager.start()
        assert manager._sweep_task is task
        await manager.stop()
        await manager.stop()
        assert not manager.is_running
