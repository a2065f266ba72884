"""Tests for the in-memory repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from campground_reservations.repositories.memory import (
    MemoryCampgroundRepository,
    MemoryReservationRepository,
    MemoryTagRepository,
)
from campground_reservations.types.catalog import Campground, Tag
from campground_reservations.types.date_range import DateRange
from campground_reservations.types.reservation import Reservation, ReservationStatus

STAY = DateRange.parse("2024-06-01", "2024-06-05")


class TestMemoryCampgroundRepository:
    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        repo = MemoryCampgroundRepository([Campground("cg", 2, tags={"a"})])
        cg = await repo.get("cg")
        cg.tags.add("mutated")
        assert (await repo.get("cg")).tags == {"a"}

    @pytest.mark.asyncio
    async def test_save_list_delete(self):
        repo = MemoryCampgroundRepository()
        await repo.save(Campground("cg", 2))
        assert [c.id for c in await repo.list_all()] == ["cg"]
        assert await repo.delete("cg") is True
        assert await repo.delete("cg") is False
        assert await repo.get("cg") is None


class TestMemoryTagRepository:
    @pytest.mark.asyncio
    async def test_get_by_name_case_insensitive(self):
        repo = MemoryTagRepository([Tag("t1", "Lakefront")])
        assert (await repo.get_by_name("  LAKEFRONT ")).id == "t1"
        assert await repo.get_by_name("Hiking") is None

    @pytest.mark.asyncio
    async def test_save_and_delete(self):
        repo = MemoryTagRepository()
        await repo.save(Tag("t1", "Hiking"))
        assert await repo.get("t1") == Tag("t1", "Hiking")
        assert await repo.delete("t1") is True
        assert await repo.list_all() == []


class TestMemoryReservationRepository:
    @pytest.fixture
    def repo(self):
        return MemoryReservationRepository(namespace="test")

    @pytest.mark.asyncio
    async def test_save_and_get(self, repo):
        r = Reservation.create("cg", "u", STAY)
        await repo.save(r)
        assert await repo.get(r.id) == r
        assert await repo.get("missing") is None

    @pytest.mark.asyncio
    async def test_stored_copy_is_isolated(self, repo):
        r = Reservation.create("cg", "u", STAY)
        await repo.save(r)
        fetched = await repo.get(r.id)
        fetched.count = 99
        assert (await repo.get(r.id)).count == 1

    @pytest.mark.asyncio
    async def test_listings_ordered_by_creation(self, repo):
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        later = Reservation.create("cg", "u1", STAY, created_at=base + timedelta(hours=1))
        earlier = Reservation.create("cg", "u2", STAY, created_at=base)
        other = Reservation.create("cg-2", "u1", STAY, created_at=base)
        for r in (later, earlier, other):
            await repo.save(r)

        assert [r.id for r in await repo.list_by_campground("cg")] == [earlier.id, later.id]
        assert {r.id for r in await repo.list_by_user("u1")} == {later.id, other.id}

    @pytest.mark.asyncio
    async def test_list_active(self, repo):
        active = Reservation.create("cg", "u", STAY)
        archived = Reservation.create("cg", "u", STAY).with_status(ReservationStatus.EXPIRED)
        await repo.save(active)
        await repo.save(archived)

        assert [r.id for r in await repo.list_active()] == [active.id]
        assert [r.id for r in await repo.list_active_by_campground("cg")] == [active.id]

    @pytest.mark.asyncio
    async def test_status_update_replaces_record(self, repo):
        r = Reservation.create("cg", "u", STAY)
        await repo.save(r)
        await repo.save(r.with_status(ReservationStatus.CANCELLED))
        assert await repo.list_active() == []
        assert len(await repo.list_by_campground("cg")) == 1

    @pytest.mark.asyncio
    async def test_health_check(self, repo):
        await repo.save(Reservation.create("cg", "u", STAY))
        result = await repo.health_check()
        assert result.healthy is True
        assert result.backend_type == "memory"
        assert result.namespace == "test"
        assert result.metadata == {"reservations": 1}

    @pytest.mark.asyncio
    async def test_clear_and_context_manager(self):
        async with MemoryReservationRepository() as repo:
            await repo.save(Reservation.create("cg", "u", STAY))
            await repo.clear()
            assert await repo.list_active() == []
