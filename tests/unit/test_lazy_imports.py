# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Tests for lazy import patterns in __init__.py modules.

These tests cover the __getattr__ lazy import mechanisms used for the
optional Redis dependency.
"""

import pytest


class TestTopLevelLazyImports:
    """Test lazy imports from the top-level campground_reservations module."""

    def test_lazy_redis_repository_import(self):
        pytest.importorskip("redis")
        from campground_reservations import RedisReservationRepository

        assert RedisReservationRepository.__name__ == "RedisReservationRepository"

    def test_unknown_attribute_raises_attribute_error(self):
        import campground_reservations

        with pytest.raises(
            AttributeError,
            match=r"module 'campground_reservations' has no attribute 'FakeClass'",
        ):
            _ = campground_reservations.FakeClass

    def test_version(self):
        import campground_reservations

        assert campground_reservations.__version__ == "1.0.0"


class TestRepositoriesLazyImports:
    """Test lazy imports from the repositories submodule."""

    def test_lazy_redis_repository_import(self):
        pytest.importorskip("redis")
        from campground_reservations.repositories import (
            RedisReservationRepository,
            ReservationRepository,
        )

        assert issubclass(RedisReservationRepository, ReservationRepository)

    def test_unknown_attribute_raises_attribute_error(self):
        import campground_reservations.repositories as repositories

        with pytest.raises(AttributeError, match=r"has no attribute"):
            _ = repositories.NonExistent

    def test_memory_repositories_need_no_redis(self):
        from campground_reservations.repositories import MemoryReservationRepository

        assert MemoryReservationRepository is not None
