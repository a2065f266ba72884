"""Unit tests for the exceptions module.

Tests all exception classes defined in campground_reservations.exceptions.
"""

import pytest

from campground_reservations.exceptions import (
    AdmissionTimeoutError,
    CapacityExceededError,
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    RepositoryError,
    ReservationSystemError,
    ValidationError,
)


class TestReservationSystemError:
    """Tests for the base ReservationSystemError exception."""

    def test_can_be_caught_as_exception(self):
        with pytest.raises(Exception):  # noqa: B017
            raise ReservationSystemError("test error")

    def test_to_dict(self):
        error = ReservationSystemError("boom")
        assert error.to_dict() == {
            "success": False,
            "error": "reservation_error",
            "message": "boom",
        }

    @pytest.mark.parametrize(
        ("exc_class", "code", "status_code"),
        [
            (ValidationError, "validation_error", 400),
            (NotFoundError, "not_found", 404),
            (CapacityExceededError, "capacity_exceeded", 400),
            (InvalidTransitionError, "invalid_transition", 409),
            (AdmissionTimeoutError, "admission_timeout", 503),
            (ConflictError, "conflict", 409),
            (RepositoryError, "repository_error", 500),
            (ConfigurationError, "configuration_error", 500),
        ],
    )
    def test_codes_and_status(self, exc_class, code, status_code):
        assert issubclass(exc_class, ReservationSystemError)
        assert exc_class.code == code
        assert exc_class.status_code == status_code


class TestNotFoundError:
    def test_message_and_attributes(self):
        error = NotFoundError("campground", "cg-9")
        assert str(error) == "Campground not found: cg-9"
        assert error.resource == "campground"
        assert error.resource_id == "cg-9"
        assert error.to_dict()["error"] == "not_found"


class TestCapacityExceededError:
    def test_stores_attributes(self):
        error = CapacityExceededError("full", campground_id="cg-1", requested=2, available=1)
        assert error.campground_id == "cg-1"
        assert error.requested == 2
        assert error.available == 1

    def test_attributes_default_to_none(self):
        error = CapacityExceededError("full")
        assert error.campground_id is None
        assert error.requested is None
        assert error.available is None


class TestInvalidTransitionError:
    def test_message(self):
        error = InvalidTransitionError("r-1", "Cancelled", "Confirmed")
        assert "r-1" in str(error)
        assert "Cancelled" in str(error)
        assert error.reservation_id == "r-1"
        assert error.target == "Confirmed"


class TestAdmissionTimeoutError:
    def test_message(self):
        error = AdmissionTimeoutError("cg-1", 0.5)
        assert str(error) == "Timed out after 0.50s waiting for campground cg-1"
        assert error.timeout == 0.5
        assert error.status_code == 503
