# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the campground reservations library.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from ReservationSystemError, making it easy to catch
every reservation-related failure with a single except clause.

Each exception carries a stable ``code`` and an HTTP-style ``status_code``
so a request-routing layer can map it to a response without inspecting the
concrete class.
"""

from typing import Any, ClassVar


class ReservationSystemError(Exception):
    """Base exception for all campground reservation errors.

    Example:
        try:
            await controller.request_reservation(...)
        except ReservationSystemError as e:
            return e.status_code, e.to_dict()
    """

    code: ClassVar[str] = "reservation_error"
    status_code: ClassVar[int] = 500

    def to_dict(self) -> dict[str, Any]:
        """Return the structured error payload reported to callers."""
        return {"success": False, "error": self.code, "message": str(self)}


class ValidationError(ReservationSystemError):
    """Raised when a request is malformed.

    Covers empty or inverted date ranges, non-positive counts, blank tag
    names and out-of-range limits. Validation always happens before any
    admission lock is taken.
    """

    code = "validation_error"
    status_code = 400


class NotFoundError(ReservationSystemError):
    """Raised when a campground, reservation or tag does not exist.

    Attributes:
        resource: Kind of resource that was looked up ("campground", "tag", ...).
        resource_id: The identifier that was not found.
    """

    code = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource.capitalize()} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id


class CapacityExceededError(ReservationSystemError):
    """Raised when admitting a reservation would overbook a campground.

    No state is changed when this is raised.

    Attributes:
        campground_id: The campground whose capacity would be exceeded.
        requested: Units requested by the rejected reservation.
        available: Units still free at the busiest instant of the range.
    """

    code = "capacity_exceeded"
    status_code = 400

    def __init__(
        self,
        message: str,
        campground_id: str | None = None,
        requested: int | None = None,
        available: int | None = None,
    ):
        super().__init__(message)
        self.campground_id = campground_id
        self.requested = requested
        self.available = available


class InvalidTransitionError(ReservationSystemError):
    """Raised on an illegal reservation status change.

    Attributes:
        reservation_id: The reservation that was asked to move.
        current: Its status at the time of the request.
        target: The status that was requested.
    """

    code = "invalid_transition"
    status_code = 409

    def __init__(self, reservation_id: str, current: str, target: str):
        super().__init__(
            f"Reservation {reservation_id} cannot move from {current} to {target}"
        )
        self.reservation_id = reservation_id
        self.current = current
        self.target = target


class AdmissionTimeoutError(ReservationSystemError):
    """Raised when the per-campground admission lock could not be acquired in time.

    Attributes:
        campground_id: The contended campground.
        timeout: How long the caller waited, in seconds.

    Example:
        try:
            await controller.request_reservation(...)
        except AdmissionTimeoutError as e:
            # Shed load; the client may retry after a short delay
            return 503, e.to_dict()
    """

    code = "admission_timeout"
    status_code = 503

    def __init__(self, campground_id: str, timeout: float):
        super().__init__(
            f"Timed out after {timeout:.2f}s waiting for campground {campground_id}"
        )
        self.campground_id = campground_id
        self.timeout = timeout


class ConflictError(ReservationSystemError):
    """Raised when a resource already exists (duplicate tag, tag already on campground)."""

    code = "conflict"
    status_code = 409


class RepositoryError(ReservationSystemError):
    """Raised when a repository operation fails.

    When raised from inside an admission commit, the interval index mutation
    has already been rolled back.
    """

    code = "repository_error"
    status_code = 500


class ConfigurationError(ReservationSystemError):
    """Raised when configuration values are invalid."""

    code = "configuration_error"
    status_code = 500


__all__ = [
    "AdmissionTimeoutError",
    "CapacityExceededError",
    "ConfigurationError",
    "ConflictError",
    "InvalidTransitionError",
    "NotFoundError",
    "RepositoryError",
    "ReservationSystemError",
    "ValidationError",
]
