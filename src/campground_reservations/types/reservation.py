# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation model and its status state machine.

Reservations are validated with Pydantic and serialized to plain dicts for
repository storage. Status changes never mutate a reservation in place:
``with_status`` returns an updated copy, so a failed persistence step leaves
the caller's original untouched.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..exceptions import InvalidTransitionError
from .date_range import DateRange


class ReservationStatus(str, Enum):
    """Lifecycle states of a reservation."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"

    @property
    def is_active(self) -> bool:
        """Active reservations hold capacity in the interval index."""
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]


ACTIVE_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})

# Pending -> Expired is the TTL expiry performed by the lifecycle sweep.
ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {
            ReservationStatus.CONFIRMED,
            ReservationStatus.CANCELLED,
            ReservationStatus.EXPIRED,
        }
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.EXPIRED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_reservation_id() -> str:
    return uuid.uuid4().hex


class Reservation(BaseModel):
    """
    A booking of ``count`` units of a campground over a half-open date range.

    Attributes:
        id: Unique reservation identifier
        campground_id: The campground being booked
        user_id: The user who made the booking
        start_date: First night of the stay
        end_date: Departure day (excluded from the stay)
        status: Current lifecycle status
        count: Number of units reserved
        created_at: UTC timestamp of admission
        updated_at: UTC timestamp of the last status change
    """

    id: str = Field(default_factory=new_reservation_id)
    campground_id: str
    user_id: str
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.PENDING
    count: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _validate_range(self) -> "Reservation":
        """Validate that the stay is non-empty."""
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self

    @classmethod
    def create(
        cls,
        campground_id: str,
        user_id: str,
        date_range: DateRange,
        count: int = 1,
        created_at: datetime | None = None,
    ) -> "Reservation":
        now = created_at or _utcnow()
        return cls(
            campground_id=campground_id,
            user_id=user_id,
            start_date=date_range.start,
            end_date=date_range.end,
            count=count,
            created_at=now,
            updated_at=now,
        )

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def can_transition_to(self, target: ReservationStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def with_status(
        self, target: ReservationStatus, at: datetime | None = None
    ) -> "Reservation":
        """
        Return a copy moved to ``target``.

        Raises:
            InvalidTransitionError: If the state machine forbids the move
        """
        if not self.can_transition_to(target):
            raise InvalidTransitionError(self.id, self.status.value, target.value)
        return self.model_copy(update={"status": target, "updated_at": at or _utcnow()})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for repository storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Reservation":
        return cls.model_validate(data)


__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "Reservation",
    "ReservationStatus",
    "new_reservation_id",
]
