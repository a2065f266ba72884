# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .catalog import Campground, Tag
from .date_range import DateLike, DateRange
from .reservation import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    Reservation,
    ReservationStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    # Catalog types
    "Campground",
    "DateLike",
    # Date ranges
    "DateRange",
    # Reservations
    "Reservation",
    "ReservationStatus",
    "Tag",
]
