# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Catalog types: the parts of a campground listing the core depends on.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import ValidationError


@dataclass
class Campground:
    """
    A campground as seen by the reservation core.

    Only the identity, capacity, tag set and rating are used here; the rest
    of a listing (address, pictures, price...) belongs to the catalog service.

    Attributes:
        id: Campground identifier
        max_reservations: Units that may be booked at any single instant
        tags: Identifiers of the tags attached to the campground
        rating: Average user rating, used to break similarity ties
        name: Display name
    """

    id: str
    max_reservations: int
    tags: set[str] = field(default_factory=set)
    rating: float = 0.0
    name: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.max_reservations, bool) or not isinstance(
            self.max_reservations, int
        ):
            raise ValidationError("max_reservations must be an integer")
        if self.max_reservations < 1:
            raise ValidationError("max_reservations must be at least 1")
        self.tags = set(self.tags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "maxReservations": self.max_reservations,
            "rating": self.rating,
            "tags": sorted(self.tags),
        }


@dataclass(frozen=True)
class Tag:
    """A named label that can be attached to campgrounds."""

    id: str
    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Tag name must not be empty")

    @classmethod
    def create(cls, name: str) -> "Tag":
        if not isinstance(name, str):
            raise ValidationError("Tag name must be a string")
        return cls(id=uuid.uuid4().hex, name=name.strip())

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}


__all__ = ["Campground", "Tag"]
