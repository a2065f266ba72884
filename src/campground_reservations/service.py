# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request-facing facade over the reservation core.

ReservationService turns request payloads into component calls and returns
the response bodies a routing layer sends back unchanged. Errors are raised
as ReservationSystemError subclasses; ``error_payload`` maps any exception to
a status code and error body.

Usage:
    >>> service = create_service(campgrounds=MemoryCampgroundRepository([...]))
    >>> async with service:
    ...     body = await service.create_reservation(
    ...         {"campgroundId": "cg-1", "startDate": "2024-06-01",
    ...          "endDate": "2024-06-05"},
    ...         user_id="user-1",
    ...     )
"""

import logging
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .admission.controller import AdmissionController
from .admission.locks import CampgroundLocks
from .catalog.tags import TagCatalog
from .config import ReservationConfig
from .exceptions import ReservationSystemError, ValidationError
from .index.interval_index import IntervalIndex
from .lifecycle.manager import LifecycleManager
from .observability.collector import UnifiedMetricsCollector
from .repositories.base import CampgroundRepository, ReservationRepository, TagRepository
from .repositories.memory import MemoryReservationRepository, MemoryTagRepository
from .similarity.ranker import TagSimilarityRanker
from .types.date_range import DateRange

logger = logging.getLogger(__name__)


class CreateReservationRequest(BaseModel):
    """Body of a create-reservation request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    campground_id: str = Field(alias="campgroundId", min_length=1)
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    count: int = Field(default=1, ge=1)

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)


class CreateTagRequest(BaseModel):
    """Body of a create-tag request."""

    name: str = Field(min_length=1)


def _parse(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(details) from e


def error_payload(exc: BaseException) -> tuple[int, dict[str, Any]]:
    """
    Map an exception to ``(status_code, body)``.

    Library errors carry their own code; anything else is reported as an
    internal error without leaking its message.
    """
    if isinstance(exc, ReservationSystemError):
        return exc.status_code, exc.to_dict()
    logger.error("Unhandled error in reservation service", exc_info=exc)
    return 500, {
        "success": False,
        "error": "internal_error",
        "message": "Internal server error",
    }


class ReservationService:
    """
    Facade bundling admission, lifecycle, similarity and the tag catalog.

    The controller and lifecycle manager must share one IntervalIndex and one
    CampgroundLocks; use ``create_service`` to wire them.
    """

    def __init__(
        self,
        controller: AdmissionController,
        lifecycle: LifecycleManager,
        ranker: TagSimilarityRanker,
        catalog: TagCatalog,
    ) -> None:
        self.controller = controller
        self.lifecycle = lifecycle
        self.ranker = ranker
        self.catalog = catalog

    # === Lifecycle ===

    async def start(self) -> None:
        """Rebuild the interval index and start the expiry sweep."""
        await self.lifecycle.start(rebuild=True)

    async def stop(self) -> None:
        await self.lifecycle.stop()

    async def __aenter__(self) -> "ReservationService":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.stop()

    # === Reservations ===

    async def create_reservation(
        self, payload: dict[str, Any], user_id: str
    ) -> dict[str, Any]:
        request = _parse(CreateReservationRequest, payload)
        reservation = await self.controller.request_reservation(
            request.campground_id,
            request.date_range,
            count=request.count,
            user_id=user_id,
        )
        return {"reservationId": reservation.id, "status": reservation.status.value}

    async def confirm_reservation(self, reservation_id: str) -> dict[str, Any]:
        reservation = await self.controller.confirm(reservation_id)
        return {"status": reservation.status.value}

    async def cancel_reservation(self, reservation_id: str) -> dict[str, Any]:
        reservation = await self.controller.cancel(reservation_id)
        return {"status": reservation.status.value}

    async def get_reservation(self, reservation_id: str) -> dict[str, Any]:
        reservation = await self.controller.get_reservation(reservation_id)
        return {"success": True, "reservation": reservation.to_dict()}

    async def user_reservations(self, user_id: str) -> dict[str, Any]:
        reservations = await self.controller.list_user_reservations(user_id)
        return {
            "success": True,
            "count": len(reservations),
            "reservations": [r.to_dict() for r in reservations],
        }

    async def availability(
        self, campground_id: str, start: Any, end: Any
    ) -> dict[str, Any]:
        date_range = DateRange.parse(start, end)
        available = await self.controller.availability(campground_id, date_range)
        return {"campgroundId": campground_id, "available": available, **date_range.to_dict()}

    # === Similarity ===

    async def similar_campgrounds(
        self, campground_id: str, limit: int | None = None
    ) -> dict[str, Any]:
        return {"data": await self.ranker.similar_to(campground_id, limit)}

    # === Tags ===

    async def list_tags(self) -> dict[str, Any]:
        tags = await self.catalog.list_tags()
        return {"success": True, "count": len(tags), "tags": [t.to_dict() for t in tags]}

    async def create_tag(self, payload: dict[str, Any]) -> dict[str, Any]:
        request = _parse(CreateTagRequest, payload)
        tag = await self.catalog.create_tag(request.name)
        return {"success": True, "tag": tag.to_dict()}

    async def delete_tag(self, tag_id: str) -> dict[str, Any]:
        await self.catalog.delete_tag(tag_id)
        return {"success": True}

    async def campground_tags(self, campground_id: str) -> dict[str, Any]:
        tags = await self.catalog.tags_for_campground(campground_id)
        return {"success": True, "tags": [t.to_dict() for t in tags]}

    async def add_campground_tag(self, campground_id: str, tag_id: str) -> dict[str, Any]:
        await self.catalog.add_tag(campground_id, tag_id)
        return {"success": True}

    async def remove_campground_tag(
        self, campground_id: str, tag_id: str
    ) -> dict[str, Any]:
        await self.catalog.remove_tag(campground_id, tag_id)
        return {"success": True}

    error_payload = staticmethod(error_payload)


def create_service(
    campgrounds: CampgroundRepository,
    reservations: ReservationRepository | None = None,
    tags: TagRepository | None = None,
    config: ReservationConfig | None = None,
    metrics: UnifiedMetricsCollector | None = None,
) -> ReservationService:
    """
    Factory function to create a ReservationService with shared state wired.

    Args:
        campgrounds: Campground repository
        reservations: Reservation repository (in-memory if not provided)
        tags: Tag repository (in-memory if not provided)
        config: Optional configuration (default if not provided)
        metrics: Optional metrics collector (global collector if not provided)

    Returns:
        Configured ReservationService instance
    """
    if config is None:
        config = ReservationConfig()
    if reservations is None:
        reservations = MemoryReservationRepository(namespace=config.namespace)
    if tags is None:
        tags = MemoryTagRepository()

    index = IntervalIndex()
    locks = CampgroundLocks(timeout=config.admission_timeout)
    controller = AdmissionController(
        campgrounds, reservations, index=index, locks=locks, config=config, metrics=metrics
    )
    lifecycle = LifecycleManager(
        reservations, index=index, locks=locks, config=config, metrics=metrics
    )
    ranker = TagSimilarityRanker(campgrounds, config=config)
    catalog = TagCatalog(campgrounds, tags, ranker=ranker)
    return ReservationService(controller, lifecycle, ranker, catalog)


__all__ = [
    "CreateReservationRequest",
    "CreateTagRequest",
    "ReservationService",
    "create_service",
    "error_payload",
]
