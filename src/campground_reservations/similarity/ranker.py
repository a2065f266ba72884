# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Tag-similarity ranking.

Campgrounds are ranked against a source campground by the number of tags
they share with it. An inverted ``tag_id -> campground ids`` index keeps the
scoring step proportional to the campgrounds that share at least one tag,
instead of a pairwise comparison over the whole catalog.
"""

import asyncio
import functools
import logging
from collections import Counter, defaultdict
from collections.abc import Callable
from typing import Any

from ..config import ReservationConfig
from ..exceptions import NotFoundError, ValidationError
from ..repositories.base import CampgroundRepository
from ..types.catalog import Campground

logger = logging.getLogger(__name__)


class TagSimilarityRanker:
    """
    Ranks campgrounds by shared-tag overlap.

    Ordering: overlap descending, then rating descending, then id ascending.
    Campgrounds with no shared tag are never returned.

    The campground repository is the source of truth. Every query lists it
    and reconciles the inverted index against the listing, so campgrounds
    saved or deleted behind the ranker's back are picked up on the next
    query. Only entries whose tags or rating changed are re-indexed.

    The tag catalog also pushes changes through the ``tag_added``,
    ``tag_removed``, ``tag_deleted``, ``campground_updated`` and
    ``campground_removed`` hooks. Hooks are no-ops before the first build.
    Hooks that arrive while a listing is in flight are queued and replayed
    once the listing has been applied, so a listing read before the change
    cannot undo it.
    """

    def __init__(
        self,
        campgrounds: CampgroundRepository,
        config: ReservationConfig | None = None,
    ) -> None:
        self._config = config or ReservationConfig()
        self._campgrounds = campgrounds

        self._by_tag: dict[str, set[str]] = defaultdict(set)
        self._tags: dict[str, set[str]] = {}
        self._ratings: dict[str, float] = {}
        self._built = False
        self._refresh_lock = asyncio.Lock()
        self._pending: list[Callable[[], None]] | None = None

    @property
    def is_built(self) -> bool:
        return self._built

    async def rebuild(self) -> None:
        """Reload the inverted index from the campground repository."""
        await self._refresh(reset=True)
        logger.info(
            "Rebuilt tag index: %d campgrounds, %d tags",
            len(self._tags),
            len(self._by_tag),
        )

    async def _refresh(self, reset: bool = False) -> list[Campground]:
        """List the repository and bring the index in line with it."""
        async with self._refresh_lock:
            self._pending = []
            try:
                campgrounds = await self._campgrounds.list_all()
                if reset:
                    self._by_tag.clear()
                    self._tags.clear()
                    self._ratings.clear()
                self._reconcile(campgrounds)
                self._built = True
            finally:
                pending = self._pending or []
                self._pending = None
            if self._built:
                for change in pending:
                    change()
        return campgrounds

    def _reconcile(self, campgrounds: list[Campground]) -> None:
        current = {c.id: c for c in campgrounds}
        dropped = 0
        for campground_id in self._tags.keys() - current.keys():
            self._unload(campground_id)
            dropped += 1

        reloaded = 0
        for campground in campgrounds:
            if (
                self._tags.get(campground.id) != campground.tags
                or self._ratings.get(campground.id) != campground.rating
            ):
                self._unload(campground.id)
                self._load(campground)
                reloaded += 1

        if self._built and (dropped or reloaded):
            logger.debug(
                "Tag index reconciled: reloaded=%d, dropped=%d", reloaded, dropped
            )

    def _load(self, campground: Campground) -> None:
        self._tags[campground.id] = set(campground.tags)
        self._ratings[campground.id] = campground.rating
        for tag_id in campground.tags:
            self._by_tag[tag_id].add(campground.id)

    def _unload(self, campground_id: str) -> None:
        for tag_id in self._tags.pop(campground_id, set()):
            self._discard(tag_id, campground_id)
        self._ratings.pop(campground_id, None)

    def _discard(self, tag_id: str, campground_id: str) -> None:
        members = self._by_tag.get(tag_id)
        if members is None:
            return
        members.discard(campground_id)
        if not members:
            del self._by_tag[tag_id]

    # ------------------------------------------------------------------
    # Maintenance hooks
    # ------------------------------------------------------------------

    def _apply(self, change: Callable[..., None], *args: Any) -> None:
        if self._pending is not None:
            self._pending.append(functools.partial(change, *args))
        elif self._built:
            change(*args)

    def campground_updated(self, campground: Campground) -> None:
        """Replace a campground's tags and rating in the index."""
        self._apply(self._replace, campground)

    def campground_removed(self, campground_id: str) -> None:
        self._apply(self._unload, campground_id)

    def tag_added(self, campground_id: str, tag_id: str) -> None:
        self._apply(self._add_tag, campground_id, tag_id)

    def tag_removed(self, campground_id: str, tag_id: str) -> None:
        self._apply(self._remove_tag, campground_id, tag_id)

    def tag_deleted(self, tag_id: str) -> None:
        self._apply(self._delete_tag, tag_id)

    def _replace(self, campground: Campground) -> None:
        self._unload(campground.id)
        self._load(campground)

    def _add_tag(self, campground_id: str, tag_id: str) -> None:
        self._tags.setdefault(campground_id, set()).add(tag_id)
        self._by_tag[tag_id].add(campground_id)

    def _remove_tag(self, campground_id: str, tag_id: str) -> None:
        self._tags.get(campground_id, set()).discard(tag_id)
        self._discard(tag_id, campground_id)

    def _delete_tag(self, tag_id: str) -> None:
        for campground_id in self._by_tag.pop(tag_id, set()):
            self._tags.get(campground_id, set()).discard(tag_id)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    async def similar_to(self, campground_id: str, limit: int | None = None) -> list[str]:
        """
        Return ids of campgrounds most similar to ``campground_id``.

        Args:
            campground_id: The source campground (never part of the result)
            limit: Maximum number of ids (defaults to ``similar_default_limit``)

        Raises:
            ValidationError: If ``limit`` is less than 1
            NotFoundError: If the source campground does not exist
        """
        if limit is None:
            limit = self._config.similar_default_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {limit!r}")

        campgrounds = await self._refresh()
        if not any(c.id == campground_id for c in campgrounds):
            raise NotFoundError("campground", campground_id)

        overlap: Counter[str] = Counter()
        for tag_id in self._tags.get(campground_id, set()):
            for other in self._by_tag.get(tag_id, ()):
                if other != campground_id:
                    overlap[other] += 1

        ranked = sorted(
            overlap.items(),
            key=lambda item: (-item[1], -self._ratings.get(item[0], 0.0), item[0]),
        )
        return [other for other, _ in ranked[:limit]]


__all__ = ["TagSimilarityRanker"]
