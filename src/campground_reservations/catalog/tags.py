# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Tag catalog operations: tag CRUD and tag assignment on campgrounds."""

import asyncio
import logging

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..repositories.base import CampgroundRepository, TagRepository
from ..similarity.ranker import TagSimilarityRanker
from ..types.catalog import Campground, Tag

logger = logging.getLogger(__name__)


class TagCatalog:
    """
    Manages tags and their assignment to campgrounds.

    Every mutation is forwarded to the similarity ranker so its inverted
    index stays current. Tag changes never affect reservations or the
    interval index.
    """

    def __init__(
        self,
        campgrounds: CampgroundRepository,
        tags: TagRepository,
        ranker: TagSimilarityRanker | None = None,
    ) -> None:
        self._campgrounds = campgrounds
        self._tags = tags
        self._ranker = ranker
        # Serializes read-modify-write of campground tag sets
        self._lock = asyncio.Lock()

    async def _require_campground(self, campground_id: str) -> Campground:
        campground = await self._campgrounds.get(campground_id)
        if campground is None:
            raise NotFoundError("campground", campground_id)
        return campground

    async def _require_tag(self, tag_id: str) -> Tag:
        tag = await self._tags.get(tag_id)
        if tag is None:
            raise NotFoundError("tag", tag_id)
        return tag

    async def list_tags(self) -> list[Tag]:
        return sorted(await self._tags.list_all(), key=lambda t: (t.name.casefold(), t.id))

    async def create_tag(self, name: str) -> Tag:
        """
        Create a tag.

        Raises:
            ValidationError: If the name is blank
            ConflictError: If a tag with the same name (case-insensitive) exists
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Tag name is required")

        async with self._lock:
            if await self._tags.get_by_name(name) is not None:
                raise ConflictError(f"Tag already exists: {name.strip()}")
            tag = Tag.create(name)
            await self._tags.save(tag)

        logger.info("Tag created: tag_id=%s, name=%s", tag.id, tag.name)
        return tag

    async def delete_tag(self, tag_id: str) -> None:
        """Delete a tag and remove it from every campground."""
        async with self._lock:
            await self._require_tag(tag_id)
            detached = 0
            for campground in await self._campgrounds.list_all():
                if tag_id in campground.tags:
                    campground.tags.discard(tag_id)
                    await self._campgrounds.save(campground)
                    detached += 1
            await self._tags.delete(tag_id)

        if self._ranker:
            self._ranker.tag_deleted(tag_id)
        logger.info("Tag deleted: tag_id=%s, detached_from=%d", tag_id, detached)

    async def tags_for_campground(self, campground_id: str) -> list[Tag]:
        campground = await self._require_campground(campground_id)
        tags = [await self._tags.get(tag_id) for tag_id in campground.tags]
        return sorted(
            (t for t in tags if t is not None),
            key=lambda t: (t.name.casefold(), t.id),
        )

    async def add_tag(self, campground_id: str, tag_id: str) -> None:
        """
        Attach a tag to a campground.

        Raises:
            NotFoundError: If the campground or the tag does not exist
            ConflictError: If the tag is already attached
        """
        async with self._lock:
            campground = await self._require_campground(campground_id)
            await self._require_tag(tag_id)
            if tag_id in campground.tags:
                raise ConflictError("Tag already exists in campground")
            campground.tags.add(tag_id)
            await self._campgrounds.save(campground)

        if self._ranker:
            self._ranker.tag_added(campground_id, tag_id)
        logger.debug("Tag added: campground_id=%s, tag_id=%s", campground_id, tag_id)

    async def remove_tag(self, campground_id: str, tag_id: str) -> None:
        """
        Detach a tag from a campground.

        Raises:
            NotFoundError: If the campground or tag does not exist, or the tag
                is not attached to the campground
        """
        async with self._lock:
            campground = await self._require_campground(campground_id)
            await self._require_tag(tag_id)
            if tag_id not in campground.tags:
                raise NotFoundError("campground tag", tag_id)
            campground.tags.discard(tag_id)
            await self._campgrounds.save(campground)

        if self._ranker:
            self._ranker.tag_removed(campground_id, tag_id)
        logger.debug("Tag removed: campground_id=%s, tag_id=%s", campground_id, tag_id)


__all__ = ["TagCatalog"]
