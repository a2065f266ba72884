"""Tests for TagCatalog."""

import pytest

from campground_reservations.catalog import TagCatalog
from campground_reservations.exceptions import ConflictError, NotFoundError, ValidationError
from campground_reservations.similarity import TagSimilarityRanker


@pytest.fixture
def ranker(campgrounds):
    return TagSimilarityRanker(campgrounds)


@pytest.fixture
def catalog(campgrounds, tags, ranker):
    return TagCatalog(campgrounds, tags, ranker=ranker)


class TestTagCrud:
    @pytest.mark.asyncio
    async def test_list_tags_sorted_by_name(self, catalog):
        names = [t.name for t in await catalog.list_tags()]
        assert names == ["Hiking", "Lakefront", "Pet friendly", "RV hookups"]

    @pytest.mark.asyncio
    async def test_create_tag(self, catalog, tags):
        tag = await catalog.create_tag("  Fire pits ")
        assert tag.name == "Fire pits"
        assert await tags.get(tag.id) == tag

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None])
    async def test_create_tag_requires_name(self, catalog, name):
        with pytest.raises(ValidationError):
            await catalog.create_tag(name)

    @pytest.mark.asyncio
    async def test_create_duplicate_name_case_insensitive(self, catalog):
        with pytest.raises(ConflictError):
            await catalog.create_tag("lakefront")

    @pytest.mark.asyncio
    async def test_delete_tag_cascades(self, catalog, campgrounds, tags, ranker):
        await catalog.add_tag("cg-1", "t-a")
        await catalog.add_tag("cg-2", "t-a")
        await ranker.similar_to("cg-1")

        await catalog.delete_tag("t-a")

        assert await tags.get("t-a") is None
        assert "t-a" not in (await campgrounds.get("cg-1")).tags
        assert "t-a" not in (await campgrounds.get("cg-2")).tags
        assert await ranker.similar_to("cg-1") == []

    @pytest.mark.asyncio
    async def test_delete_unknown_tag(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.delete_tag("missing")


class TestCampgroundTags:
    @pytest.mark.asyncio
    async def test_add_and_list(self, catalog):
        await catalog.add_tag("cg-1", "t-c")
        await catalog.add_tag("cg-1", "t-a")
        assert [t.name for t in await catalog.tags_for_campground("cg-1")] == [
            "Hiking",
            "Lakefront",
        ]

    @pytest.mark.asyncio
    async def test_add_duplicate(self, catalog):
        await catalog.add_tag("cg-1", "t-a")
        with pytest.raises(ConflictError, match="Tag already exists in campground"):
            await catalog.add_tag("cg-1", "t-a")

    @pytest.mark.asyncio
    async def test_add_unknown_campground_or_tag(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.add_tag("nope", "t-a")
        with pytest.raises(NotFoundError):
            await catalog.add_tag("cg-1", "nope")

    @pytest.mark.asyncio
    async def test_remove(self, catalog, campgrounds):
        await catalog.add_tag("cg-1", "t-a")
        await catalog.remove_tag("cg-1", "t-a")
        assert (await campgrounds.get("cg-1")).tags == set()

    @pytest.mark.asyncio
    async def test_remove_tag_not_on_campground(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.remove_tag("cg-1", "t-a")

    @pytest.mark.asyncio
    async def test_tags_for_unknown_campground(self, catalog):
        with pytest.raises(NotFoundError):
            await catalog.tags_for_campground("nope")

    @pytest.mark.asyncio
    async def test_ranker_kept_in_sync(self, catalog, ranker):
        await ranker.similar_to("cg-1")
        await catalog.add_tag("cg-1", "t-b")
        await catalog.add_tag("cg-2", "t-b")
        assert await ranker.similar_to("cg-1") == ["cg-2"]

        await catalog.remove_tag("cg-2", "t-b")
        assert await ranker.similar_to("cg-1") == []

    @pytest.mark.asyncio
    async def test_tag_changes_never_touch_reservations(self, catalog, reservations):
        await catalog.add_tag("cg-1", "t-a")
        await catalog.delete_tag("t-a")
        assert await reservations.list_active() == []
