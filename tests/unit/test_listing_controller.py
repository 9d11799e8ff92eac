"""Unit tests for ListingController paging, filtering and stale responses."""

import asyncio

import pytest

from app.models.episodes import EpisodeListFilters, EpisodeListResponse, EpisodeSort
from app.services.browse_filters import BrowseFilters
from app.services.errors import FetchError
from app.services.listing_controller import ListingController
from app.services.view_state import Failed, Idle, Loaded, visible_episodes
from tests.helpers import FakeEpisodeSource, make_summary


def _catalogue() -> list:
    """14 AI episodes interleaved with 6 Health episodes."""
    episodes = [make_summary(i, categories=["AI"]) for i in range(14)]
    episodes += [make_summary(100 + i, categories=["Health"]) for i in range(6)]
    return episodes


class TestPaging:
    """Tests for refresh() and load_more()."""

    @pytest.mark.asyncio
    async def test_category_pages_accumulate(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        controller = ListingController(
            source.fetch_page, BrowseFilters(category="AI"), page_size=12
        )

        state = await controller.refresh()
        assert isinstance(state, Loaded)
        assert len(state.data.episodes) == 12
        assert state.data.total == 14
        assert state.data.has_more

        state = await controller.load_more()
        assert isinstance(state, Loaded)
        assert len(state.data.episodes) == 14
        assert not state.data.has_more
        assert [c.offset for c in source.calls] == [0, 12]
        assert all(c.category == "AI" for c in source.calls)

    @pytest.mark.asyncio
    async def test_load_more_without_more_pages_does_not_fetch(self) -> None:
        source = FakeEpisodeSource([make_summary(i) for i in range(3)])
        controller = ListingController(source.fetch_page, page_size=12)
        await controller.refresh()

        state = await controller.load_more()
        assert len(source.calls) == 1
        assert isinstance(state, Loaded)
        assert len(state.data.episodes) == 3

    @pytest.mark.asyncio
    async def test_load_more_before_first_page_is_noop(self) -> None:
        source = FakeEpisodeSource([make_summary(0)])
        controller = ListingController(source.fetch_page)
        state = await controller.load_more()
        assert isinstance(state, Idle)
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_resume_then_load_more_fetches_next_page(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        controller = ListingController(
            source.fetch_page, BrowseFilters(category="AI"), page_size=12
        )
        controller.resume(page=0, total=14)
        state = await controller.load_more()

        assert isinstance(state, Loaded)
        assert [e.id for e in state.data.episodes] == ["ep-012", "ep-013"]
        assert source.calls[0].offset == 12

    @pytest.mark.asyncio
    async def test_empty_result(self) -> None:
        source = FakeEpisodeSource([])
        controller = ListingController(source.fetch_page)
        state = await controller.refresh()
        assert isinstance(state, Loaded)
        assert state.data.total == 0
        assert visible_episodes(state) == ()


class TestFilters:
    @pytest.mark.asyncio
    async def test_filters_reach_query(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        filters = BrowseFilters(search="attia", category="Health", sort=EpisodeSort.POPULAR)
        controller = ListingController(source.fetch_page, filters, page_size=6)
        await controller.refresh()

        query = source.calls[0]
        assert query == EpisodeListFilters(
            search="attia",
            category="Health",
            sort=EpisodeSort.POPULAR,
            limit=6,
            offset=0,
        )

    @pytest.mark.asyncio
    async def test_new_filters_reset_to_first_page(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        controller = ListingController(source.fetch_page, page_size=12)
        await controller.refresh()
        await controller.load_more()

        state = await controller.apply_filters(BrowseFilters(category="Health"))
        assert isinstance(state, Loaded)
        assert state.data.total == 6
        assert state.data.page == 0
        assert source.calls[-1].offset == 0

    @pytest.mark.asyncio
    async def test_unchanged_filters_do_not_refetch(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        controller = ListingController(source.fetch_page, BrowseFilters(category="AI"))
        await controller.refresh()

        await controller.apply_filters(BrowseFilters(category="AI"))
        assert len(source.calls) == 1


class TestFailures:
    """Tests for FetchError handling and retry."""

    @pytest.mark.asyncio
    async def test_failure_becomes_failed_state(self) -> None:
        async def fetch_page(filters: EpisodeListFilters) -> EpisodeListResponse:
            raise FetchError("Failed to load episodes: connection refused")

        controller = ListingController(fetch_page)
        state = await controller.refresh()
        assert isinstance(state, Failed)
        assert state.message == "Failed to load episodes: connection refused"
        assert state.previous is None

    @pytest.mark.asyncio
    async def test_retry_after_failure(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        attempts = 0

        async def flaky(filters: EpisodeListFilters) -> EpisodeListResponse:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise FetchError("Failed to load episodes: timeout")
            return await source.fetch_page(filters)

        controller = ListingController(flaky)
        assert isinstance(await controller.refresh(), Failed)

        state = await controller.retry()
        assert isinstance(state, Loaded)
        assert state.data.total == 20

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_results(self) -> None:
        source = FakeEpisodeSource(_catalogue())
        fail = False

        async def fetch_page(filters: EpisodeListFilters) -> EpisodeListResponse:
            if fail:
                raise FetchError("Failed to load episodes: timeout")
            return await source.fetch_page(filters)

        controller = ListingController(fetch_page)
        loaded = await controller.refresh()
        fail = True
        state = await controller.refresh()

        assert isinstance(state, Failed)
        assert isinstance(loaded, Loaded)
        assert visible_episodes(state) == loaded.data.episodes


class TestStaleResponses:
    @pytest.mark.asyncio
    async def test_slow_response_for_old_filters_is_discarded(self) -> None:
        """Changing filters while a fetch is in flight keeps the newer result."""
        source = FakeEpisodeSource(_catalogue())
        release = asyncio.Event()

        async def fetch_page(filters: EpisodeListFilters) -> EpisodeListResponse:
            if filters.category == "AI":
                await release.wait()
            return await source.fetch_page(filters)

        controller = ListingController(fetch_page, BrowseFilters(category="AI"))
        slow = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)

        state = await controller.apply_filters(BrowseFilters(category="Health"))
        assert isinstance(state, Loaded)
        assert state.data.total == 6

        release.set()
        await slow

        final = controller.state
        assert isinstance(final, Loaded)
        assert final.data.total == 6
        assert all("Health" in e.categories for e in final.data.episodes)
