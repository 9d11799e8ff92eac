"""Drives a paginated episode listing through the view-state reducer."""

import itertools
import logging
from typing import Awaitable, Callable

from app.models.episodes import EpisodeListFilters, EpisodeListResponse
from app.services.browse_filters import BrowseFilters
from app.services.errors import FetchError
from app.services.view_state import (
    FetchFailed,
    FetchStarted,
    FetchSucceeded,
    Idle,
    ListingEvent,
    ListingState,
    Loaded,
    Resumed,
    reduce,
)

logger = logging.getLogger(__name__)

FetchPage = Callable[[EpisodeListFilters], Awaitable[EpisodeListResponse]]


class ListingController:
    """Owns one listing's filters, page cursor and request tokens.

    ``refresh()`` replaces the result set with page 0, ``load_more()``
    appends the next page. Query failures are caught here and become a
    ``Failed`` state; they never propagate to the caller.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        filters: BrowseFilters | None = None,
        page_size: int = 12,
    ) -> None:
        self._fetch_page = fetch_page
        self._filters = filters or BrowseFilters()
        self.page_size = page_size
        self._state: ListingState = Idle()
        self._tokens = itertools.count(1)

    @property
    def state(self) -> ListingState:
        return self._state

    @property
    def filters(self) -> BrowseFilters:
        return self._filters

    def dispatch(self, event: ListingEvent) -> ListingState:
        self._state = reduce(self._state, event)
        return self._state

    def resume(self, page: int, total: int) -> ListingState:
        """Mark pages ``0..page`` as already shown to the reader."""
        return self.dispatch(Resumed(total=total, page=page, page_size=self.page_size))

    async def refresh(self) -> ListingState:
        """Fetch page 0 and replace whatever is loaded."""
        return await self._run(page=0, append=False)

    async def retry(self) -> ListingState:
        return await self.refresh()

    async def apply_filters(self, filters: BrowseFilters) -> ListingState:
        """Switch to a new filter combination; unchanged filters do not refetch."""
        if filters == self._filters and not isinstance(self._state, Idle):
            return self._state
        self._filters = filters
        return await self.refresh()

    async def load_more(self) -> ListingState:
        """Fetch and append the next page when there is one."""
        state = self._state
        if not isinstance(state, Loaded) or not state.data.has_more:
            return state
        return await self._run(page=state.data.page + 1, append=True)

    async def _run(self, page: int, append: bool) -> ListingState:
        token = next(self._tokens)
        self.dispatch(FetchStarted(token=token, append=append))

        query = self._filters.to_list_filters(
            limit=self.page_size,
            offset=page * self.page_size,
        )
        event: ListingEvent
        try:
            response = await self._fetch_page(query)
        except FetchError as exc:
            event = FetchFailed(token=token, message=exc.message)
        else:
            event = FetchSucceeded(
                token=token,
                episodes=tuple(response.episodes),
                total=response.total,
                page=page,
                page_size=self.page_size,
            )

        before = self._state
        after = self.dispatch(event)
        if after is before:
            logger.debug(f"Discarded superseded listing response (token {token})")
        return after
