"""View state for paginated episode listings.

A listing is always in exactly one of ``Idle``, ``Loading``,
``LoadingMore``, ``Loaded`` or ``Failed``. States are immutable and only
``reduce()`` moves between them, which rules out combinations such as
"loading and showing an error" and lets the transitions be tested without
any page or template.

Every fetch carries a request token. A result event is applied only while
the listing is waiting on that same token, so a response that arrives after
a newer fetch was started is dropped instead of overwriting fresher data.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from app.models.episodes import EpisodeSummary


@dataclass(frozen=True, slots=True)
class ListingPage:
    """Episodes accumulated so far and the page cursor that produced them."""

    episodes: tuple[EpisodeSummary, ...]
    total: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return (self.page + 1) * self.page_size < self.total


@dataclass(frozen=True, slots=True)
class Idle:
    kind: ClassVar[str] = "idle"


@dataclass(frozen=True, slots=True)
class Loading:
    """First page in flight. ``previous`` is kept only to survive a failure."""

    kind: ClassVar[str] = "loading"
    token: int
    previous: Optional[ListingPage] = None


@dataclass(frozen=True, slots=True)
class LoadingMore:
    """Next page in flight; ``data`` stays on screen."""

    kind: ClassVar[str] = "loading_more"
    token: int
    data: ListingPage


@dataclass(frozen=True, slots=True)
class Loaded:
    kind: ClassVar[str] = "loaded"
    data: ListingPage


@dataclass(frozen=True, slots=True)
class Failed:
    kind: ClassVar[str] = "failed"
    message: str
    previous: Optional[ListingPage] = None


ListingState = Union[Idle, Loading, LoadingMore, Loaded, Failed]


@dataclass(frozen=True, slots=True)
class FetchStarted:
    token: int
    append: bool = False


@dataclass(frozen=True, slots=True)
class FetchSucceeded:
    token: int
    episodes: tuple[EpisodeSummary, ...]
    total: int
    page: int
    page_size: int


@dataclass(frozen=True, slots=True)
class FetchFailed:
    token: int
    message: str


@dataclass(frozen=True, slots=True)
class Resumed:
    """The reader already holds pages ``0..page`` (used by load-more requests)."""

    total: int
    page: int
    page_size: int


ListingEvent = Union[FetchStarted, FetchSucceeded, FetchFailed, Resumed]


def current_data(state: ListingState) -> Optional[ListingPage]:
    """Return the result set a state carries, visible or not."""
    if isinstance(state, (Loaded, LoadingMore)):
        return state.data
    if isinstance(state, (Loading, Failed)):
        return state.previous
    return None


def visible_episodes(state: ListingState) -> tuple[EpisodeSummary, ...]:
    """Episodes to render; the initial-loading skeleton hides everything."""
    if isinstance(state, Loading):
        return ()
    data = current_data(state)
    return data.episodes if data else ()


def pending_token(state: ListingState) -> Optional[int]:
    if isinstance(state, (Loading, LoadingMore)):
        return state.token
    return None


def reduce(state: ListingState, event: ListingEvent) -> ListingState:
    """Apply one event. Returns ``state`` itself when the event is ignored."""
    if isinstance(event, Resumed):
        if not isinstance(state, Idle):
            return state
        return Loaded(ListingPage((), event.total, event.page, event.page_size))

    if isinstance(event, FetchStarted):
        if event.append:
            # Appending only makes sense on top of a settled result set
            if not isinstance(state, Loaded):
                return state
            return LoadingMore(token=event.token, data=state.data)
        return Loading(token=event.token, previous=current_data(state))

    if pending_token(state) != event.token:
        return state

    if isinstance(event, FetchSucceeded):
        if isinstance(state, LoadingMore):
            episodes = state.data.episodes + event.episodes
        else:
            episodes = event.episodes
        return Loaded(ListingPage(episodes, event.total, event.page, event.page_size))

    # FetchFailed
    return Failed(message=event.message, previous=current_data(state))
