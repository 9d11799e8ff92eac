"""Browse filter state and its query-string form.

The query string is the only place filter state lives between requests.
``decode_filters`` and ``encode_filters`` convert between it and the
``BrowseFilters`` value object so that any router (or a test) can round-trip
the state without touching a request object.
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import urlencode

from app.models.episodes import EpisodeListFilters, EpisodeSort

SEARCH_PARAM = "q"
CATEGORY_PARAM = "category"
SORT_PARAM = "sort"
PAGE_PARAM = "page"
TOTAL_PARAM = "total"


@dataclass(frozen=True, slots=True)
class BrowseFilters:
    """Search text, category and sort order chosen on a listing page."""

    search: Optional[str] = None
    category: Optional[str] = None
    sort: EpisodeSort = EpisodeSort.RECENT

    def with_changes(self, **changes: object) -> "BrowseFilters":
        return replace(self, **changes)  # type: ignore[arg-type]

    def to_list_filters(self, limit: int, offset: int) -> EpisodeListFilters:
        """Combine with a page window into a query-layer filter object."""
        return EpisodeListFilters(
            category=self.category,
            sort=self.sort,
            search=self.search,
            limit=limit,
            offset=offset,
        )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_sort(value: Optional[str]) -> EpisodeSort:
    try:
        return EpisodeSort((value or "").strip().lower())
    except ValueError:
        return EpisodeSort.RECENT


def decode_filters(params: Mapping[str, str]) -> BrowseFilters:
    """Read filters from query parameters, ignoring blanks and bad sorts."""
    return BrowseFilters(
        search=_clean(params.get(SEARCH_PARAM)),
        category=_clean(params.get(CATEGORY_PARAM)),
        sort=_parse_sort(params.get(SORT_PARAM)),
    )


def encode_filters(filters: BrowseFilters) -> dict[str, str]:
    """Write filters as query parameters, omitting empty and default values."""
    params: dict[str, str] = {}
    if filters.search:
        params[SEARCH_PARAM] = filters.search
    if filters.category:
        params[CATEGORY_PARAM] = filters.category
    if filters.sort != EpisodeSort.RECENT:
        params[SORT_PARAM] = filters.sort.value
    return params


def decode_page(params: Mapping[str, str], key: str = PAGE_PARAM) -> int:
    """Read a non-negative integer parameter, defaulting to 0."""
    raw = params.get(key)
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        return 0
    return max(value, 0)


def replace_query_params(
    params: Mapping[str, str],
    **changes: Optional[str],
) -> dict[str, str]:
    """Merge ``changes`` into ``params``; an empty or None value deletes the key."""
    merged = dict(params)
    for key, value in changes.items():
        if value:
            merged[key] = value
        else:
            merged.pop(key, None)
    return merged


def build_url(path: str, params: Mapping[str, str]) -> str:
    """Append ``params`` to ``path`` as a query string when there are any."""
    query = urlencode(params)
    return f"{path}?{query}" if query else path
