"""Resolve category URL segments back to category labels."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Union

from app.models.episodes import CategorySummary
from app.services.errors import FetchError
from app.utils.formatting import title_case_words
from app.utils.slug import category_slug, decode_segment


@dataclass(frozen=True, slots=True)
class CategoryPending:
    """The category list is not available yet; nothing can be declared."""

    segment: str


@dataclass(frozen=True, slots=True)
class CategoryMatch:
    name: str


@dataclass(frozen=True, slots=True)
class CategoryMissing:
    segment: str


CategoryResolution = Union[CategoryPending, CategoryMatch, CategoryMissing]


@dataclass(frozen=True, slots=True)
class CategoryLookup:
    resolution: CategoryResolution
    categories: tuple[CategorySummary, ...] = ()
    error: Optional[str] = None


def slug_matches(label: str, segment: str) -> bool:
    """True if ``segment`` is the slug of ``label``, encoded or not.

    Routers usually hand over path segments already percent-decoded, while
    links built by hand may keep the encoding; both spellings match.
    """
    slug = category_slug(label)
    return segment in (slug, decode_segment(slug))


def resolve_category(
    segment: str,
    categories: Optional[Sequence[CategorySummary]],
) -> CategoryResolution:
    """Find the category whose slug equals ``segment``.

    ``categories=None`` means the list has not loaded, so the answer is
    deferred rather than "not found".
    """
    if categories is None:
        return CategoryPending(segment)
    for category in categories:
        if slug_matches(category.name, segment):
            return CategoryMatch(category.name)
    return CategoryMissing(segment)


async def lookup_category(
    fetch_categories: Callable[[], Awaitable[list[CategorySummary]]],
    segment: str,
) -> CategoryLookup:
    """Load the category list and resolve ``segment`` against it."""
    try:
        categories = await fetch_categories()
    except FetchError as exc:
        return CategoryLookup(resolution=CategoryPending(segment), error=exc.message)
    return CategoryLookup(
        resolution=resolve_category(segment, categories),
        categories=tuple(categories),
    )


def category_heading(resolution: CategoryResolution) -> str:
    """Page heading: the canonical label, or a readable form of the segment."""
    if isinstance(resolution, CategoryMatch):
        name = resolution.name
    else:
        name = decode_segment(resolution.segment).replace("-", " ")
    return title_case_words(name)
