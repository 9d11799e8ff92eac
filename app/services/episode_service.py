"""Episode query service.

Read-only queries over the ``episodes`` table, mapped into display models.
Every backend failure surfaces as a single ``FetchError``; "no rows" and
missing optional fields are normal values.
"""

import logging
from collections import Counter
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.episodes import (
    CategorySummary,
    EpisodeListFilters,
    EpisodeListResponse,
    EpisodeResource,
    EpisodeSort,
    EpisodeStats,
    EpisodeSummary,
)
from app.schemas.episodes import Episode
from app.services.errors import FetchError
from app.utils.slug import category_slug

logger = logging.getLogger(__name__)

# Shared column list for episode queries.
# Keep in sync with row_to_episode_summary() which maps these columns.
_EPISODE_COLUMNS = [
    Episode.id,
    Episode.podcast_name,
    Episode.podcast_host,
    Episode.podcast_category,
    Episode.podcast_artwork_url,
    Episode.episode_title,
    Episode.episode_number,
    Episode.episode_date,
    Episode.episode_duration_minutes,
    Episode.guest_name,
    Episode.guest_title,
    Episode.guest_bio,
    Episode.guest_avatar_url,
    Episode.summary,
    Episode.key_takeaways,
    Episode.full_notes,
    Episode.resources_mentioned,
    Episode.tags,
    Episode.read_time_minutes,
    Episode.view_count,
    Episode.published_at,
]

_RECENT_ORDER = (
    Episode.published_at.desc().nulls_last(),  # type: ignore[union-attr]
    Episode.id,
)
_POPULAR_ORDER = (
    Episode.view_count.desc().nulls_last(),  # type: ignore[union-attr]
    Episode.published_at.desc().nulls_last(),  # type: ignore[union-attr]
    Episode.id,
)


@asynccontextmanager
async def _backend_errors(db: AsyncSession, what: str) -> AsyncIterator[None]:
    """Convert driver/ORM failures into FetchError.

    The session is rolled back first so later reads in the same request
    are not stuck on an aborted transaction.
    """
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        message = f"Failed to load {what}: {exc}"
        logger.error(message)
        try:
            await db.rollback()
        except SQLAlchemyError:
            logger.exception(f"Rollback after failed {what} query also failed")
        raise FetchError(message) from exc


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _listing_conditions(category: Optional[str], search: Optional[str]) -> list[Any]:
    """WHERE clauses shared by the page query and its count query."""
    conditions: list[Any] = []
    if category:
        conditions.append(
            Episode.podcast_category.contains([category])  # type: ignore[union-attr]
        )
    if search:
        pattern = f"%{_escape_like(search)}%"
        conditions.append(
            or_(
                Episode.episode_title.ilike(pattern, escape="\\"),  # type: ignore[attr-defined]
                Episode.summary.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
                Episode.guest_name.ilike(pattern, escape="\\"),  # type: ignore[union-attr]
            )
        )
    return conditions


def build_listing_query(filters: EpisodeListFilters) -> Any:
    """Build the SELECT for one page of a filtered, sorted listing."""
    order = _POPULAR_ORDER if filters.sort == EpisodeSort.POPULAR else _RECENT_ORDER
    return (
        select(*_EPISODE_COLUMNS)  # type: ignore[call-overload]
        .where(*_listing_conditions(filters.category, filters.search))
        .order_by(*order)
        .offset(filters.offset)
        .limit(filters.limit)
    )


def build_count_query(filters: EpisodeListFilters) -> Any:
    """Build the exact-count SELECT matching build_listing_query()."""
    return (
        select(func.count())
        .select_from(Episode)
        .where(*_listing_conditions(filters.category, filters.search))
    )


def _coerce_resources(raw: Any, episode_id: str) -> list[EpisodeResource]:
    """Keep the well-formed resource entries, dropping the rest."""
    if not isinstance(raw, list):
        return []
    resources: list[EpisodeResource] = []
    for entry in raw:
        try:
            resources.append(EpisodeResource.model_validate(entry))
        except ValidationError:
            logger.warning(f"Dropping malformed resource on episode {episode_id}: {entry!r}")
    return resources


def _string_list(raw: Any) -> list[str]:
    """Keep the non-empty strings of an array column; NULL elements are dropped."""
    if not isinstance(raw, (list, tuple)):
        return []
    return [value for value in raw if isinstance(value, str) and value]


def row_to_episode_summary(row: Mapping[str, Any]) -> EpisodeSummary:
    """Convert an episodes row mapping to an EpisodeSummary.

    Total over partial rows: absent lists become empty, NULL array
    elements are dropped, an absent view count becomes zero, other
    optional columns pass through as None.
    """
    episode_id = str(row["id"])
    return EpisodeSummary(
        id=episode_id,
        podcast_name=row.get("podcast_name") or "",
        podcast_host=row.get("podcast_host"),
        categories=_string_list(row.get("podcast_category")),
        artwork_url=row.get("podcast_artwork_url"),
        title=row.get("episode_title") or "",
        episode_number=row.get("episode_number"),
        episode_date=row.get("episode_date"),
        duration_minutes=row.get("episode_duration_minutes"),
        guest_name=row.get("guest_name"),
        guest_title=row.get("guest_title"),
        guest_bio=row.get("guest_bio"),
        guest_avatar_url=row.get("guest_avatar_url"),
        summary=row.get("summary"),
        key_takeaways=_string_list(row.get("key_takeaways")),
        full_notes=row.get("full_notes"),
        resources_mentioned=_coerce_resources(row.get("resources_mentioned"), episode_id),
        tags=_string_list(row.get("tags")),
        read_time_minutes=row.get("read_time_minutes"),
        view_count=row.get("view_count") or 0,
        published_at=row.get("published_at"),
    )


def count_categories(rows: list[Optional[list[Optional[str]]]]) -> list[CategorySummary]:
    """Tally category labels and order them by descending frequency.

    Labels with equal counts keep the order in which they were first seen.
    """
    counts: Counter[str] = Counter()
    for labels in rows:
        counts.update(_string_list(labels))
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [
        CategorySummary(name=name, count=count, slug=category_slug(name))
        for name, count in ranked
    ]


def exclude_episode(
    episodes: list[EpisodeSummary],
    episode_id: str,
    limit: int,
) -> list[EpisodeSummary]:
    """Drop ``episode_id`` from ``episodes`` and keep at most ``limit``."""
    return [item for item in episodes if item.id != episode_id][:limit]


async def get_recent_episodes(db: AsyncSession, limit: int = 6) -> list[EpisodeSummary]:
    """Fetch the most recently published episodes for the home page.

    Args:
        db: Async database session
        limit: Maximum episodes to return

    Returns:
        Episodes ordered by published_at desc, unpublished rows last
    """
    query = select(*_EPISODE_COLUMNS).order_by(*_RECENT_ORDER).limit(limit)  # type: ignore[call-overload]
    async with _backend_errors(db, "recent episodes"):
        result = await db.execute(query)
        rows = result.mappings().all()
    return [row_to_episode_summary(row) for row in rows]


async def get_all_episodes(
    db: AsyncSession,
    filters: Optional[EpisodeListFilters] = None,
) -> EpisodeListResponse:
    """Fetch one page of the filtered, sorted episode listing.

    Args:
        db: Async database session
        filters: Category, search text, sort order and page window

    Returns:
        EpisodeListResponse with the page and the total matching count
    """
    filters = filters or EpisodeListFilters()
    async with _backend_errors(db, "episodes"):
        count_result = await db.execute(build_count_query(filters))
        total = count_result.scalar() or 0

        result = await db.execute(build_listing_query(filters))
        rows = result.mappings().all()

    return EpisodeListResponse(
        episodes=[row_to_episode_summary(row) for row in rows],
        total=total,
        limit=filters.limit,
        offset=filters.offset,
    )


async def get_episode_by_id(db: AsyncSession, episode_id: str) -> Optional[EpisodeSummary]:
    """Fetch a single episode.

    Returns:
        EpisodeSummary if found, None otherwise
    """
    query = select(*_EPISODE_COLUMNS).where(Episode.id == episode_id)  # type: ignore[call-overload]
    async with _backend_errors(db, "episode"):
        result = await db.execute(query)
        row = result.mappings().first()
    return row_to_episode_summary(row) if row else None


async def get_categories(db: AsyncSession) -> list[CategorySummary]:
    """Scan every episode's categories and count them.

    Aggregation happens here rather than in SQL, which is fine for a
    catalogue of a few thousand rows.
    """
    query = select(Episode.podcast_category).order_by(*_RECENT_ORDER)  # type: ignore[call-overload]
    async with _backend_errors(db, "categories"):
        result = await db.execute(query)
        rows = list(result.scalars().all())
    return count_categories(rows)


async def get_episodes_by_category(
    db: AsyncSession,
    category: str,
    limit: int = 12,
    offset: int = 0,
) -> EpisodeListResponse:
    """Fetch one page of a category, newest first."""
    filters = EpisodeListFilters(
        category=category,
        sort=EpisodeSort.RECENT,
        limit=limit,
        offset=offset,
    )
    async with _backend_errors(db, "category episodes"):
        count_result = await db.execute(build_count_query(filters))
        total = count_result.scalar() or 0

        result = await db.execute(build_listing_query(filters))
        rows = result.mappings().all()

    return EpisodeListResponse(
        episodes=[row_to_episode_summary(row) for row in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


async def get_related_episodes(
    db: AsyncSession,
    episode: EpisodeSummary,
    limit: int = 3,
) -> list[EpisodeSummary]:
    """Fetch up to ``limit`` other episodes from the episode's first category."""
    if not episode.categories:
        return []
    # One extra row so dropping the episode itself still leaves ``limit``
    page = await get_episodes_by_category(db, episode.categories[0], limit=limit + 1)
    return exclude_episode(page.episodes, episode.id, limit)


async def get_episode_stats(db: AsyncSession) -> EpisodeStats:
    """Sum episode count, listening minutes and reading minutes."""
    query = select(  # type: ignore[call-overload]
        Episode.episode_duration_minutes,
        Episode.read_time_minutes,
    )
    async with _backend_errors(db, "episode stats"):
        result = await db.execute(query)
        rows = result.all()

    return EpisodeStats(
        total_episodes=len(rows),
        total_duration_minutes=sum(row[0] or 0 for row in rows),
        total_read_time_minutes=sum(row[1] or 0 for row in rows),
    )
