"""Episode API routes.

Provides endpoints for:
- Paginated, filtered episode listings
- Recent episodes and aggregate stats for the home page
- Single episode lookup and related episodes
- Category counts and per-category listings
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.episodes import (
    CategorySummary,
    EpisodeListFilters,
    EpisodeListResponse,
    EpisodeSort,
    EpisodeStats,
    EpisodeSummary,
)
from app.services.category_service import CategoryMatch, lookup_category
from app.services.episode_service import (
    get_all_episodes,
    get_categories,
    get_episode_by_id,
    get_episode_stats,
    get_episodes_by_category,
    get_recent_episodes,
    get_related_episodes,
)
from app.services.errors import FetchError
from app.utils.db_async import get_session

router = APIRouter(prefix="/api", tags=["episodes"])


def _unavailable(exc: FetchError) -> HTTPException:
    return HTTPException(status_code=503, detail=exc.message)


@router.get("/episodes", response_model=EpisodeListResponse)
async def list_episodes(
    q: Optional[str] = Query(default=None, description="Search title, summary or guest"),
    category: Optional[str] = Query(default=None, description="Category label"),
    sort: EpisodeSort = Query(default=EpisodeSort.RECENT, description="recent or popular"),
    limit: int = Query(default=12, ge=1, le=100, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Number of items to skip"),
    db: AsyncSession = Depends(get_session),
) -> EpisodeListResponse:
    """Fetch one page of episodes with the total matching count."""
    filters = EpisodeListFilters(
        category=category or None,
        sort=sort,
        limit=limit,
        offset=offset,
        search=(q or "").strip() or None,
    )
    try:
        return await get_all_episodes(db, filters)
    except FetchError as exc:
        raise _unavailable(exc) from exc


@router.get("/episodes/recent", response_model=list[EpisodeSummary])
async def list_recent_episodes(
    limit: int = Query(default=6, ge=1, le=50, description="Number of episodes"),
    db: AsyncSession = Depends(get_session),
) -> list[EpisodeSummary]:
    """Most recently published episodes."""
    try:
        return await get_recent_episodes(db, limit=limit)
    except FetchError as exc:
        raise _unavailable(exc) from exc


@router.get("/episodes/stats", response_model=EpisodeStats)
async def episode_stats(db: AsyncSession = Depends(get_session)) -> EpisodeStats:
    """Episode count plus total listening and reading minutes."""
    try:
        return await get_episode_stats(db)
    except FetchError as exc:
        raise _unavailable(exc) from exc


@router.get("/episodes/{episode_id}", response_model=EpisodeSummary)
async def read_episode(
    episode_id: str,
    db: AsyncSession = Depends(get_session),
) -> EpisodeSummary:
    """Fetch one episode; 404 when the id is unknown."""
    try:
        episode = await get_episode_by_id(db, episode_id)
    except FetchError as exc:
        raise _unavailable(exc) from exc
    if episode is None:
        raise HTTPException(status_code=404, detail="Episode not found")
    return episode


@router.get("/episodes/{episode_id}/related", response_model=list[EpisodeSummary])
async def read_related_episodes(
    episode_id: str,
    db: AsyncSession = Depends(get_session),
) -> list[EpisodeSummary]:
    """Other episodes sharing the episode's first category."""
    try:
        episode = await get_episode_by_id(db, episode_id)
        if episode is None:
            raise HTTPException(status_code=404, detail="Episode not found")
        return await get_related_episodes(db, episode, limit=settings.related_limit)
    except FetchError as exc:
        raise _unavailable(exc) from exc


@router.get("/categories", response_model=list[CategorySummary])
async def list_categories(db: AsyncSession = Depends(get_session)) -> list[CategorySummary]:
    """Every category label with its episode count, most used first."""
    try:
        return await get_categories(db)
    except FetchError as exc:
        raise _unavailable(exc) from exc


@router.get("/categories/{slug:path}/episodes", response_model=EpisodeListResponse)
async def list_category_episodes(
    slug: str,
    limit: int = Query(default=12, ge=1, le=100, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Number of items to skip"),
    db: AsyncSession = Depends(get_session),
) -> EpisodeListResponse:
    """Fetch one page of a category addressed by its slug."""
    lookup = await lookup_category(lambda: get_categories(db), slug)
    if lookup.error is not None:
        raise HTTPException(status_code=503, detail=lookup.error)
    if not isinstance(lookup.resolution, CategoryMatch):
        raise HTTPException(status_code=404, detail="Category not found")
    try:
        return await get_episodes_by_category(
            db, lookup.resolution.name, limit=limit, offset=offset
        )
    except FetchError as exc:
        raise _unavailable(exc) from exc
