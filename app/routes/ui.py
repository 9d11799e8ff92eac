"""UI Routes - Renders Jinja templates for the frontend."""

import logging
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.episodes import (
    CategorySummary,
    EpisodeListFilters,
    EpisodeRequestCreate,
    EpisodeStats,
    EpisodeSummary,
)
from app.services.browse_filters import (
    PAGE_PARAM,
    TOTAL_PARAM,
    BrowseFilters,
    build_url,
    decode_filters,
    decode_page,
    encode_filters,
    replace_query_params,
)
from app.services.category_service import (
    CategoryMatch,
    CategoryMissing,
    category_heading,
    lookup_category,
)
from app.services.episode_detail_service import (
    DetailFailed,
    EpisodeDetail,
    load_episode_detail,
)
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
from app.services.listing_controller import FetchPage, ListingController
from app.services.view_state import ListingState, current_data, visible_episodes
from app.utils.db_async import get_session
from app.utils.slug import category_slug

logger = logging.getLogger(__name__)

router = APIRouter()

# Footer columns - shared across all pages
FOOTER_COLUMNS = [
    {
        "title": "Explore",
        "links": [
            {"text": "Browse Episodes", "url": "/browse"},
            {"text": "Most Popular", "url": "/browse?sort=popular"},
            {"text": "Request an Episode", "url": "/request"},
        ],
    },
    {
        "title": "Company",
        "links": [
            {"text": "About", "url": "#"},
            {"text": "Newsletter", "url": "#"},
            {"text": "Contact", "url": "#"},
        ],
    },
    {
        "title": "Legal",
        "links": [
            {"text": "Terms of Service", "url": "#"},
            {"text": "Privacy Policy", "url": "#"},
        ],
    },
]

SORT_OPTIONS = [
    {"value": "recent", "label": "Most recent"},
    {"value": "popular", "label": "Most popular"},
]


def _render(
    request: Request,
    template: str,
    context: dict[str, Any],
    status_code: int = 200,
) -> HTMLResponse:
    base_context = {
        "site_name": settings.site_name,
        "footer_columns": FOOTER_COLUMNS,
        "current_year": datetime.now().year,
    }
    return request.app.state.templates.TemplateResponse(
        request,
        template,
        {**base_context, **context},
        status_code=status_code,
    )


def _listing_context(
    state: ListingState,
    path: str,
    filters: BrowseFilters,
) -> dict[str, Any]:
    """Template values shared by full listing pages and load-more fragments."""
    data = current_data(state)
    more_url = None
    if data is not None and data.has_more:
        more_url = build_url(
            f"{path}/more",
            {
                **encode_filters(filters),
                PAGE_PARAM: str(data.page + 1),
                TOTAL_PARAM: str(data.total),
            },
        )
    return {
        "state": state,
        "episodes": visible_episodes(state),
        "total": data.total if data else 0,
        "more_url": more_url,
        "retry_url": build_url(path, encode_filters(filters)),
    }


async def _load_more(
    request: Request,
    fetch_page: FetchPage,
    path: str,
    filters: BrowseFilters,
) -> HTMLResponse:
    """Render the cards appended by a "Load more" click."""
    page = decode_page(request.query_params)
    total = decode_page(request.query_params, TOTAL_PARAM)
    controller = ListingController(fetch_page, filters, page_size=settings.page_size)
    controller.resume(page=max(page - 1, 0), total=total)
    state = await controller.load_more()
    return _render(
        request,
        "partials/listing_more.html",
        _listing_context(state, path, filters),
    )


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    db: AsyncSession = Depends(get_session),
):
    """Render the home page: hero, stats, recent episodes and top categories."""
    recent_error: Optional[str] = None
    recent: list[EpisodeSummary] = []
    try:
        recent = await get_recent_episodes(db, limit=settings.recent_limit)
    except FetchError as exc:
        recent_error = exc.message

    # Stats and categories are decoration; fall back to empty values
    stats: Optional[EpisodeStats] = None
    try:
        stats = await get_episode_stats(db)
    except FetchError as exc:
        logger.warning(f"Home page stats unavailable: {exc.message}")

    categories: list[CategorySummary] = []
    try:
        categories = await get_categories(db)
    except FetchError as exc:
        logger.warning(f"Home page categories unavailable: {exc.message}")

    return _render(
        request,
        "home.html",
        {
            "recent": recent,
            "recent_error": recent_error,
            "stats": stats,
            "categories": categories[:6],
        },
    )


@router.get("/browse", response_class=HTMLResponse)
async def browse(
    request: Request,
    db: AsyncSession = Depends(get_session),
):
    """Render the filterable episode listing.

    Filters come only from the query string; the search box, sort and
    category controls submit a GET form, so a new URL is the one thing that
    triggers a refetch.
    """
    filters = decode_filters(request.query_params)

    async def fetch_page(query: EpisodeListFilters):
        return await get_all_episodes(db, query)

    controller = ListingController(fetch_page, filters, page_size=settings.page_size)
    state = await controller.refresh()

    categories: list[CategorySummary] = []
    try:
        categories = await get_categories(db)
    except FetchError as exc:
        logger.error(f"Failed to load categories: {exc.message}")

    params = encode_filters(filters)
    return _render(
        request,
        "browse.html",
        {
            **_listing_context(state, "/browse", filters),
            "filters": filters,
            "categories": categories,
            "sort_options": SORT_OPTIONS,
            "clear_search_url": build_url("/browse", replace_query_params(params, q=None)),
        },
    )


@router.get("/browse/more", response_class=HTMLResponse)
async def browse_more(
    request: Request,
    db: AsyncSession = Depends(get_session),
):
    """Render the next page of the browse listing as a fragment."""
    filters = decode_filters(request.query_params)

    async def fetch_page(query: EpisodeListFilters):
        return await get_all_episodes(db, query)

    return await _load_more(request, fetch_page, "/browse", filters)


@router.get("/episode/{episode_id}", response_class=HTMLResponse)
async def episode_detail(
    request: Request,
    episode_id: str,
    db: AsyncSession = Depends(get_session),
):
    """Render one episode with its summary, takeaways, notes and related episodes."""

    async def fetch_episode(value: str):
        return await get_episode_by_id(db, value)

    async def fetch_related(episode: EpisodeSummary):
        return await get_related_episodes(db, episode, limit=settings.related_limit)

    result = await load_episode_detail(fetch_episode, fetch_related, episode_id)

    if isinstance(result, DetailFailed):
        return _render(
            request,
            "episode_unavailable.html",
            {"heading": "We couldn't load this episode.", "message": result.message},
            status_code=503,
        )
    if isinstance(result, EpisodeDetail):
        return _render(request, "episode.html", {"detail": result, "episode": result.episode})

    return _render(
        request,
        "episode_unavailable.html",
        {
            "heading": "Episode not found.",
            "message": "We couldn't find that episode. It may have been removed.",
        },
        status_code=404,
    )


async def _category_listing(
    request: Request,
    db: AsyncSession,
    slug: str,
    more: bool,
):
    lookup = await lookup_category(lambda: get_categories(db), slug)
    resolution = lookup.resolution

    if not isinstance(resolution, CategoryMatch):
        path = f"/category/{quote(slug, safe='')}"
        if isinstance(resolution, CategoryMissing):
            error, status_code = "Category not found.", 404
        else:
            error, status_code = lookup.error or "Failed to load category.", 503
        return _render(
            request,
            "partials/listing_more.html" if more else "category.html",
            {
                "heading": category_heading(resolution),
                "category_error": error,
                "retry_url": path,
                "state": None,
            },
            status_code=status_code,
        )

    path = f"/category/{category_slug(resolution.name)}"
    name = resolution.name
    # The category lives in the path, so the query string carries no filters
    filters = BrowseFilters()

    async def fetch_page(query: EpisodeListFilters):
        return await get_episodes_by_category(
            db, name, limit=query.limit, offset=query.offset
        )

    if more:
        return await _load_more(request, fetch_page, path, filters)

    controller = ListingController(fetch_page, filters, page_size=settings.page_size)
    state = await controller.refresh()
    return _render(
        request,
        "category.html",
        {
            **_listing_context(state, path, filters),
            "heading": category_heading(resolution),
            "category_error": None,
        },
    )


@router.get("/category/{slug:path}/more", response_class=HTMLResponse)
async def category_more(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_session),
):
    """Render the next page of a category listing as a fragment."""
    return await _category_listing(request, db, slug, more=True)


@router.get("/category/{slug:path}", response_class=HTMLResponse)
async def category_detail(
    request: Request,
    slug: str,
    db: AsyncSession = Depends(get_session),
):
    """Render the episodes of one category, newest first."""
    return await _category_listing(request, db, slug, more=False)


@router.get("/request", response_class=HTMLResponse)
async def request_form(request: Request):
    """Render the episode request form."""
    return _render(request, "request.html", {"submitted": False, "errors": [], "form": {}})


@router.post("/request", response_class=HTMLResponse)
async def submit_request(
    request: Request,
    podcast_name: str = Form(default=""),
    episode_title: str = Form(default=""),
    episode_url: str = Form(default=""),
    email: str = Form(default=""),
    notes: str = Form(default=""),
):
    """Accept an episode request.

    Submissions are validated and logged only; nothing is stored yet.
    """
    form = {
        "podcast_name": podcast_name.strip(),
        "episode_title": episode_title.strip(),
        "episode_url": episode_url.strip() or None,
        "email": email.strip() or None,
        "notes": notes.strip() or None,
    }
    try:
        payload = EpisodeRequestCreate.model_validate(form)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        return _render(
            request,
            "request.html",
            {"submitted": False, "errors": errors, "form": form},
            status_code=422,
        )

    logger.info(
        f"Episode request received: {payload.podcast_name} - {payload.episode_title}"
    )
    return _render(request, "request.html", {"submitted": True, "errors": [], "form": {}})
