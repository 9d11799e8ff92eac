"""Episode factories and fakes shared by unit and integration tests."""

from datetime import UTC, datetime, timedelta
from typing import Any, Optional

from app.models.episodes import EpisodeListFilters, EpisodeListResponse, EpisodeSummary
from app.schemas.episodes import Episode

BASE_PUBLISHED_AT = datetime(2024, 9, 18, 12, 0, tzinfo=UTC)


def make_summary(
    index: int,
    *,
    categories: Optional[list[str]] = None,
    **overrides: Any,
) -> EpisodeSummary:
    """Build a display-model episode; higher ``index`` means older."""
    values: dict[str, Any] = {
        "id": f"ep-{index:03d}",
        "podcast_name": "The Tim Ferriss Show",
        "podcast_host": "Tim Ferriss",
        "categories": categories if categories is not None else ["Health"],
        "title": f"Episode {index}",
        "episode_number": index,
        "duration_minutes": 90,
        "summary": f"Summary for episode {index}.",
        "read_time_minutes": 12,
        "view_count": 100 - index,
        "published_at": BASE_PUBLISHED_AT - timedelta(days=index),
    }
    values.update(overrides)
    return EpisodeSummary(**values)


def make_episode_row(index: int, **overrides: Any) -> Episode:
    """Build an ``episodes`` table row; higher ``index`` means older."""
    values: dict[str, Any] = {
        "id": f"ep-{index:03d}",
        "podcast_name": "The Tim Ferriss Show",
        "podcast_host": "Tim Ferriss",
        "podcast_category": ["Health"],
        "episode_title": f"Episode {index}",
        "episode_number": index,
        "episode_duration_minutes": 90,
        "summary": f"Summary for episode {index}.",
        "key_takeaways": [f"Takeaway {index}"],
        "tags": ["longevity"],
        "read_time_minutes": 12,
        "view_count": 0,
        "published_at": BASE_PUBLISHED_AT - timedelta(days=index),
    }
    values.update(overrides)
    return Episode(**values)


class FakeEpisodeSource:
    """In-memory stand-in for ``get_all_episodes`` honouring limit/offset."""

    def __init__(self, episodes: list[EpisodeSummary]) -> None:
        self.episodes = episodes
        self.calls: list[EpisodeListFilters] = []

    async def fetch_page(self, filters: EpisodeListFilters) -> EpisodeListResponse:
        self.calls.append(filters)
        matching = [
            episode
            for episode in self.episodes
            if not filters.category or filters.category in episode.categories
        ]
        window = matching[filters.offset : filters.offset + filters.limit]
        return EpisodeListResponse(
            episodes=window,
            total=len(matching),
            limit=filters.limit,
            offset=filters.offset,
        )
