"""Episode detail page data: the episode itself plus related episodes."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from app.models.episodes import EpisodeSummary
from app.services.errors import FetchError
from app.utils.formatting import (
    format_count,
    format_date,
    format_duration,
    format_read_time,
    notes_paragraphs,
)

logger = logging.getLogger(__name__)

FetchEpisode = Callable[[str], Awaitable[Optional[EpisodeSummary]]]
FetchRelated = Callable[[EpisodeSummary], Awaitable[list[EpisodeSummary]]]


@dataclass(frozen=True, slots=True)
class EpisodeDetail:
    """A resolved episode with its display-ready derived values."""

    episode: EpisodeSummary
    related: tuple[EpisodeSummary, ...] = ()

    @property
    def duration_label(self) -> str:
        return format_duration(self.episode.duration_minutes)

    @property
    def read_time_label(self) -> str:
        return format_read_time(self.episode.read_time_minutes)

    @property
    def published_label(self) -> str:
        return format_date(self.episode.episode_date or self.episode.published_at)

    @property
    def view_count_label(self) -> str:
        return format_count(self.episode.view_count)

    @property
    def notes(self) -> list[str]:
        return notes_paragraphs(self.episode.full_notes)


@dataclass(frozen=True, slots=True)
class DetailNotFound:
    episode_id: str


@dataclass(frozen=True, slots=True)
class DetailFailed:
    message: str


DetailResult = Union[EpisodeDetail, DetailNotFound, DetailFailed]


async def load_episode_detail(
    fetch_episode: FetchEpisode,
    fetch_related: FetchRelated,
    episode_id: Optional[str],
) -> Optional[DetailResult]:
    """Resolve an episode id into detail page data.

    Args:
        fetch_episode: Looks up one episode, returning None when missing
        fetch_related: Returns related episodes for a resolved episode
        episode_id: Id taken from the route; empty means nothing to load

    Returns:
        None when there is no id, DetailNotFound for an unknown id,
        DetailFailed when the backend read failed, else EpisodeDetail.
        A failure fetching related episodes only drops the related list.
    """
    if not episode_id:
        return None

    try:
        episode = await fetch_episode(episode_id)
    except FetchError as exc:
        return DetailFailed(exc.message)

    if episode is None:
        return DetailNotFound(episode_id)

    try:
        related = await fetch_related(episode)
    except FetchError as exc:
        logger.warning(f"Related episodes unavailable for {episode.id}: {exc.message}")
        related = []

    return EpisodeDetail(episode=episode, related=tuple(related))
