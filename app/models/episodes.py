"""Pydantic request/response models for episode browsing."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import computed_field
from sqlmodel import Field, SQLModel

from app.schemas.episodes import ResourceType


class EpisodeSort(str, Enum):
    """Listing sort orders."""

    RECENT = "recent"
    POPULAR = "popular"


class EpisodeResource(SQLModel):
    """A book, article, tool, etc. referenced in an episode."""

    type: ResourceType
    title: str
    author: Optional[str] = None
    url: str


class EpisodeSummary(SQLModel):
    """Display shape of an episode: list fields are never None."""

    id: str
    podcast_name: str
    podcast_host: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    artwork_url: Optional[str] = None
    title: str
    episode_number: Optional[int] = None
    episode_date: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    guest_name: Optional[str] = None
    guest_title: Optional[str] = None
    guest_bio: Optional[str] = None
    guest_avatar_url: Optional[str] = None
    summary: Optional[str] = None
    key_takeaways: list[str] = Field(default_factory=list)
    full_notes: Optional[str] = None
    resources_mentioned: list[EpisodeResource] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    read_time_minutes: Optional[int] = None
    view_count: int = 0
    published_at: Optional[datetime] = None


class EpisodeListFilters(SQLModel):
    """Filter, sort and page window for an episode listing query."""

    category: Optional[str] = None
    sort: EpisodeSort = EpisodeSort.RECENT
    limit: int = Field(default=12, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    search: Optional[str] = None


class EpisodeListResponse(SQLModel):
    """One page of episodes plus the total matching count."""

    episodes: list[EpisodeSummary]
    total: int
    limit: int
    offset: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        # Same rule as ListingPage.has_more: a short page under concurrent
        # deletes does not promise another page.
        return self.offset + self.limit < self.total


class CategorySummary(SQLModel):
    """A category label with the number of episodes tagged with it."""

    name: str
    count: int
    slug: str


class EpisodeStats(SQLModel):
    """Aggregate totals across every episode."""

    total_episodes: int = 0
    total_duration_minutes: int = 0
    total_read_time_minutes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hours_saved(self) -> int:
        """Listening hours replaced by reading, rounded to whole hours."""
        saved = max(self.total_duration_minutes - self.total_read_time_minutes, 0)
        return round(saved / 60)


class EpisodeRequestCreate(SQLModel):
    """Form payload for suggesting an episode to decode."""

    podcast_name: str = Field(min_length=1, max_length=200)
    episode_title: str = Field(min_length=1, max_length=300)
    episode_url: Optional[str] = Field(default=None, max_length=500)
    email: Optional[str] = Field(default=None, max_length=320)
    notes: Optional[str] = Field(default=None, max_length=2000)
