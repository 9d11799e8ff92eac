"""Episodes table holding one decoded podcast episode per row."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlmodel import Field, SQLModel


class ResourceType(str, Enum):
    """Kinds of resources an episode summary can reference."""

    BOOK = "book"
    ARTICLE = "article"
    VIDEO = "video"
    TOOL = "tool"
    PAPER = "paper"
    PODCAST = "podcast"


class Episode(SQLModel, table=True):  # type: ignore[call-arg]
    """A summarized podcast episode.

    Rows are written by an offline authoring/seeding process; the web app
    only reads them. List-valued columns may be NULL and are normalised by
    the query layer.
    """

    __tablename__ = "episodes"
    __table_args__ = (
        Index("ix_episodes_podcast_category", "podcast_category", postgresql_using="gin"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    # Show
    podcast_name: str
    podcast_host: Optional[str] = Field(default=None)
    podcast_category: Optional[list[str]] = Field(
        default=None, sa_column=Column(ARRAY(String), nullable=True)
    )
    podcast_artwork_url: Optional[str] = Field(default=None)

    # Episode
    episode_title: str
    episode_number: Optional[int] = Field(default=None)
    episode_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    episode_duration_minutes: Optional[int] = Field(default=None)

    # Guest
    guest_name: Optional[str] = Field(default=None)
    guest_title: Optional[str] = Field(default=None)
    guest_bio: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    guest_avatar_url: Optional[str] = Field(default=None)

    # Decoded content
    summary: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    key_takeaways: Optional[list[str]] = Field(
        default=None, sa_column=Column(ARRAY(Text), nullable=True)
    )
    full_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    resources_mentioned: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_column=Column(JSONB, nullable=True)
    )
    tags: Optional[list[str]] = Field(
        default=None, sa_column=Column(ARRAY(String), nullable=True)
    )
    read_time_minutes: Optional[int] = Field(default=None)

    view_count: Optional[int] = Field(
        default=0,
        sa_column=Column(Integer, nullable=True, server_default=text("0")),
    )
    published_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True, index=True),
    )
