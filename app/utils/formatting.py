"""Display formatting helpers shared by templates and view models."""

from datetime import datetime
from typing import Optional

ELLIPSIS = "…"


def format_duration(minutes: Optional[int]) -> str:
    """Convert a duration in minutes to a compact label.

    Args:
        minutes: Episode length in minutes, or None if unknown

    Returns:
        "3h 5m", "1h" or "45m"; "" when unknown or zero so no label renders
    """
    if not minutes or minutes < 0:
        return ""
    hours, remainder = divmod(minutes, 60)
    if hours == 0:
        return f"{remainder}m"
    if remainder == 0:
        return f"{hours}h"
    return f"{hours}h {remainder}m"


def format_read_time(minutes: Optional[int]) -> str:
    """Return "12 min read", or "" when unknown."""
    if not minutes or minutes < 0:
        return ""
    return f"{minutes} min read"


def truncate_text(text: Optional[str], limit: int = 180) -> str:
    """Cut ``text`` to at most ``limit`` characters for card previews.

    Breaks on the last word boundary inside the limit when there is one and
    appends an ellipsis. Text already within the limit is returned stripped
    but otherwise unchanged.
    """
    if not text:
        return ""
    cleaned = " ".join(text.split())
    if len(cleaned) <= limit:
        return cleaned
    if limit <= 1:
        return ELLIPSIS
    cut = cleaned[: limit - 1]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip(" ,.;:-") + ELLIPSIS


def format_count(value: Optional[int]) -> str:
    """Group thousands: 12345 -> "12,345"."""
    return f"{value or 0:,}"


def format_date(value: Optional[datetime]) -> str:
    """Render a date like "Sep 18, 2024", or "" when missing."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def notes_paragraphs(notes: Optional[str]) -> list[str]:
    """Split long-form notes into non-empty paragraphs."""
    if not notes:
        return []
    return [line.strip() for line in notes.split("\n") if line.strip()]


def title_case_words(label: str) -> str:
    """Upper-case the first letter of each space-separated word.

    Unlike ``str.title`` this leaves the rest of each word alone, so "AI" keeps
    its casing.
    """
    return " ".join(word[:1].upper() + word[1:] for word in label.split(" "))
