"""Slug helpers for category URLs."""

import re
from urllib.parse import quote, unquote

_WHITESPACE_RUN = re.compile(r"\s+")


def category_slug(label: str) -> str:
    """Convert a category label to a URL path segment.

    Lowercases, collapses whitespace runs into a single hyphen and
    percent-encodes whatever is left, so labels with punctuation
    ("Health & Fitness") still produce a usable segment.

    Args:
        label: Category label as stored (e.g., "Artificial Intelligence")

    Returns:
        Slug (e.g., "artificial-intelligence")
    """
    if not label:
        return ""
    hyphenated = _WHITESPACE_RUN.sub("-", label.lower())
    return quote(hyphenated, safe="")


def decode_segment(segment: str) -> str:
    """Undo percent-encoding on a path segment taken from a URL."""
    return unquote(segment)
