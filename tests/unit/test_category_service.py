"""Unit tests for category slugs and slug resolution."""

import pytest

from app.models.episodes import CategorySummary
from app.services.category_service import (
    CategoryMatch,
    CategoryMissing,
    CategoryPending,
    category_heading,
    lookup_category,
    resolve_category,
    slug_matches,
)
from app.services.errors import FetchError
from app.utils.slug import category_slug


def _categories(*names: str) -> list[CategorySummary]:
    return [CategorySummary(name=name, count=1, slug=category_slug(name)) for name in names]


class TestCategorySlug:
    """Tests for category_slug."""

    def test_lowercases_and_hyphenates(self) -> None:
        assert category_slug("Artificial Intelligence") == "artificial-intelligence"

    def test_collapses_whitespace_runs(self) -> None:
        assert category_slug("Self  Improvement\tTips") == "self-improvement-tips"

    def test_percent_encodes_punctuation(self) -> None:
        assert category_slug("Health & Fitness") == "health-%26-fitness"

    def test_single_word(self) -> None:
        assert category_slug("AI") == "ai"

    def test_empty_label(self) -> None:
        assert category_slug("") == ""


class TestSlugMatches:
    def test_plain_slug(self) -> None:
        assert slug_matches("Artificial Intelligence", "artificial-intelligence")

    def test_encoded_and_decoded_segments(self) -> None:
        """Routers hand over decoded segments; hand-built links may not."""
        assert slug_matches("Health & Fitness", "health-%26-fitness")
        assert slug_matches("Health & Fitness", "health-&-fitness")

    def test_different_label(self) -> None:
        assert not slug_matches("Health", "business")


class TestResolveCategory:
    """Tests for resolving a URL segment against the category list."""

    def test_match_returns_canonical_label(self) -> None:
        categories = _categories("AI", "Health", "Business")
        assert resolve_category("health", categories) == CategoryMatch("Health")

    def test_unknown_segment_is_missing(self) -> None:
        categories = _categories("AI", "Health")
        assert resolve_category("gardening", categories) == CategoryMissing("gardening")

    def test_unloaded_list_is_pending_not_missing(self) -> None:
        assert resolve_category("health", None) == CategoryPending("health")

    def test_empty_list_is_missing(self) -> None:
        assert resolve_category("health", []) == CategoryMissing("health")

    def test_every_slug_resolves_back_to_its_label(self) -> None:
        names = ("Artificial Intelligence", "Health & Fitness", "AI", "Mental Health")
        categories = _categories(*names)
        for name in names:
            assert resolve_category(category_slug(name), categories) == CategoryMatch(name)


class TestLookupCategory:
    @pytest.mark.asyncio
    async def test_resolves_loaded_categories(self) -> None:
        async def fetch():
            return _categories("AI", "Health")

        lookup = await lookup_category(fetch, "ai")
        assert lookup.resolution == CategoryMatch("AI")
        assert lookup.error is None
        assert [c.name for c in lookup.categories] == ["AI", "Health"]

    @pytest.mark.asyncio
    async def test_fetch_error_leaves_resolution_pending(self) -> None:
        """A failed list load must not be reported as "not found"."""

        async def fetch():
            raise FetchError("Failed to load categories: connection refused")

        lookup = await lookup_category(fetch, "ai")
        assert lookup.resolution == CategoryPending("ai")
        assert lookup.error == "Failed to load categories: connection refused"


class TestCategoryHeading:
    def test_match_uses_label(self) -> None:
        assert category_heading(CategoryMatch("AI")) == "AI"

    def test_fallback_from_segment(self) -> None:
        assert category_heading(CategoryMissing("mental-health")) == "Mental Health"
        assert category_heading(CategoryPending("health-%26-fitness")) == "Health & Fitness"
