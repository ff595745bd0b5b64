"""Tests for comparison slug normalization."""

from localemap.core.compare import canonicalize_compare_slug, normalize_compare_path


class TestCanonicalizeCompareSlug:
    """Tests for canonicalize_compare_slug()."""

    def test__orders_both_sides(self) -> None:
        """Sort the two sides lexicographically."""
        assert canonicalize_compare_slug("sora-vs-kling") == "kling-vs-sora"

    def test__ordered_slug__is_unchanged(self) -> None:
        """Leave already ordered slugs untouched."""
        assert canonicalize_compare_slug("kling-vs-sora") == "kling-vs-sora"

    def test__non_compare_slug__is_unchanged(self) -> None:
        """Leave slugs without exactly two sides untouched."""
        assert canonicalize_compare_slug("sora-2") == "sora-2"
        assert canonicalize_compare_slug("a-vs-b-vs-c") == "a-vs-b-vs-c"


class TestNormalizeComparePath:
    """Tests for normalize_compare_path()."""

    def test__compare_path__is_canonicalized(self) -> None:
        """Rewrite compare paths directly under the prefix."""
        assert (
            normalize_compare_path("/ai-video-engines/sora-vs-kling")
            == "/ai-video-engines/kling-vs-sora"
        )

    def test__is_idempotent(self) -> None:
        """Normalizing twice yields the same path."""
        once = normalize_compare_path("/ai-video-engines/veo-3-vs-kling")

        assert normalize_compare_path(once) == once

    def test__trailing_slash_and_query__are_stripped(self) -> None:
        """Drop trailing slash and query string from rewritten paths."""
        assert (
            normalize_compare_path("/ai-video-engines/sora-vs-kling/?utm=x")
            == "/ai-video-engines/kling-vs-sora"
        )

    def test__nested_path__is_unchanged(self) -> None:
        """Leave paths deeper than one segment under the prefix untouched."""
        path = "/ai-video-engines/sora-vs-kling/details"

        assert normalize_compare_path(path) == path

    def test__other_prefix__is_unchanged(self) -> None:
        """Leave paths outside the compare prefix untouched."""
        assert normalize_compare_path("/blog/sora-vs-kling") == "/blog/sora-vs-kling"

    def test__custom_prefix__is_respected(self) -> None:
        """Apply normalization under a configured prefix."""
        assert normalize_compare_path("/compare/b-vs-a", "/compare/") == "/compare/a-vs-b"

    def test__index_path__is_unchanged(self) -> None:
        """Leave the compare index path untouched."""
        assert normalize_compare_path("/ai-video-engines") == "/ai-video-engines"
