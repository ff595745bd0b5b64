"""Tests for sitemap entry assembly and locale validation."""

import logging

import pytest
from conftest import TODAY

from localemap.core.assembler import (
    LocaleMismatchError,
    assemble_locale_entries,
    build_absolute_url,
    count_locale_entries,
    validate_locale_counts,
)
from localemap.core.expansion import CanonicalPathEntry
from localemap.core.paths import PathLocalizer

SITE = "https://example.com"


def _entries(en: int, fr: int) -> list[CanonicalPathEntry]:
    shared = [CanonicalPathEntry(f"/page-{i}") for i in range(fr)]
    english_only = [
        CanonicalPathEntry(f"/en-only-{i}", locales=("en",)) for i in range(en - fr)
    ]
    return shared + english_only


class TestBuildAbsoluteUrl:
    """Tests for build_absolute_url()."""

    def test__root__is_bare_site_url(self) -> None:
        """Omit the trailing slash for the root path."""
        assert build_absolute_url("https://example.com/", "/") == "https://example.com"

    def test__joins_path(self) -> None:
        assert build_absolute_url(SITE, "/fr/modeles") == "https://example.com/fr/modeles"
        assert build_absolute_url(SITE, "pricing") == "https://example.com/pricing"


class TestAssembleLocaleEntries:
    """Tests for assemble_locale_entries()."""

    def test__localizes_and_filters_by_locale(self, localizer: PathLocalizer) -> None:
        """Localize paths and skip entries unavailable in the locale."""
        canonical = [
            CanonicalPathEntry("/", last_modified="2024-01-01"),
            CanonicalPathEntry("/models/sora-2"),
            CanonicalPathEntry("/blog/hello-world", locales=("en", "fr")),
        ]

        fr = assemble_locale_entries("fr", canonical, localizer, SITE, today=TODAY)
        es = assemble_locale_entries("es", canonical, localizer, SITE, today=TODAY)

        assert [(e.url, e.last_modified) for e in fr] == [
            ("https://example.com/fr", "2024-01-01"),
            ("https://example.com/fr/modeles/sora-2", None),
            ("https://example.com/fr/blog/bonjour-le-monde", None),
        ]
        assert [e.url for e in es] == [
            "https://example.com/es",
            "https://example.com/es/modelos/sora-2",
        ]

    def test__duplicate_urls__are_dropped(self, localizer: PathLocalizer) -> None:
        """Keep each localized URL once, first occurrence wins."""
        canonical = [
            CanonicalPathEntry("/models", last_modified="2024-01-01"),
            CanonicalPathEntry("/models/", last_modified="2024-02-01"),
        ]

        fr = assemble_locale_entries("fr", canonical, localizer, SITE, today=TODAY)

        assert [(e.url, e.last_modified) for e in fr] == [
            ("https://example.com/fr/modeles", "2024-01-01"),
        ]

    def test__last_modified__is_clamped(self, localizer: PathLocalizer) -> None:
        canonical = [CanonicalPathEntry("/", last_modified="2030-01-01")]

        entries = assemble_locale_entries("en", canonical, localizer, SITE, today=TODAY)

        assert entries[0].last_modified == TODAY.isoformat()


class TestValidateLocaleCounts:
    """Tests for validate_locale_counts()."""

    def test__count_locale_entries(self) -> None:
        counts = count_locale_entries(_entries(en=5, fr=3), ["en", "fr"])

        assert counts == {"en": 5, "fr": 3}

    def test__within_tolerance__passes(self) -> None:
        """Accept drift up to the tolerance."""
        warnings = validate_locale_counts(
            _entries(en=100, fr=97),
            ["en", "fr"],
            "en",
            tolerance=3,
            strict=True,
        )

        assert warnings == []

    def test__beyond_tolerance__warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Report drift beyond the tolerance in non-strict mode."""
        with caplog.at_level(logging.WARNING):
            warnings = validate_locale_counts(
                _entries(en=100, fr=96),
                ["en", "fr"],
                "en",
                tolerance=3,
            )

        assert warnings == ["FR sitemap has 96 URLs vs EN 100 (diff 4)"]
        assert "FR sitemap has 96 URLs" in caplog.text

    def test__beyond_tolerance__raises_in_strict_mode(self) -> None:
        with pytest.raises(LocaleMismatchError, match="diff 4"):
            validate_locale_counts(
                _entries(en=100, fr=96),
                ["en", "fr"],
                "en",
                tolerance=3,
                strict=True,
            )
