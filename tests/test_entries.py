"""Tests for entry translation table."""

import logging
from datetime import date
from pathlib import Path

import pytest
from conftest import write_markdown

from localemap.core.entries import (
    EntryTable,
    EntryTableLoader,
    front_matter_date,
    read_front_matter,
)
from localemap.core.locales import LocaleSet


class TestReadFrontMatter:
    """Tests for read_front_matter()."""

    def test__parses_yaml_block(self) -> None:
        """Parse the leading YAML block into a mapping."""
        meta = read_front_matter("---\ntitle: Hello\nslug: hello\n---\n\nBody")

        assert meta == {"title": "Hello", "slug": "hello"}

    def test__without_front_matter__returns_empty(self) -> None:
        """Return an empty mapping for plain documents."""
        assert read_front_matter("# Hello\n\nBody") == {}

    def test__invalid_yaml__returns_empty_and_warns(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Log a warning and ignore unparseable front matter."""
        with caplog.at_level(logging.WARNING):
            meta = read_front_matter("---\ntitle: [unclosed\n---\n")

        assert meta == {}
        assert "Invalid front matter" in caplog.text

    def test__non_mapping_yaml__returns_empty(self) -> None:
        """Ignore front matter that isn't a mapping."""
        assert read_front_matter("---\n- a\n- b\n---\n") == {}


class TestFrontMatterDate:
    """Tests for front_matter_date()."""

    def test__prefers_updated_over_published(self) -> None:
        """Pick the first present field in priority order."""
        meta = {"date": "2024-01-01", "updatedAt": "2024-02-01"}

        assert front_matter_date(meta) == "2024-02-01"

    def test__no_date_fields__returns_none(self) -> None:
        """Return None when no date field is present."""
        assert front_matter_date({"title": "Hello"}) is None


class TestEntryTable:
    """Tests for EntryTable lookups."""

    def test__localized_slug__falls_back_to_id(self, entries: EntryTable) -> None:
        """Return the canonical id for unknown items and locales."""
        assert entries.localized_slug("fr", "hello-world") == "bonjour-le-monde"
        assert entries.localized_slug("es", "hello-world") == "hello-world"
        assert entries.localized_slug("fr", "unknown") == "unknown"

    def test__canonical_id__falls_back_to_slug(self, entries: EntryTable) -> None:
        """Return the slug itself when the locale has no mapping for it."""
        assert entries.canonical_id("fr", "bonjour-le-monde") == "hello-world"
        assert entries.canonical_id("fr", "unknown") == "unknown"

    def test__has_locale__default_always_present(self, entries: EntryTable) -> None:
        """Treat every item as present in the default locale."""
        assert entries.has_locale("release-notes", "en")
        assert entries.has_locale("hello-world", "fr")
        assert not entries.has_locale("release-notes", "fr")


class TestEntryTableLoader:
    """Tests for EntryTableLoader.load()."""

    def test__groups_locales_by_canonical_slug(self, tmp_path: Path, locales: LocaleSet) -> None:
        """Join locale variants that declare the same canonical slug."""
        write_markdown(tmp_path / "en" / "blog" / "hello-world.md", "title: Hello")
        write_markdown(
            tmp_path / "fr" / "blog" / "bonjour.mdx",
            "slug: bonjour-le-monde\ncanonicalSlug: hello-world",
        )

        table = EntryTableLoader(tmp_path, "blog", locales).load()

        assert len(table) == 1
        entry = table.get("hello-world")
        assert entry is not None
        assert entry.slugs == {"en": "hello-world", "fr": "bonjour-le-monde"}

    def test__slug_defaults_to_file_stem(self, tmp_path: Path, locales: LocaleSet) -> None:
        """Use the file name as slug when front matter has none."""
        write_markdown(tmp_path / "es" / "blog" / "hola.md", "title: Hola")

        table = EntryTableLoader(tmp_path, "blog", locales).load()

        entry = table.get("hola")
        assert entry is not None
        assert entry.slugs == {"es": "hola", "en": "hola"}

    def test__last_modified__is_latest_variant(self, tmp_path: Path, locales: LocaleSet) -> None:
        """Use the most recent date across locale variants."""
        write_markdown(tmp_path / "en" / "blog" / "post.md", "date: 2024-01-10")
        write_markdown(
            tmp_path / "fr" / "blog" / "article.md",
            "canonicalSlug: post\nupdatedAt: 2024-03-05",
        )

        table = EntryTableLoader(tmp_path, "blog", locales, today=date(2025, 1, 1)).load()

        entry = table.get("post")
        assert entry is not None
        assert entry.last_modified == "2024-03-05"

    def test__future_date__is_clamped(self, tmp_path: Path, locales: LocaleSet) -> None:
        """Clamp front matter dates to the build date."""
        write_markdown(tmp_path / "en" / "blog" / "post.md", "date: 2030-01-01")

        table = EntryTableLoader(tmp_path, "blog", locales, today=date(2025, 1, 1)).load()

        entry = table.get("post")
        assert entry is not None
        assert entry.last_modified == "2025-01-01"

    def test__same_locale_conflict__later_file_wins(
        self, tmp_path: Path, locales: LocaleSet, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Warn and keep the later file when two files claim one id in a locale."""
        write_markdown(tmp_path / "fr" / "blog" / "a.md", "slug: premier\ncanonicalSlug: post")
        write_markdown(tmp_path / "fr" / "blog" / "b.md", "slug: second\ncanonicalSlug: post")

        with caplog.at_level(logging.WARNING):
            table = EntryTableLoader(tmp_path, "blog", locales).load()

        assert table.localized_slug("fr", "post") == "second"
        assert "both claim 'post'" in caplog.text

    def test__non_content_files__are_ignored(self, tmp_path: Path, locales: LocaleSet) -> None:
        """Only scan markdown files."""
        write_markdown(tmp_path / "en" / "blog" / "post.md", "title: Post")
        (tmp_path / "en" / "blog" / "notes.txt").write_text("ignored")

        table = EntryTableLoader(tmp_path, "blog", locales).load()

        assert [entry.canonical_id for entry in table.entries] == ["post"]

    def test__undecodable_file__keeps_other_entries(
        self, tmp_path: Path, locales: LocaleSet, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Treat a file with invalid encoding as having no front matter."""
        write_markdown(tmp_path / "en" / "blog" / "good.md", "date: 2024-02-01")
        (tmp_path / "en" / "blog" / "bad.md").write_bytes(b"---\nslug: \xff\n---\n")

        with caplog.at_level(logging.WARNING):
            table = EntryTableLoader(tmp_path, "blog", locales, today=date(2025, 1, 1)).load()

        assert [entry.canonical_id for entry in table.entries] == ["bad", "good"]
        good = table.get("good")
        assert good is not None
        assert good.last_modified == "2024-02-01"
        assert "Failed to read content file" in caplog.text

    def test__missing_directories__yield_empty_table(
        self, tmp_path: Path, locales: LocaleSet
    ) -> None:
        """Return an empty table when no locale has the collection."""
        table = EntryTableLoader(tmp_path, "blog", locales).load()

        assert len(table) == 0
