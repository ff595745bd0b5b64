"""Entry translation table for slug-keyed content collections.

Each locale keeps its own copy of a collection (e.g., content/fr/blog/*.md).
Items across locales are grouped by a canonical identifier declared in their
front matter, which defaults to the default-locale slug.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

import yaml

from localemap.core.lastmod import format_last_modified, latest_date
from localemap.core.locales import LocaleSet

logger = logging.getLogger(__name__)

CONTENT_FILE_PATTERN = re.compile(r"\.(md|mdx)$", re.IGNORECASE)

_FRONT_MATTER_PATTERN = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

# Front matter fields consulted for the last-modified date, in priority order
DATE_FIELDS = (
    "updatedAt",
    "updated_at",
    "updated",
    "modifiedAt",
    "modified_at",
    "modified",
    "date",
    "publishedAt",
    "published_at",
)


def read_front_matter(text: str) -> dict[str, object]:
    """Extract YAML front matter from a markdown document.

    Args:
        text: Document source

    Returns:
        Front matter mapping, empty when missing or unparseable
    """
    match = _FRONT_MATTER_PATTERN.match(text)
    if match is None:
        return {}
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning(f"Invalid front matter: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def read_front_matter_file(file_path: Path) -> dict[str, object]:
    """Read front matter from a content file, treating unreadable files as empty."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read content file {file_path}: {e}")
        return {}
    return read_front_matter(text)


def front_matter_date(meta: dict[str, object]) -> object:
    """Return the first present date-like front matter value."""
    for name in DATE_FIELDS:
        value = meta.get(name)
        if value:
            return value
    return None


def _string_field(meta: dict[str, object], name: str) -> str | None:
    value = meta.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class EntryTranslation:
    """Localized slugs of one canonical content item."""

    canonical_id: str
    slugs: dict[str, str] = field(default_factory=dict)
    last_modified: str | None = None


class EntryTable:
    """Bidirectional mapping between canonical ids and per-locale slugs."""

    def __init__(self, locales: LocaleSet, entries: list[EntryTranslation]) -> None:
        """Initialize table.

        Args:
            locales: Supported locales
            entries: Translation records, in scan order
        """
        self._locales = locales
        self._entries = entries
        self._by_id = {entry.canonical_id: entry for entry in entries}
        self._reverse: dict[str, dict[str, str]] = {loc: {} for loc in locales}
        for entry in entries:
            for loc, slug in entry.slugs.items():
                self._reverse.setdefault(loc, {})[slug] = entry.canonical_id

    @property
    def entries(self) -> list[EntryTranslation]:
        return list(self._entries)

    def get(self, canonical_id: str) -> EntryTranslation | None:
        return self._by_id.get(canonical_id)

    def localized_slug(self, locale: str, canonical_id: str) -> str:
        """Return the slug of an item in a locale, defaulting to the id."""
        entry = self._by_id.get(canonical_id)
        if entry is None:
            return canonical_id
        return entry.slugs.get(locale, canonical_id)

    def canonical_id(self, locale: str, slug: str) -> str:
        """Return the canonical id for a localized slug, defaulting to the slug."""
        return self._reverse.get(locale, {}).get(slug, slug)

    def has_locale(self, canonical_id: str, locale: str) -> bool:
        """Check whether an item exists in a locale.

        Every item counts as present in the default locale.
        """
        if self._locales.is_default(locale):
            return True
        entry = self._by_id.get(canonical_id)
        return entry is not None and locale in entry.slugs

    def __len__(self) -> int:
        return len(self._entries)


class EntryTableLoader:
    """Builds an EntryTable by scanning per-locale collection directories.

    Layout: <content_root>/<locale>/<collection>/<file>.md
    """

    def __init__(
        self,
        content_root: Path,
        collection: str,
        locales: LocaleSet,
        *,
        use_mtime: bool = False,
        today: date | None = None,
    ) -> None:
        """Initialize loader.

        Args:
            content_root: Root content directory
            collection: Collection directory name (e.g., "blog")
            locales: Supported locales
            use_mtime: Use file mtime when front matter carries no date
            today: Build date for clamping (default: current UTC date)
        """
        self._content_root = content_root
        self._collection = collection
        self._locales = locales
        self._use_mtime = use_mtime
        self._today = today

    def load(self) -> EntryTable:
        """Scan all locales and build the table."""
        buckets: dict[str, EntryTranslation] = {}
        sources: dict[tuple[str, str], Path] = {}

        for locale in self._locales:
            for file_path in self._list_files(locale):
                meta = read_front_matter_file(file_path)
                slug = _string_field(meta, "slug") or CONTENT_FILE_PATTERN.sub(
                    "", file_path.name
                )
                canonical_id = _string_field(meta, "canonicalSlug") or slug

                bucket = buckets.get(canonical_id)
                if bucket is None:
                    bucket = EntryTranslation(canonical_id=canonical_id)
                    buckets[canonical_id] = bucket

                previous = sources.get((locale, canonical_id))
                if previous is not None:
                    logger.warning(
                        f"{file_path} and {previous} both claim {canonical_id!r} "
                        f"in {locale!r}; using {file_path.name}",
                    )
                sources[(locale, canonical_id)] = file_path
                bucket.slugs[locale] = slug

                last_modified = self._last_modified(meta, file_path)
                bucket.last_modified = latest_date(
                    [bucket.last_modified, last_modified],
                )

        for bucket in buckets.values():
            bucket.slugs.setdefault(self._locales.default, bucket.canonical_id)

        return EntryTable(self._locales, list(buckets.values()))

    def _list_files(self, locale: str) -> list[Path]:
        directory = self._content_root / locale / self._collection
        if not directory.is_dir():
            return []
        return sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and CONTENT_FILE_PATTERN.search(path.name)
        )

    def _last_modified(self, meta: dict[str, object], file_path: Path) -> str | None:
        value = format_last_modified(front_matter_date(meta), self._today)
        if value is not None or not self._use_mtime:
            return value
        try:
            return format_last_modified(file_path.stat().st_mtime, self._today)
        except OSError:
            return None
