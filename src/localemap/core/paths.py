"""Path localization.

Translates canonical (default-locale) paths into localized paths and back,
segment by segment. The first segment goes through the segment table; for
the entry-keyed collection (e.g., "blog") the second segment goes through
the entry table instead.
"""

from collections.abc import Callable

from localemap.core.entries import EntryTable
from localemap.core.locales import LocaleSet
from localemap.core.segments import SegmentTable


def normalize_path_segments(*segments: str | None) -> str:
    """Join path fragments into a normalized absolute path.

    Args:
        segments: Path fragments, each possibly containing slashes

    Returns:
        Path with a single leading slash and no empty segments ("/" if empty)
    """
    parts = [
        part.strip()
        for segment in segments
        if segment
        for part in str(segment).split("/")
    ]
    filtered = [part for part in parts if part]
    if not filtered:
        return "/"
    return "/" + "/".join(filtered)


class PathLocalizer:
    """Localizes and delocalizes site paths."""

    def __init__(
        self,
        locales: LocaleSet,
        segments: SegmentTable,
        entries: EntryTable | None = None,
        *,
        entry_collection: str = "blog",
    ) -> None:
        """Initialize localizer.

        Args:
            locales: Supported locales
            segments: Segment translation table
            entries: Entry translation table for the entry-keyed collection
            entry_collection: Canonical first segment of the entry-keyed collection
        """
        self._locales = locales
        self._segments = segments
        self._entries = entries
        self._entry_collection = entry_collection

    @property
    def locales(self) -> LocaleSet:
        return self._locales

    def localize(self, locale: str, english_path: str) -> str:
        """Translate a canonical path into a locale.

        Args:
            locale: Target locale
            english_path: Canonical path (e.g., "/models/sora-2")

        Returns:
            Localized path including the locale prefix (e.g., "/fr/modeles/sora-2")
        """
        if self._locales.is_default(locale):
            return english_path

        prefix = self._locales.prefix(locale)
        segments = [segment for segment in english_path.split("/") if segment]
        if not segments:
            return normalize_path_segments(prefix)

        first, *rest = segments
        localized_first = self._segments.localize(locale, first)
        if first == self._entry_collection and rest and self._entries is not None:
            slug = self._entries.localized_slug(locale, rest[0])
            return normalize_path_segments(prefix, localized_first, slug, *rest[1:])
        return normalize_path_segments(prefix, localized_first, *rest)

    def delocalize(self, locale: str, localized_path: str) -> str:
        """Translate a localized path back into its canonical form.

        Args:
            locale: Locale the path belongs to
            localized_path: Localized path, with or without the locale prefix

        Returns:
            Canonical path
        """
        if self._locales.is_default(locale):
            return localized_path or "/"

        trimmed = localized_path.split("?", 1)[0]
        segments = [segment for segment in trimmed.split("/") if segment]
        prefix = self._locales.prefix(locale)
        if prefix and segments and segments[0] == prefix:
            segments = segments[1:]
        if not segments:
            return "/"

        first, *rest = segments
        english_first = self._segments.canonical(locale, first)
        if english_first == self._entry_collection and rest and self._entries is not None:
            english_slug = self._entries.canonical_id(locale, rest[0])
            return normalize_path_segments(english_first, english_slug, *rest[1:])
        return normalize_path_segments(english_first, *rest)

    def language_alternates(
        self,
        english_path: str,
        absolute_url: Callable[[str], str],
    ) -> dict[str, str]:
        """Build hreflang alternates for a canonical path.

        Args:
            english_path: Canonical path
            absolute_url: Converts a site path into an absolute URL

        Returns:
            Mapping of locale (plus "x-default") to absolute URL
        """
        alternates = {
            locale: absolute_url(self.localize(locale, english_path))
            for locale in self._locales
        }
        alternates["x-default"] = absolute_url(english_path)
        return alternates
