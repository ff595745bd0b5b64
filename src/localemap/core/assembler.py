"""Sitemap entry assembly and locale consistency validation."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from localemap.core.expansion import CanonicalPathEntry
from localemap.core.lastmod import format_last_modified
from localemap.core.paths import PathLocalizer

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_TOLERANCE = 3


class LocaleMismatchError(Exception):
    """Raised when locale entry counts drift beyond the tolerance in strict mode."""


@dataclass(frozen=True)
class SitemapEntry:
    """Locale-specific sitemap URL."""

    url: str
    last_modified: str | None = None


def build_absolute_url(site_url: str, path: str) -> str:
    """Join the site URL and a site path.

    The root path maps to the bare site URL (no trailing slash).
    """
    base = site_url.rstrip("/")
    if not path or path == "/":
        return base
    return base + (path if path.startswith("/") else f"/{path}")


def assemble_locale_entries(
    locale: str,
    entries: Iterable[CanonicalPathEntry],
    localizer: PathLocalizer,
    site_url: str,
    *,
    today: date | None = None,
) -> list[SitemapEntry]:
    """Build the sitemap entries of one locale.

    Args:
        locale: Target locale
        entries: Canonical entries in output order
        localizer: Path localizer
        site_url: Absolute site URL
        today: Build date for last-modified clamping

    Returns:
        Entries available in the locale, without duplicate URLs (first wins)
    """
    seen: set[str] = set()
    result: list[SitemapEntry] = []
    for entry in entries:
        if not entry.available_in(locale):
            continue
        url = build_absolute_url(site_url, localizer.localize(locale, entry.path))
        if url in seen:
            continue
        seen.add(url)
        result.append(
            SitemapEntry(url=url, last_modified=format_last_modified(entry.last_modified, today)),
        )
    return result


def count_locale_entries(
    entries: Iterable[CanonicalPathEntry],
    locales: Iterable[str],
) -> dict[str, int]:
    """Count entries available per locale (no restriction = every locale)."""
    locale_list = list(locales)
    counts = dict.fromkeys(locale_list, 0)
    for entry in entries:
        available = entry.locales if entry.locales is not None else locale_list
        for locale in available:
            if locale in counts:
                counts[locale] += 1
    return counts


def validate_locale_counts(
    entries: Iterable[CanonicalPathEntry],
    locales: Iterable[str],
    default_locale: str,
    *,
    tolerance: int = DEFAULT_LOCALE_TOLERANCE,
    strict: bool = False,
) -> list[str]:
    """Compare per-locale entry counts against the default locale.

    Args:
        entries: Canonical entries
        locales: Locales to check (the default locale included)
        default_locale: Reference locale
        tolerance: Allowed absolute difference
        strict: Raise instead of warning

    Returns:
        Warning messages, one per drifting locale

    Raises:
        LocaleMismatchError: If strict and a locale drifts beyond the tolerance
    """
    counts = count_locale_entries(entries, locales)
    reference = counts.get(default_locale, 0)
    warnings: list[str] = []

    for locale, count in counts.items():
        if locale == default_locale:
            continue
        difference = abs(reference - count)
        if difference <= tolerance:
            continue
        message = (
            f"{locale.upper()} sitemap has {count} URLs vs "
            f"{default_locale.upper()} {reference} (diff {difference})"
        )
        logger.warning(message)
        if strict:
            raise LocaleMismatchError(message)
        warnings.append(message)

    return warnings
