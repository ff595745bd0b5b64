"""Locale set with URL prefixes.

The default locale is served without a prefix; every other locale lives
under its own path prefix (e.g., "/fr/...").
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LocaleSet:
    """Supported locales and their URL prefixes."""

    locales: tuple[str, ...]
    default: str
    prefixes: dict[str, str] = field(default_factory=dict)
    sitemap_locales: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.default not in self.locales:
            raise ValueError(
                f"Default locale {self.default!r} is not one of {list(self.locales)}",
            )
        if self.sitemap_locales is not None:
            unknown = [loc for loc in self.sitemap_locales if loc not in self.locales]
            if unknown:
                raise ValueError(f"Unknown sitemap locales: {unknown}")
        if self.default in self.prefixes:
            raise ValueError(f"Default locale {self.default!r} cannot have a URL prefix")

    def __iter__(self):
        return iter(self.locales)

    def __contains__(self, locale: object) -> bool:
        return locale in self.locales

    def prefix(self, locale: str) -> str:
        """Return the URL prefix for a locale, without slashes."""
        if locale == self.default:
            return ""
        return self.prefixes.get(locale, locale)

    def is_default(self, locale: str) -> bool:
        return locale == self.default

    @property
    def published(self) -> tuple[str, ...]:
        """Locales that get their own sitemap document."""
        if self.sitemap_locales is None:
            return self.locales
        return self.sitemap_locales
