"""Configuration management for localemap.

Supports TOML configuration format with auto-discovery and environment
overrides for build-time settings.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path

from localemap.core.assembler import DEFAULT_LOCALE_TOLERANCE
from localemap.core.compare import DEFAULT_COMPARE_PREFIX
from localemap.core.discovery import (
    DEFAULT_IGNORED_TEMPLATES,
    DEFAULT_LOCALE_ROOT,
    DEFAULT_PAGE_PATTERN,
)
from localemap.core.generators import GENERATOR_KINDS, GeneratorConfig
from localemap.core.locales import LocaleSet

CONFIG_FILENAME = "localemap.toml"
DEFAULT_MANIFEST = ".next/server/app-paths-manifest.json"

ENV_SITE_URL = "SITEMAP_SITE_URL"
ENV_TOLERANCE = "SITEMAP_LOCALE_TOLERANCE"
ENV_FAIL_ON_MISMATCH = "SITEMAP_LOCALE_FAIL_ON_MISMATCH"
ENV_USE_MTIME_FALLBACK = "SITEMAP_USE_MTIME_FALLBACK"
ENV_FALLBACK_LASTMOD = "SITEMAP_FALLBACK_LASTMOD"
ENV_BUILD_ENV = "SITEMAP_ENV"


@dataclass
class SiteConfig:
    """Site and locale configuration."""

    url: str = "http://localhost"
    locales: list[str] = field(default_factory=lambda: ["en"])
    default_locale: str = "en"
    sitemap_locales: list[str] | None = None
    prefixes: dict[str, str] = field(default_factory=dict)

    def locale_set(self) -> LocaleSet:
        """Build the LocaleSet described by this section."""
        return LocaleSet(
            locales=tuple(self.locales),
            default=self.default_locale,
            prefixes=dict(self.prefixes),
            sitemap_locales=(
                tuple(self.sitemap_locales) if self.sitemap_locales is not None else None
            ),
        )


@dataclass
class ExtraPathConfig:
    """Canonical path added to the sitemap without a route template."""

    path: str
    locales: list[str] | None = None


@dataclass
class RoutesConfig:
    """Route discovery configuration."""

    app_dir: Path | None = None
    manifest: Path | None = None
    locale_root: str = DEFAULT_LOCALE_ROOT
    page_pattern: str = DEFAULT_PAGE_PATTERN
    ignored: list[str] = field(default_factory=lambda: sorted(DEFAULT_IGNORED_TEMPLATES))
    compare_prefix: str = DEFAULT_COMPARE_PREFIX
    extra: list[ExtraPathConfig] = field(default_factory=list)


@dataclass
class TranslationsConfig:
    """Segment and entry translation configuration."""

    segments: dict[str, dict[str, str]] = field(default_factory=dict)
    segments_file: Path | None = None
    entry_collection: str = "blog"


@dataclass
class ContentConfig:
    """Content collections configuration."""

    root: Path = field(default_factory=lambda: Path("content"))


@dataclass
class LastModConfig:
    """Last-modified resolution configuration."""

    routes: dict[str, str] = field(default_factory=dict)
    sitemaps: dict[str, str] = field(default_factory=dict)
    overrides_file: Path | None = None
    fallback: str | None = None
    use_history: bool = True
    use_mtime_fallback: bool | None = None


@dataclass
class ValidationConfig:
    """Locale consistency validation configuration."""

    tolerance: int = DEFAULT_LOCALE_TOLERANCE
    strict: bool = False


@dataclass
class BuildConfig:
    """Build output configuration."""

    output_dir: Path = field(default_factory=lambda: Path("public"))
    production: bool = False


@dataclass
class ServerConfig:
    """Preview server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class CollectionSitemapConfig:
    """Dedicated sitemap for the expansion of one dynamic template."""

    template: str


@dataclass
class Config:
    """Application configuration."""

    site: SiteConfig
    routes: RoutesConfig
    translations: TranslationsConfig
    content: ContentConfig
    lastmod: LastModConfig
    validation: ValidationConfig
    build: BuildConfig
    server: ServerConfig
    generators: dict[str, GeneratorConfig] = field(default_factory=dict)
    sitemaps: dict[str, CollectionSitemapConfig] = field(default_factory=dict)
    config_path: Path | None = None

    @property
    def mtime_fallback_enabled(self) -> bool:
        """Whether file mtime may be used as a last-modified fallback.

        Defaults to enabled outside production builds.
        """
        if self.lastmod.use_mtime_fallback is not None:
            return self.lastmod.use_mtime_fallback
        return not self.build.production

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Config:
        """Load configuration from file and environment.

        If config_path is provided, loads from that file.
        Otherwise, searches for localemap.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file
            environ: Environment variables (default: os.environ)

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            config = cls._load_from_file(config_path)
        else:
            discovered_path = cls._discover_config()
            if discovered_path is None:
                config = cls._default()
            else:
                config = cls._load_from_file(discovered_path)

        return config.with_environment(os.environ if environ is None else environ)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        """Create config with all defaults."""
        return cls._from_data({}, Path.cwd())

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        return replace(cls._from_data(data, path.parent), config_path=path)

    @classmethod
    def _from_data(cls, data: dict, config_dir: Path) -> Config:
        site = cls._parse_site(data.get("site"))
        return cls(
            site=site,
            routes=cls._parse_routes(data.get("routes"), config_dir),
            translations=cls._parse_translations(data.get("translations"), config_dir),
            content=cls._parse_content(data.get("content"), config_dir),
            lastmod=cls._parse_lastmod(data.get("lastmod"), config_dir),
            validation=cls._parse_validation(data.get("validation")),
            build=cls._parse_build(data.get("build"), config_dir),
            server=cls._parse_server(data.get("server")),
            generators=cls._parse_generators(data.get("generators"), config_dir),
            sitemaps=cls._parse_sitemaps(data.get("sitemaps"), site.locales),
        )

    @classmethod
    def _parse_site(cls, data: object) -> SiteConfig:
        """Parse site configuration section.

        Args:
            data: Raw site section data

        Returns:
            SiteConfig instance
        """
        if data is None:
            return SiteConfig()

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        url = data.get("url", "http://localhost")
        if not isinstance(url, str):
            raise ValueError("site.url must be a string")

        locales = _string_list(data.get("locales", ["en"]), "site.locales")
        if not locales:
            raise ValueError("site.locales must not be empty")

        default_locale = data.get("default_locale", locales[0])
        if not isinstance(default_locale, str):
            raise ValueError("site.default_locale must be a string")
        if default_locale not in locales:
            raise ValueError("site.default_locale must be one of site.locales")

        sitemap_locales = None
        if data.get("sitemap_locales") is not None:
            sitemap_locales = _string_list(data["sitemap_locales"], "site.sitemap_locales")
            unknown = [loc for loc in sitemap_locales if loc not in locales]
            if unknown:
                raise ValueError(f"site.sitemap_locales has unknown locales: {unknown}")

        prefixes = _string_table(data.get("prefixes", {}), "site.prefixes")
        if default_locale in prefixes:
            raise ValueError("site.prefixes must not include the default locale")

        return SiteConfig(
            url=normalize_site_url(url),
            locales=locales,
            default_locale=default_locale,
            sitemap_locales=sitemap_locales,
            prefixes=prefixes,
        )

    @classmethod
    def _parse_routes(cls, data: object, config_dir: Path) -> RoutesConfig:
        """Parse routes configuration section.

        Args:
            data: Raw routes section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            RoutesConfig instance
        """
        if data is None:
            return RoutesConfig(
                app_dir=config_dir / "app",
                manifest=config_dir / DEFAULT_MANIFEST,
            )

        if not isinstance(data, dict):
            raise ValueError("routes section must be a dictionary")

        app_dir = data.get("app_dir", "app")
        if not isinstance(app_dir, str):
            raise ValueError("routes.app_dir must be a string")

        manifest = _optional_path(
            data.get("manifest", DEFAULT_MANIFEST),
            config_dir,
            "routes.manifest",
        )

        locale_root = data.get("locale_root", DEFAULT_LOCALE_ROOT)
        if not isinstance(locale_root, str):
            raise ValueError("routes.locale_root must be a string")

        page_pattern = data.get("page_pattern", DEFAULT_PAGE_PATTERN)
        if not isinstance(page_pattern, str):
            raise ValueError("routes.page_pattern must be a string")

        ignored = _string_list(
            data.get("ignored", sorted(DEFAULT_IGNORED_TEMPLATES)),
            "routes.ignored",
        )

        compare_prefix = data.get("compare_prefix", DEFAULT_COMPARE_PREFIX)
        if not isinstance(compare_prefix, str):
            raise ValueError("routes.compare_prefix must be a string")

        extra_raw = data.get("extra", [])
        if not isinstance(extra_raw, list):
            raise ValueError("routes.extra must be a list")
        extra: list[ExtraPathConfig] = []
        for item in extra_raw:
            if isinstance(item, str):
                extra.append(ExtraPathConfig(path=item))
                continue
            if not isinstance(item, dict) or not isinstance(item.get("path"), str):
                raise ValueError("routes.extra items must be strings or tables with a path")
            locales = item.get("locales")
            extra.append(
                ExtraPathConfig(
                    path=item["path"],
                    locales=(
                        _string_list(locales, "routes.extra.locales")
                        if locales is not None
                        else None
                    ),
                ),
            )

        return RoutesConfig(
            app_dir=config_dir / app_dir,
            manifest=manifest,
            locale_root=locale_root,
            page_pattern=page_pattern,
            ignored=ignored,
            compare_prefix=compare_prefix,
            extra=extra,
        )

    @classmethod
    def _parse_translations(cls, data: object, config_dir: Path) -> TranslationsConfig:
        """Parse translations configuration section.

        Args:
            data: Raw translations section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            TranslationsConfig instance
        """
        if data is None:
            return TranslationsConfig()

        if not isinstance(data, dict):
            raise ValueError("translations section must be a dictionary")

        segments_raw = data.get("segments", {})
        if not isinstance(segments_raw, dict):
            raise ValueError("translations.segments must be a dictionary")
        segments = {
            concept: _string_table(record, f"translations.segments.{concept}")
            for concept, record in segments_raw.items()
        }

        segments_file = _optional_path(
            data.get("segments_file"),
            config_dir,
            "translations.segments_file",
        )

        entry_collection = data.get("entry_collection", "blog")
        if not isinstance(entry_collection, str):
            raise ValueError("translations.entry_collection must be a string")

        return TranslationsConfig(
            segments=segments,
            segments_file=segments_file,
            entry_collection=entry_collection,
        )

    @classmethod
    def _parse_content(cls, data: object, config_dir: Path) -> ContentConfig:
        """Parse content configuration section."""
        if data is None:
            return ContentConfig(root=config_dir / "content")

        if not isinstance(data, dict):
            raise ValueError("content section must be a dictionary")

        root = data.get("root", "content")
        if not isinstance(root, str):
            raise ValueError("content.root must be a string")

        return ContentConfig(root=config_dir / root)

    @classmethod
    def _parse_lastmod(cls, data: object, config_dir: Path) -> LastModConfig:
        """Parse lastmod configuration section.

        Manual dates from overrides_file are merged under the inline tables,
        so inline values win.

        Args:
            data: Raw lastmod section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            LastModConfig instance
        """
        if data is None:
            return LastModConfig()

        if not isinstance(data, dict):
            raise ValueError("lastmod section must be a dictionary")

        overrides_file = _optional_path(
            data.get("overrides_file"),
            config_dir,
            "lastmod.overrides_file",
        )
        routes: dict[str, str] = {}
        sitemaps: dict[str, str] = {}
        if overrides_file is not None:
            overrides = json.loads(overrides_file.read_text(encoding="utf-8"))
            if not isinstance(overrides, dict):
                raise ValueError(f"Last-modified overrides must be an object: {overrides_file}")
            routes.update(_string_table(overrides.get("routes", {}), "overrides.routes"))
            sitemaps.update(_string_table(overrides.get("sitemaps", {}), "overrides.sitemaps"))

        routes.update(_date_table(data.get("routes", {}), "lastmod.routes"))
        sitemaps.update(_date_table(data.get("sitemaps", {}), "lastmod.sitemaps"))

        fallback = data.get("fallback")
        if isinstance(fallback, date):
            fallback = fallback.isoformat()
        if fallback is not None and not isinstance(fallback, str):
            raise ValueError("lastmod.fallback must be a date or string")

        use_history = data.get("use_history", True)
        if not isinstance(use_history, bool):
            raise ValueError("lastmod.use_history must be a boolean")

        use_mtime_fallback = data.get("use_mtime_fallback")
        if use_mtime_fallback is not None and not isinstance(use_mtime_fallback, bool):
            raise ValueError("lastmod.use_mtime_fallback must be a boolean")

        return LastModConfig(
            routes=routes,
            sitemaps=sitemaps,
            overrides_file=overrides_file,
            fallback=fallback,
            use_history=use_history,
            use_mtime_fallback=use_mtime_fallback,
        )

    @classmethod
    def _parse_validation(cls, data: object) -> ValidationConfig:
        """Parse validation configuration section."""
        if data is None:
            return ValidationConfig()

        if not isinstance(data, dict):
            raise ValueError("validation section must be a dictionary")

        tolerance = data.get("tolerance", DEFAULT_LOCALE_TOLERANCE)
        if not isinstance(tolerance, int) or isinstance(tolerance, bool) or tolerance < 0:
            raise ValueError("validation.tolerance must be a non-negative integer")

        strict = data.get("strict", False)
        if not isinstance(strict, bool):
            raise ValueError("validation.strict must be a boolean")

        return ValidationConfig(tolerance=tolerance, strict=strict)

    @classmethod
    def _parse_build(cls, data: object, config_dir: Path) -> BuildConfig:
        """Parse build configuration section."""
        if data is None:
            return BuildConfig(output_dir=config_dir / "public")

        if not isinstance(data, dict):
            raise ValueError("build section must be a dictionary")

        output_dir = data.get("output_dir", "public")
        if not isinstance(output_dir, str):
            raise ValueError("build.output_dir must be a string")

        production = data.get("production", False)
        if not isinstance(production, bool):
            raise ValueError("build.production must be a boolean")

        return BuildConfig(output_dir=config_dir / output_dir, production=production)

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section."""
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_generators(cls, data: object, config_dir: Path) -> dict[str, GeneratorConfig]:
        """Parse generators section (one table per dynamic template).

        Args:
            data: Raw generators section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            Generator configuration keyed by template
        """
        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ValueError("generators section must be a dictionary")

        generators: dict[str, GeneratorConfig] = {}
        for template, table in data.items():
            name = f"generators.{template!r}"
            if not isinstance(table, dict):
                raise ValueError(f"{name} must be a dictionary")

            kind = table.get("kind")
            if kind not in GENERATOR_KINDS:
                raise ValueError(f"{name}.kind must be one of {', '.join(GENERATOR_KINDS)}")

            key = table.get("key")
            if key is not None and not isinstance(key, str):
                raise ValueError(f"{name}.key must be a string")

            slug_field = table.get("slug_field", "slug")
            if not isinstance(slug_field, str):
                raise ValueError(f"{name}.slug_field must be a string")

            locales = table.get("locales")

            generators[template] = GeneratorConfig(
                kind=kind,
                directory=_optional_path(table.get("directory"), config_dir, f"{name}.directory"),
                file=_optional_path(table.get("file"), config_dir, f"{name}.file"),
                key=key,
                slug_field=slug_field,
                slugs=_string_list(table.get("slugs", []), f"{name}.slugs"),
                locales=_string_list(locales, f"{name}.locales") if locales is not None else None,
            )

        return generators

    @classmethod
    def _parse_sitemaps(
        cls, data: object, locales: list[str]
    ) -> dict[str, CollectionSitemapConfig]:
        """Parse dedicated collection sitemaps section.

        Collection names share the sitemap-<name>.xml filename pattern with
        locale sitemaps, so a collection may not be named after a locale.
        """
        if data is None:
            return {}

        if not isinstance(data, dict):
            raise ValueError("sitemaps section must be a dictionary")

        sitemaps: dict[str, CollectionSitemapConfig] = {}
        for name, table in data.items():
            if name in locales:
                raise ValueError(f"sitemaps.{name} must not be named after a locale")
            if not isinstance(table, dict) or not isinstance(table.get("template"), str):
                raise ValueError(f"sitemaps.{name}.template must be a string")
            sitemaps[name] = CollectionSitemapConfig(template=table["template"])

        return sitemaps

    def with_environment(self, environ: Mapping[str, str]) -> Config:
        """Create a new Config with environment overrides applied.

        Invalid tolerance values are ignored.

        Args:
            environ: Environment variables

        Returns:
            New Config instance
        """
        tolerance: int | None = None
        raw_tolerance = environ.get(ENV_TOLERANCE)
        if raw_tolerance:
            try:
                parsed = int(raw_tolerance)
            except ValueError:
                parsed = -1
            if parsed >= 0:
                tolerance = parsed

        use_mtime_fallback = self.lastmod.use_mtime_fallback
        raw_mtime = environ.get(ENV_USE_MTIME_FALLBACK)
        if raw_mtime == "true":
            use_mtime_fallback = True
        elif raw_mtime == "false":
            use_mtime_fallback = False

        lastmod = replace(
            self.lastmod,
            fallback=environ.get(ENV_FALLBACK_LASTMOD) or self.lastmod.fallback,
            use_mtime_fallback=use_mtime_fallback,
        )

        strict = True if environ.get(ENV_FAIL_ON_MISMATCH) == "true" else None
        production = True if environ.get(ENV_BUILD_ENV) == "production" else None

        return replace(self, lastmod=lastmod).with_overrides(
            site_url=environ.get(ENV_SITE_URL) or None,
            tolerance=tolerance,
            strict=strict,
            production=production,
        )

    def with_overrides(
        self,
        *,
        site_url: str | None = None,
        output_dir: Path | None = None,
        tolerance: int | None = None,
        strict: bool | None = None,
        production: bool | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            site_url: Override site.url
            output_dir: Override build.output_dir
            tolerance: Override validation.tolerance
            strict: Override validation.strict
            production: Override build.production
            host: Override server.host
            port: Override server.port

        Returns:
            New Config instance with overrides applied
        """
        site = self.site
        if site_url is not None:
            site = replace(self.site, url=normalize_site_url(site_url))

        validation = self.validation
        if tolerance is not None or strict is not None:
            validation = replace(
                self.validation,
                tolerance=tolerance if tolerance is not None else self.validation.tolerance,
                strict=strict if strict is not None else self.validation.strict,
            )

        build = self.build
        if output_dir is not None or production is not None:
            build = replace(
                self.build,
                output_dir=output_dir if output_dir is not None else self.build.output_dir,
                production=production if production is not None else self.build.production,
            )

        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        return replace(self, site=site, validation=validation, build=build, server=server)


def normalize_site_url(url: str) -> str:
    """Add a scheme when missing and strip trailing slashes."""
    url = url.rstrip("/")
    if url.startswith(("http://", "https://")):
        return url
    return f"https://{url}"


def _string_list(data: object, name: str) -> list[str]:
    if not isinstance(data, list):
        raise ValueError(f"{name} must be a list")
    for item in data:
        if not isinstance(item, str):
            raise ValueError(f"{name} items must be strings")
    return list(data)


def _string_table(data: object, name: str) -> dict[str, str]:
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be a dictionary")
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(f"{name}.{key} must be a string")
    return dict(data)


def _date_table(data: object, name: str) -> dict[str, str]:
    """Like _string_table, but also accepts TOML date and datetime values."""
    if isinstance(data, dict):
        data = {
            key: value.isoformat() if isinstance(value, date) else value
            for key, value in data.items()
        }
    return _string_table(data, name)


def _optional_path(data: object, config_dir: Path, name: str) -> Path | None:
    if data is None:
        return None
    if not isinstance(data, str):
        raise ValueError(f"{name} must be a string")
    return config_dir / data
