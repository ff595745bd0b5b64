"""Sitemap builder.

Ties the translation tables, route discovery, dynamic expansion and
last-modified resolution together:

    templates -> {static entries, expanded entries, extra paths}
              -> deduplicated canonical entries (computed once per build)
              -> per-locale entries -> XML documents
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from localemap.core.assembler import (
    DEFAULT_LOCALE_TOLERANCE,
    SitemapEntry,
    assemble_locale_entries,
    build_absolute_url,
    validate_locale_counts,
)
from localemap.core.cache import ComputeOnce
from localemap.core.compare import DEFAULT_COMPARE_PREFIX, normalize_compare_path
from localemap.core.discovery import (
    DirectoryReader,
    DiscoveryStrategy,
    FilesystemStrategy,
    ManifestStrategy,
    RouteTemplate,
    discover_route_templates,
    sort_key,
)
from localemap.core.entries import EntryTable, EntryTableLoader
from localemap.core.expansion import (
    CanonicalPathEntry,
    GeneratorContext,
    GeneratorRegistry,
    expand_dynamic_routes,
    merge_canonical_entries,
)
from localemap.core.generators import build_registry
from localemap.core.lastmod import GitHistory, LastModifiedResolver, latest_date
from localemap.core.paths import PathLocalizer
from localemap.core.segments import SegmentTable, load_segment_records
from localemap.core.serializers import (
    render_alternates_urlset,
    render_sitemap_index,
    render_urlset,
)

if TYPE_CHECKING:
    from localemap.config import Config

logger = logging.getLogger(__name__)

INDEX_FILENAME = "sitemap.xml"


def locale_sitemap_filename(locale: str) -> str:
    return f"sitemap-{locale}.xml"


def collection_sitemap_filename(name: str) -> str:
    return f"sitemap-{name}.xml"


@dataclass(frozen=True)
class CanonicalEntries:
    """Result of the once-per-build canonical entry computation."""

    templates: list[RouteTemplate]
    entries: list[CanonicalPathEntry]
    expansions: dict[str, list[CanonicalPathEntry]]


class SitemapBuilder:
    """Builds locale sitemaps from discovered routes and translation tables.

    The canonical entry list is computed once and shared by every document;
    concurrent callers await the same computation.
    """

    def __init__(
        self,
        *,
        localizer: PathLocalizer,
        resolver: LastModifiedResolver,
        registry: GeneratorRegistry,
        strategies: list[DiscoveryStrategy],
        site_url: str,
        entries: EntryTable | None = None,
        extra_paths: list[CanonicalPathEntry] | None = None,
        collections: dict[str, str] | None = None,
        compare_prefix: str = DEFAULT_COMPARE_PREFIX,
        tolerance: int = DEFAULT_LOCALE_TOLERANCE,
        strict: bool = False,
    ) -> None:
        """Initialize builder.

        Args:
            localizer: Path localizer
            resolver: Last-modified resolver
            registry: Dynamic route generators
            strategies: Route discovery strategies, in preference order
            site_url: Absolute site URL
            entries: Entry translation table passed to generators
            extra_paths: Canonical paths added without a route template
            collections: Dedicated sitemap name -> dynamic template
            compare_prefix: Route prefix of comparison pages
            tolerance: Allowed locale count drift
            strict: Fail the build on drift beyond the tolerance
        """
        self._localizer = localizer
        self._locales = localizer.locales
        self._resolver = resolver
        self._registry = registry
        self._strategies = strategies
        self._site_url = site_url
        self._entries = entries
        self._extra_paths = extra_paths or []
        self._collections = collections or {}
        self._compare_prefix = compare_prefix
        self._tolerance = tolerance
        self._strict = strict
        self._canonical: ComputeOnce[CanonicalEntries] = ComputeOnce(self._resolve)

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        reader: DirectoryReader | None = None,
        history: GitHistory | None = None,
        today: date | None = None,
    ) -> SitemapBuilder:
        """Create a builder from application configuration.

        Args:
            config: Application configuration
            reader: Filesystem capability for discovery (default: local)
            history: Version-control reader (default: git in the config directory)
            today: Build date (default: current UTC date)

        Returns:
            Configured SitemapBuilder
        """
        locales = config.site.locale_set()
        use_mtime = config.mtime_fallback_enabled

        segment_records: dict[str, dict[str, str]] = {}
        if config.translations.segments_file is not None:
            segment_records.update(load_segment_records(config.translations.segments_file))
        segment_records.update(config.translations.segments)
        segments = SegmentTable(locales, segment_records)

        entries = EntryTableLoader(
            config.content.root,
            config.translations.entry_collection,
            locales,
            use_mtime=use_mtime,
            today=today,
        ).load()

        if history is None and config.lastmod.use_history:
            repo_dir = config.config_path.parent if config.config_path else None
            history = GitHistory(repo_dir)

        resolver = LastModifiedResolver(
            route_overrides=config.lastmod.routes,
            sitemap_overrides=config.lastmod.sitemaps,
            history=history if config.lastmod.use_history else None,
            fallback=config.lastmod.fallback,
            use_mtime=use_mtime,
            today=today,
        )

        ignored = frozenset(config.routes.ignored)
        strategies: list[DiscoveryStrategy] = [
            ManifestStrategy(
                config.routes.manifest,
                config.routes.app_dir,
                locale_root=config.routes.locale_root,
                ignored=ignored,
                reader=reader,
            ),
            FilesystemStrategy(
                config.routes.app_dir,
                locale_root=config.routes.locale_root,
                page_pattern=config.routes.page_pattern,
                ignored=ignored,
                reader=reader,
            ),
        ]

        return cls(
            localizer=PathLocalizer(
                locales,
                segments,
                entries,
                entry_collection=config.translations.entry_collection,
            ),
            resolver=resolver,
            registry=build_registry(config.generators),
            strategies=strategies,
            site_url=config.site.url,
            entries=entries,
            extra_paths=[
                CanonicalPathEntry(
                    path=extra.path,
                    locales=tuple(extra.locales) if extra.locales is not None else None,
                )
                for extra in config.routes.extra
            ],
            collections={name: sitemap.template for name, sitemap in config.sitemaps.items()},
            compare_prefix=config.routes.compare_prefix,
            tolerance=config.validation.tolerance,
            strict=config.validation.strict,
        )

    @property
    def localizer(self) -> PathLocalizer:
        return self._localizer

    @property
    def registry(self) -> GeneratorRegistry:
        return self._registry

    @property
    def collections(self) -> dict[str, str]:
        return dict(self._collections)

    def absolute_url(self, path: str) -> str:
        return build_absolute_url(self._site_url, path)

    def reset(self) -> None:
        """Discard the computed canonical entries."""
        self._canonical.reset()
        self._resolver.cache.clear()

    async def canonical_entries(self) -> list[CanonicalPathEntry]:
        """Return the canonical entries of the build, sorted by path."""
        return (await self._canonical.get()).entries

    async def route_templates(self) -> list[RouteTemplate]:
        """Return the route templates discovered for the build."""
        return (await self._canonical.get()).templates

    async def _resolve(self) -> CanonicalEntries:
        templates = discover_route_templates(self._strategies)

        static_entries: list[CanonicalPathEntry] = []
        for template in templates:
            if template.is_dynamic:
                continue
            path = normalize_compare_path(template.template, self._compare_prefix)
            static_entries.append(
                CanonicalPathEntry(
                    path=path,
                    last_modified=self._resolver.for_route(path, template.source_file),
                ),
            )

        context = GeneratorContext(
            locales=self._locales,
            resolver=self._resolver,
            entries=self._entries,
        )
        expansions = await expand_dynamic_routes(
            templates,
            self._registry,
            context,
            compare_prefix=self._compare_prefix,
        )

        extra_entries = []
        for extra in self._extra_paths:
            path = normalize_compare_path(extra.path, self._compare_prefix)
            extra_entries.append(
                replace(
                    extra,
                    path=path,
                    last_modified=extra.last_modified or self._resolver.for_route(path),
                ),
            )

        entries = merge_canonical_entries(
            static_entries,
            *expansions.values(),
            extra_entries,
            compare_prefix=self._compare_prefix,
        )
        entries.sort(key=lambda entry: sort_key(entry.path))
        logger.info(f"Resolved {len(entries)} canonical paths")

        validate_locale_counts(
            entries,
            self._locales.published,
            self._locales.default,
            tolerance=self._tolerance,
            strict=self._strict,
        )
        return CanonicalEntries(templates=templates, entries=entries, expansions=expansions)

    async def locale_entries(self, locale: str) -> list[SitemapEntry]:
        """Return the sitemap entries of one locale."""
        return assemble_locale_entries(
            locale,
            await self.canonical_entries(),
            self._localizer,
            self._site_url,
            today=self._resolver.today,
        )

    async def locale_sitemap(self, locale: str) -> str:
        """Render the sitemap document of one locale."""
        return render_urlset(await self.locale_entries(locale))

    async def collection_entries(self, name: str) -> list[CanonicalPathEntry]:
        """Return the expanded entries behind a dedicated collection sitemap.

        Raises:
            KeyError: If no collection sitemap has that name
        """
        template = self._collections[name]
        expansions = (await self._canonical.get()).expansions
        return merge_canonical_entries(
            expansions.get(template, []),
            compare_prefix=self._compare_prefix,
        )

    async def collection_sitemap(self, name: str) -> str:
        """Render a collection sitemap with hreflang alternates."""
        default = self._locales.default
        items: list[tuple[dict[str, str], str | None]] = []
        for entry in await self.collection_entries(name):
            urls = {
                locale: self.absolute_url(self._localizer.localize(locale, entry.path))
                for locale in self._locales.published
                if entry.available_in(locale)
            }
            if default not in urls:
                urls[default] = self.absolute_url(entry.path)
            items.append((urls, self._resolver.format(entry.last_modified)))
        return render_alternates_urlset(items, default)

    async def index_entries(self) -> list[SitemapEntry]:
        """Return one entry per child sitemap document."""
        sitemaps: list[SitemapEntry] = []
        for locale in self._locales.published:
            filename = locale_sitemap_filename(locale)
            entries = await self.locale_entries(locale)
            sitemaps.append(
                SitemapEntry(
                    url=self.absolute_url(f"/{filename}"),
                    last_modified=self._resolver.for_sitemap(filename)
                    or latest_date([entry.last_modified for entry in entries]),
                ),
            )
        for name in self._collections:
            filename = collection_sitemap_filename(name)
            entries = await self.collection_entries(name)
            sitemaps.append(
                SitemapEntry(
                    url=self.absolute_url(f"/{filename}"),
                    last_modified=self._resolver.for_sitemap(filename)
                    or latest_date([self._resolver.format(e.last_modified) for e in entries]),
                ),
            )
        return sitemaps

    async def sitemap_index(self) -> str:
        """Render the sitemap index document."""
        return render_sitemap_index(await self.index_entries())

    def document_names(self) -> list[str]:
        """Return the file names of every document the builder produces."""
        return [
            INDEX_FILENAME,
            *(locale_sitemap_filename(locale) for locale in self._locales.published),
            *(collection_sitemap_filename(name) for name in self._collections),
        ]

    async def render(self, filename: str) -> str | None:
        """Render a document by file name.

        Returns:
            XML document, or None if the builder doesn't produce that file
        """
        if filename == INDEX_FILENAME:
            return await self.sitemap_index()
        for locale in self._locales.published:
            if filename == locale_sitemap_filename(locale):
                return await self.locale_sitemap(locale)
        for name in self._collections:
            if filename == collection_sitemap_filename(name):
                return await self.collection_sitemap(name)
        return None

    async def documents(self) -> dict[str, str]:
        """Render every document, keyed by file name."""
        documents: dict[str, str] = {}
        for filename in self.document_names():
            xml = await self.render(filename)
            if xml is not None:
                documents[filename] = xml
        return documents

    async def write(self, output_dir: Path) -> list[Path]:
        """Render every document into a directory.

        Args:
            output_dir: Target directory (created if missing)

        Returns:
            Written file paths
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for filename, xml in (await self.documents()).items():
            path = output_dir / filename
            path.write_text(xml, encoding="utf-8")
            written.append(path)
            logger.info(f"Wrote {path}")
        return written
