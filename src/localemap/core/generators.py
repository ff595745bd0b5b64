"""Built-in route generators.

Each configured dynamic template picks one generator kind:

    entries - items of the entry translation table (e.g., blog posts)
    content - markdown files of a single-locale content directory (e.g., docs)
    roster  - JSON list of items with per-locale content files (e.g., models)
    list    - static slugs, inline or read from a JSON file
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path

from localemap.core.entries import (
    CONTENT_FILE_PATTERN,
    front_matter_date,
    read_front_matter_file,
)
from localemap.core.expansion import (
    CanonicalPathEntry,
    GeneratorContext,
    GeneratorRegistry,
    RouteGenerator,
)

GENERATOR_KINDS = ("entries", "content", "roster", "list")

_PLACEHOLDER_PATTERN = re.compile(r"\[[^\]/]+\]")


@dataclass
class GeneratorConfig:
    """Configuration of a built-in generator for one template."""

    kind: str
    directory: Path | None = None
    file: Path | None = None
    key: str | None = None
    slug_field: str = "slug"
    slugs: list[str] = field(default_factory=list)
    locales: list[str] | None = None


def fill_template(template: str, slug: str) -> str:
    """Replace the placeholder segment of a template with a slug.

    Args:
        template: Template such as "/blog/[slug]"
        slug: Concrete slug

    Returns:
        Concrete path such as "/blog/hello-world"
    """
    return _PLACEHOLDER_PATTERN.sub(lambda _: slug, template, count=1)


def _slug_of(item: object, slug_field: str) -> str | None:
    if isinstance(item, str):
        return item.strip() or None
    if isinstance(item, dict):
        value = item.get(slug_field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def load_slugs(path: Path, key: str | None = None, slug_field: str = "slug") -> list[str]:
    """Read slugs from a JSON document.

    Args:
        path: JSON file holding a list, or an object containing one under key
        key: Object key of the list (None if the document is the list)
        slug_field: Field holding the slug when items are objects

    Returns:
        Slugs in document order; items without a slug are skipped
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if key is not None:
        data = data.get(key, []) if isinstance(data, dict) else []
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of slugs in {path}")
    slugs = [_slug_of(item, slug_field) for item in data]
    return [slug for slug in slugs if slug]


def entries_generator(template: str) -> RouteGenerator:
    """Generator over the entry translation table."""

    async def generate(context: GeneratorContext) -> list[CanonicalPathEntry]:
        if context.entries is None:
            raise RuntimeError("Entry translation table is not configured")
        table = context.entries
        return [
            CanonicalPathEntry(
                path=fill_template(template, entry.canonical_id),
                last_modified=entry.last_modified,
                locales=tuple(
                    locale
                    for locale in context.locales.published
                    if table.has_locale(entry.canonical_id, locale)
                ),
            )
            for entry in table.entries
        ]

    return generate


def content_generator(template: str, directory: Path) -> RouteGenerator:
    """Generator over markdown files of a content directory."""

    async def generate(context: GeneratorContext) -> list[CanonicalPathEntry]:
        if not directory.is_dir():
            return []
        entries: list[CanonicalPathEntry] = []
        for file_path in sorted(directory.iterdir()):
            if not file_path.is_file() or not CONTENT_FILE_PATTERN.search(file_path.name):
                continue
            meta = read_front_matter_file(file_path)
            slug = str(meta.get("slug") or CONTENT_FILE_PATTERN.sub("", file_path.name))
            last_modified = context.resolver.format(
                front_matter_date(meta),
            ) or context.resolver.for_source(file_path)
            entries.append(
                CanonicalPathEntry(
                    path=fill_template(template, slug.strip()),
                    last_modified=last_modified,
                ),
            )
        return entries

    return generate


def roster_generator(template: str, config: GeneratorConfig) -> RouteGenerator:
    """Generator over a JSON roster with optional per-locale content files.

    An item is available in the default locale and in every locale that has
    <directory>/<locale>/<slug>.json.
    """
    if config.file is None:
        raise ValueError(f"Generator for {template} requires a roster file")
    roster_file = config.file

    async def generate(context: GeneratorContext) -> list[CanonicalPathEntry]:
        locales = context.locales
        entries: list[CanonicalPathEntry] = []
        for slug in load_slugs(roster_file, config.key, config.slug_field):
            path = fill_template(template, slug)
            if config.directory is None:
                entries.append(
                    CanonicalPathEntry(path=path, last_modified=context.resolver.manual_route(path)),
                )
                continue
            source = config.directory / locales.default / f"{slug}.json"
            entries.append(
                CanonicalPathEntry(
                    path=path,
                    last_modified=context.resolver.for_route(path, source),
                    locales=tuple(
                        locale
                        for locale in locales.published
                        if locales.is_default(locale)
                        or (config.directory / locale / f"{slug}.json").exists()
                    ),
                ),
            )
        return entries

    return generate


def list_generator(template: str, config: GeneratorConfig) -> RouteGenerator:
    """Generator over static slugs."""
    locales = tuple(config.locales) if config.locales is not None else None

    async def generate(context: GeneratorContext) -> list[CanonicalPathEntry]:
        slugs = list(config.slugs)
        if config.file is not None:
            slugs.extend(load_slugs(config.file, config.key, config.slug_field))
        return [
            CanonicalPathEntry(
                path=fill_template(template, slug),
                last_modified=context.resolver.manual_route(fill_template(template, slug)),
                locales=locales,
            )
            for slug in dict.fromkeys(slugs)
        ]

    return generate


def build_generator(template: str, config: GeneratorConfig) -> RouteGenerator:
    """Create a built-in generator from its configuration.

    Raises:
        ValueError: If the kind is unknown or required settings are missing
    """
    if config.kind == "entries":
        return entries_generator(template)
    if config.kind == "content":
        if config.directory is None:
            raise ValueError(f"Generator for {template} requires a directory")
        return content_generator(template, config.directory)
    if config.kind == "roster":
        return roster_generator(template, config)
    if config.kind == "list":
        return list_generator(template, config)
    raise ValueError(
        f"Unknown generator kind {config.kind!r} for {template} "
        f"(expected one of {', '.join(GENERATOR_KINDS)})",
    )


def build_registry(configs: dict[str, GeneratorConfig]) -> GeneratorRegistry:
    """Create a registry holding a built-in generator per configured template."""
    registry = GeneratorRegistry()
    for template, config in configs.items():
        registry.add(template, build_generator(template, config))
    return registry
