"""Dynamic route expansion.

Dynamic templates (e.g., "/blog/[slug]") are expanded into concrete
canonical paths by generators registered under the exact template string.
Generators run concurrently; a missing or failing generator only drops the
entries of its own template.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from localemap.core.compare import DEFAULT_COMPARE_PREFIX, normalize_compare_path

if TYPE_CHECKING:
    from localemap.core.discovery import RouteTemplate
    from localemap.core.entries import EntryTable
    from localemap.core.lastmod import LastModifiedResolver
    from localemap.core.locales import LocaleSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanonicalPathEntry:
    """Concrete canonical path with optional last-modified and locale hints.

    A locales value of None means the path is available in every locale.
    """

    path: str
    last_modified: str | None = None
    locales: tuple[str, ...] | None = None

    def available_in(self, locale: str) -> bool:
        return self.locales is None or locale in self.locales


@dataclass(frozen=True)
class GeneratorContext:
    """Collaborators available to route generators."""

    locales: LocaleSet
    resolver: LastModifiedResolver
    entries: EntryTable | None = None


RouteGenerator = Callable[[GeneratorContext], Awaitable[list[CanonicalPathEntry]]]


class GeneratorRegistry:
    """Registry of route generators keyed by template string."""

    def __init__(self) -> None:
        self._generators: dict[str, RouteGenerator] = {}

    def add(self, template: str, generator: RouteGenerator) -> None:
        """Register a generator, replacing any previous one for the template."""
        self._generators[template] = generator

    def register(self, template: str) -> Callable[[RouteGenerator], RouteGenerator]:
        """Decorator form of add()."""

        def decorator(generator: RouteGenerator) -> RouteGenerator:
            self.add(template, generator)
            return generator

        return decorator

    def get(self, template: str) -> RouteGenerator | None:
        return self._generators.get(template)

    def __contains__(self, template: object) -> bool:
        return template in self._generators

    def __len__(self) -> int:
        return len(self._generators)

    @property
    def templates(self) -> list[str]:
        return list(self._generators)


async def _run_generator(
    template: str,
    generator: RouteGenerator,
    context: GeneratorContext,
) -> list[CanonicalPathEntry] | None:
    try:
        return list(await generator(context))
    except Exception:
        logger.exception(f"Failed to build entries for {template}")
        return None


async def expand_dynamic_routes(
    templates: Iterable[RouteTemplate],
    registry: GeneratorRegistry,
    context: GeneratorContext,
    *,
    compare_prefix: str = DEFAULT_COMPARE_PREFIX,
) -> dict[str, list[CanonicalPathEntry]]:
    """Expand dynamic templates into canonical entries.

    Args:
        templates: Discovered route templates (static ones are ignored)
        registry: Registered generators
        context: Collaborators passed to every generator
        compare_prefix: Route prefix of comparison pages

    Returns:
        Entries per template, in template order, with compare slugs
        normalized. Templates without a generator or whose generator failed
        are omitted.
    """
    jobs: list[tuple[str, RouteGenerator]] = []
    seen: set[str] = set()
    for template in templates:
        if not template.is_dynamic or template.template in seen:
            continue
        seen.add(template.template)
        generator = registry.get(template.template)
        if generator is None:
            logger.warning(
                f"No generator registered for dynamic route {template.template}, skipping",
            )
            continue
        jobs.append((template.template, generator))

    results = await asyncio.gather(
        *(_run_generator(name, generator, context) for name, generator in jobs),
    )

    expanded: dict[str, list[CanonicalPathEntry]] = {}
    for (name, _), generated in zip(jobs, results, strict=True):
        if generated is None:
            continue
        expanded[name] = [
            replace(entry, path=normalize_compare_path(entry.path, compare_prefix))
            for entry in generated
            if entry.path
        ]
        logger.debug(f"Expanded {name} into {len(expanded[name])} paths")
    return expanded


def merge_canonical_entries(
    *groups: Iterable[CanonicalPathEntry],
    compare_prefix: str = DEFAULT_COMPARE_PREFIX,
) -> list[CanonicalPathEntry]:
    """Concatenate entry groups, deduplicating by normalized path.

    The first occurrence of a path wins.
    """
    merged: list[CanonicalPathEntry] = []
    seen: set[str] = set()
    for group in groups:
        for entry in group:
            path = normalize_compare_path(entry.path, compare_prefix)
            if path in seen:
                continue
            seen.add(path)
            merged.append(entry if path == entry.path else replace(entry, path=path))
    return merged
