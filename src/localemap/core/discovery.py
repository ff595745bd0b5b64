"""Route template discovery.

Enumerates the canonical route templates exposed by the rendering layer.
Two strategies are tried in order and the first one that yields templates
wins:

    1. ManifestStrategy - structured build manifest (route id -> source file)
    2. FilesystemStrategy - walk of the localized app directory tree

Both strip the locale wrapper and structural segments (route groups in
parentheses, "@" parallel routes, page/route/default markers) so templates
are expressed as canonical paths such as "/models/[slug]".
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_LOCALE_ROOT = "(localized)/[locale]"
DEFAULT_PAGE_PATTERN = r"^page\.(?:mdx|tsx?|jsx?|js)$"
DEFAULT_IGNORED_TEMPLATES = frozenset({"/404"})

_MARKER_SEGMENTS = frozenset({"page", "route", "default"})
_SOURCE_BASES = ("page", "route", "default")
_SOURCE_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js", ".mdx", ".md")


@dataclass
class RouteTemplate:
    """Canonical route pattern exposed by the rendering layer."""

    template: str
    is_dynamic: bool
    source_file: Path | None = None

    @classmethod
    def create(cls, template: str, source_file: Path | None = None) -> RouteTemplate:
        return cls(template=template, is_dynamic="[" in template, source_file=source_file)


@dataclass(frozen=True)
class DirEntry:
    """Directory listing item."""

    name: str
    is_dir: bool


class DirectoryReader(Protocol):
    """Read-only filesystem capability used by discovery."""

    def list_dir(self, path: Path) -> list[DirEntry]: ...

    def exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...


class LocalDirectoryReader:
    """DirectoryReader backed by the local filesystem."""

    def list_dir(self, path: Path) -> list[DirEntry]:
        """List a directory, returning an empty list if it can't be read."""
        try:
            with os.scandir(path) as it:
                return [DirEntry(name=entry.name, is_dir=entry.is_dir()) for entry in it]
        except OSError:
            return []

    def exists(self, path: Path) -> bool:
        return path.exists()

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


class DiscoveryStrategy(Protocol):
    """Source of route templates."""

    name: str

    def discover(self) -> list[RouteTemplate]: ...


def is_route_group_segment(segment: str) -> bool:
    return segment.startswith("(") and segment.endswith(")")


def is_parallel_route_segment(segment: str) -> bool:
    return segment.startswith("@")


def filter_route_segments(segments: list[str]) -> list[str]:
    """Drop structural segments that don't appear in public URLs."""
    return [
        segment
        for segment in segments
        if segment
        and segment not in _MARKER_SEGMENTS
        and not is_route_group_segment(segment)
        and not is_parallel_route_segment(segment)
    ]


def sort_key(path: str) -> tuple[bool, str]:
    """Sort key placing the root path first, then lexicographic order."""
    return (path != "/", path)


def normalize_manifest_route(route: str, locale_root: str = DEFAULT_LOCALE_ROOT) -> str | None:
    """Convert an internal manifest route id into a canonical template.

    Args:
        route: Manifest route id (e.g., "/(localized)/[locale]/(marketing)/blog/page")
        locale_root: Locale wrapper segments to strip

    Returns:
        Canonical template (e.g., "/blog"), or None for routes outside the
        locale root
    """
    prefix = "/" + locale_root.strip("/")
    if route != prefix and not route.startswith(prefix + "/"):
        return None
    segments = filter_route_segments(route[len(prefix) :].split("/"))
    if not segments:
        return "/"
    return "/" + "/".join(segments)


class ManifestStrategy:
    """Discovers templates from a JSON build manifest."""

    name = "manifest"

    def __init__(
        self,
        manifest_path: Path | None,
        app_dir: Path | None = None,
        *,
        locale_root: str = DEFAULT_LOCALE_ROOT,
        ignored: frozenset[str] = DEFAULT_IGNORED_TEMPLATES,
        reader: DirectoryReader | None = None,
    ) -> None:
        """Initialize strategy.

        Args:
            manifest_path: Path to the manifest JSON (None disables the strategy)
            app_dir: Source app directory used to resolve source files
            locale_root: Locale wrapper segments to strip from route ids
            ignored: Canonical templates to skip
            reader: Filesystem capability (default: local filesystem)
        """
        self._manifest_path = manifest_path
        self._app_dir = app_dir
        self._locale_root = locale_root
        self._ignored = ignored
        self._reader = reader or LocalDirectoryReader()
        self._manifest: dict[str, str] | None = None

    def load_manifest(self) -> dict[str, str]:
        """Load and cache the manifest; missing or invalid manifests are empty."""
        if self._manifest is not None:
            return self._manifest

        self._manifest = {}
        if self._manifest_path is None or not self._reader.exists(self._manifest_path):
            logger.debug("No build manifest found")
            return self._manifest

        try:
            data = json.loads(self._reader.read_text(self._manifest_path))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load build manifest {self._manifest_path}: {e}")
            return self._manifest

        if not isinstance(data, dict):
            logger.warning(f"Build manifest {self._manifest_path} is not an object")
            return self._manifest

        self._manifest = {
            route: file for route, file in data.items() if isinstance(file, str)
        }
        return self._manifest

    def discover(self) -> list[RouteTemplate]:
        templates: dict[str, RouteTemplate] = {}

        for route, relative_file in self.load_manifest().items():
            normalized = normalize_manifest_route(route, self._locale_root)
            if normalized is None or normalized in self._ignored:
                continue

            source_file = self.find_source_file(relative_file)
            existing = templates.get(normalized)
            if existing is not None:
                if existing.source_file is None and source_file is not None:
                    existing.source_file = source_file
                continue
            templates[normalized] = RouteTemplate.create(normalized, source_file)

        return sorted(templates.values(), key=lambda t: sort_key(t.template))

    def find_source_file(self, relative_entry: str) -> Path | None:
        """Locate the source file behind a manifest entry.

        Args:
            relative_entry: Manifest value (e.g., "app/(localized)/[locale]/blog/page.js")

        Returns:
            Existing source file under the app directory, or None
        """
        if self._app_dir is None:
            return None

        entry = PurePosixPath(relative_entry.removeprefix("app/"))
        directory = self._app_dir.joinpath(*entry.parent.parts)
        for base in (*_SOURCE_BASES, entry.stem):
            if not base:
                continue
            for ext in _SOURCE_EXTENSIONS:
                candidate = directory / f"{base}{ext}"
                if self._reader.exists(candidate):
                    return candidate
        return None


class FilesystemStrategy:
    """Discovers templates by walking the localized app directory."""

    name = "filesystem"

    def __init__(
        self,
        app_dir: Path | None,
        *,
        locale_root: str = DEFAULT_LOCALE_ROOT,
        page_pattern: str = DEFAULT_PAGE_PATTERN,
        ignored: frozenset[str] = DEFAULT_IGNORED_TEMPLATES,
        reader: DirectoryReader | None = None,
    ) -> None:
        """Initialize strategy.

        Args:
            app_dir: Source app directory (None disables the strategy)
            locale_root: Locale wrapper directories below app_dir
            page_pattern: Regex matching page file names
            ignored: Canonical templates to skip
            reader: Filesystem capability (default: local filesystem)
        """
        self._root = (
            app_dir.joinpath(*PurePosixPath(locale_root).parts) if app_dir else None
        )
        self._page_pattern = re.compile(page_pattern, re.IGNORECASE)
        self._ignored = ignored
        self._reader = reader or LocalDirectoryReader()

    def discover(self) -> list[RouteTemplate]:
        if self._root is None or not self._reader.exists(self._root):
            return []

        templates: dict[str, RouteTemplate] = {}
        stack: list[Path] = [self._root]

        while stack:
            current = stack.pop()
            for entry in self._reader.list_dir(current):
                full_path = current / entry.name
                if entry.is_dir:
                    stack.append(full_path)
                    continue
                if not self._page_pattern.match(entry.name):
                    continue
                template = self._template_for_dir(current)
                if template is None or template in self._ignored:
                    continue
                templates[template] = RouteTemplate.create(template, full_path)

        return sorted(templates.values(), key=lambda t: sort_key(t.template))

    def _template_for_dir(self, directory: Path) -> str | None:
        assert self._root is not None
        try:
            relative = directory.relative_to(self._root)
        except ValueError:
            return None
        segments = filter_route_segments(list(relative.parts))
        if not segments:
            return "/"
        return "/" + "/".join(segments)


def discover_route_templates(strategies: list[DiscoveryStrategy]) -> list[RouteTemplate]:
    """Run strategies in order and return the first non-empty result.

    Args:
        strategies: Ordered discovery strategies

    Returns:
        Sorted route templates, empty if no strategy found any
    """
    for strategy in strategies:
        templates = strategy.discover()
        if templates:
            logger.info(f"Discovered {len(templates)} route templates via {strategy.name}")
            return templates
        logger.debug(f"Strategy {strategy.name} found no route templates")
    logger.warning("No route templates discovered")
    return []
