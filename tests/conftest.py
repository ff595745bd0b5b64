"""Shared test fixtures."""

from datetime import date
from pathlib import Path

import pytest

from localemap.config import Config
from localemap.core.discovery import DirEntry
from localemap.core.entries import EntryTable, EntryTranslation
from localemap.core.lastmod import LastModifiedResolver
from localemap.core.locales import LocaleSet
from localemap.core.paths import PathLocalizer
from localemap.core.segments import SegmentTable
from localemap.core.sitemap import SitemapBuilder

TODAY = date(2025, 1, 15)

SITE_CONFIG = """\
[site]
url = "https://example.com/"
locales = ["en", "fr", "es", "zh"]
default_locale = "en"
sitemap_locales = ["en", "fr", "es"]

[translations.segments]
models = { en = "models", fr = "modeles", es = "modelos" }
blog = { en = "blog", fr = "blog", es = "blog" }

[lastmod]
use_history = false
use_mtime_fallback = false

[lastmod.routes]
"/" = "2024-03-01"
"/models" = "2099-01-01"
"/models/sora-2" = "2024-06-10"

[generators."/models/[slug]"]
kind = "list"
slugs = ["sora-2", "veo-3"]

[generators."/blog/[slug]"]
kind = "entries"

[generators."/ai-video-engines/[slug]"]
kind = "list"
slugs = ["sora-vs-kling", "kling-vs-sora"]

[sitemaps.models]
template = "/models/[slug]"
"""

PAGE_DIRS = [
    "",
    "models",
    "models/[slug]",
    "(marketing)/blog/[slug]",
    "ai-video-engines/[slug]",
    "404",
]


class FakeDirectoryReader:
    """In-memory DirectoryReader over a fixed set of files."""

    def __init__(self, files: dict[str, str]) -> None:
        self._files = {Path(path): content for path, content in files.items()}

    def list_dir(self, path: Path) -> list[DirEntry]:
        children: dict[str, bool] = {}
        for file in self._files:
            try:
                relative = file.relative_to(path)
            except ValueError:
                continue
            if not relative.parts:
                continue
            name = relative.parts[0]
            children[name] = children.get(name, False) or len(relative.parts) > 1
        return [DirEntry(name=name, is_dir=is_dir) for name, is_dir in sorted(children.items())]

    def exists(self, path: Path) -> bool:
        return path in self._files or any(path in file.parents for file in self._files)

    def read_text(self, path: Path) -> str:
        try:
            return self._files[path]
        except KeyError:
            raise FileNotFoundError(path) from None


def write_markdown(path: Path, front_matter: str, body: str = "Content.") -> Path:
    """Write a markdown file with YAML front matter."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{front_matter}\n---\n\n{body}\n", encoding="utf-8")
    return path


@pytest.fixture
def locales() -> LocaleSet:
    """Locale set with a path-only locale (zh) excluded from sitemaps."""
    return LocaleSet(
        locales=("en", "fr", "es", "zh"),
        default="en",
        sitemap_locales=("en", "fr", "es"),
    )


@pytest.fixture
def segments(locales: LocaleSet) -> SegmentTable:
    return SegmentTable(
        locales,
        {
            "models": {"en": "models", "fr": "modeles", "es": "modelos"},
            "pricing": {"en": "pricing", "fr": "tarifs", "es": "precios"},
            "blog": {"en": "blog", "fr": "blog", "es": "blog"},
        },
    )


@pytest.fixture
def entries(locales: LocaleSet) -> EntryTable:
    return EntryTable(
        locales,
        [
            EntryTranslation(
                canonical_id="hello-world",
                slugs={"en": "hello-world", "fr": "bonjour-le-monde"},
                last_modified="2024-05-01",
            ),
            EntryTranslation(
                canonical_id="release-notes",
                slugs={"en": "release-notes"},
            ),
        ],
    )


@pytest.fixture
def localizer(locales: LocaleSet, segments: SegmentTable, entries: EntryTable) -> PathLocalizer:
    return PathLocalizer(locales, segments, entries)


@pytest.fixture
def resolver() -> LastModifiedResolver:
    return LastModifiedResolver(today=TODAY)


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Create a sample site: config, localized app tree and blog content.

    Expected canonical paths: "/", "/models", "/models/sora-2",
    "/models/veo-3", "/blog/hello-world" (en, fr) and
    "/ai-video-engines/kling-vs-sora".
    """
    (tmp_path / "localemap.toml").write_text(SITE_CONFIG, encoding="utf-8")

    locale_root = tmp_path / "app" / "(localized)" / "[locale]"
    for directory in PAGE_DIRS:
        page_dir = locale_root / directory
        page_dir.mkdir(parents=True, exist_ok=True)
        (page_dir / "page.tsx").write_text("export default function Page() {}\n")

    content = tmp_path / "content"
    write_markdown(content / "en" / "blog" / "hello-world.md", "title: Hello\ndate: 2024-05-01")
    write_markdown(
        content / "fr" / "blog" / "bonjour.md",
        "title: Bonjour\nslug: bonjour-le-monde\ncanonicalSlug: hello-world\ndate: 2024-05-20",
    )
    return tmp_path


@pytest.fixture
def site_config(site_dir: Path) -> Config:
    return Config.load(site_dir / "localemap.toml", environ={})


@pytest.fixture
def builder(site_config: Config) -> SitemapBuilder:
    return SitemapBuilder.from_config(site_config, today=TODAY)
