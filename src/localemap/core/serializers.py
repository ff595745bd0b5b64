"""Sitemap XML serialization."""

from collections.abc import Iterable, Mapping
from xml.sax.saxutils import escape

from localemap.core.assembler import SitemapEntry

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
_EXTRA_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: str) -> str:
    """Escape the five XML special characters."""
    return escape(value, _EXTRA_ENTITIES)


def _document(root: str, namespaces: str, body: list[str]) -> str:
    return "\n".join(
        [_XML_DECLARATION, f"<{root} {namespaces}>", *body, f"</{root}>"],
    )


def render_urlset(entries: Iterable[SitemapEntry]) -> str:
    """Render a per-locale sitemap document.

    Args:
        entries: Entries in output order

    Returns:
        <urlset> XML document
    """
    body: list[str] = []
    for entry in entries:
        body.append("  <url>")
        body.append(f"    <loc>{escape_xml(entry.url)}</loc>")
        if entry.last_modified:
            body.append(f"    <lastmod>{escape_xml(entry.last_modified)}</lastmod>")
        body.append("  </url>")
    return _document("urlset", f'xmlns="{SITEMAP_NS}"', body)


def render_sitemap_index(sitemaps: Iterable[SitemapEntry]) -> str:
    """Render a sitemap index document.

    Args:
        sitemaps: One entry per child sitemap document

    Returns:
        <sitemapindex> XML document
    """
    body: list[str] = []
    for sitemap in sitemaps:
        body.append("  <sitemap>")
        body.append(f"    <loc>{escape_xml(sitemap.url)}</loc>")
        if sitemap.last_modified:
            body.append(f"    <lastmod>{escape_xml(sitemap.last_modified)}</lastmod>")
        body.append("  </sitemap>")
    return _document("sitemapindex", f'xmlns="{SITEMAP_NS}"', body)


def render_alternates_urlset(
    items: Iterable[tuple[Mapping[str, str], str | None]],
    default_locale: str,
) -> str:
    """Render a collection sitemap with hreflang alternates.

    Every locale variant of an item gets its own <url> listing all variants
    plus an x-default link to the default-locale URL.

    Args:
        items: (locale -> URL mapping, last-modified) per item
        default_locale: Locale used for the x-default link

    Returns:
        <urlset> XML document with the xhtml namespace
    """
    body: list[str] = []
    for urls, last_modified in items:
        if not urls:
            continue
        x_default = urls.get(default_locale) or next(iter(urls.values()))
        links = [
            f'<xhtml:link rel="alternate" hreflang="{escape_xml(locale)}" '
            f'href="{escape_xml(url)}" />'
            for locale, url in urls.items()
        ]
        links.append(
            f'<xhtml:link rel="alternate" hreflang="x-default" href="{escape_xml(x_default)}" />',
        )
        for url in urls.values():
            body.append("  <url>")
            body.append(f"    <loc>{escape_xml(url)}</loc>")
            if last_modified:
                body.append(f"    <lastmod>{escape_xml(last_modified)}</lastmod>")
            body.append("    " + "\n    ".join(links))
            body.append("  </url>")
    return _document(
        "urlset",
        f'xmlns="{SITEMAP_NS}" xmlns:xhtml="{XHTML_NS}"',
        body,
    )
