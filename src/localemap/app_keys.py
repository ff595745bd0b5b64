"""Application keys for type-safe app configuration access."""

from aiohttp import web

from localemap.core.sitemap import SitemapBuilder

builder_key = web.AppKey("builder", SitemapBuilder)
