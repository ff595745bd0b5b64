"""aiohttp server for localemap.

Application factory and route registration for previewing sitemaps.
"""

from aiohttp import web

from localemap.api.sitemaps import create_sitemap_routes
from localemap.app_keys import builder_key
from localemap.config import Config
from localemap.core.sitemap import SitemapBuilder


def create_app(config: Config, *, builder: SitemapBuilder | None = None) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        builder: Prebuilt sitemap builder (default: built from config)

    Returns:
        Configured aiohttp application
    """
    app = web.Application()
    app[builder_key] = builder or SitemapBuilder.from_config(config)
    app.router.add_routes(create_sitemap_routes())
    return app


def run_server(config: Config, *, builder: SitemapBuilder | None = None) -> None:
    """Run the server.

    Args:
        config: Application configuration
        builder: Prebuilt sitemap builder (default: built from config)
    """
    app = create_app(config, builder=builder)
    web.run_app(app, host=config.server.host, port=config.server.port)
