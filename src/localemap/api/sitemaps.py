"""Sitemap API endpoints.

Serves the sitemap index and every per-locale and collection sitemap the
builder produces.
"""

from aiohttp import web

from localemap.app_keys import builder_key
from localemap.core.assembler import LocaleMismatchError


def create_sitemap_routes() -> list[web.RouteDef]:
    return [
        web.get("/sitemaps", list_sitemaps),
        web.get("/{filename:sitemap[^/]*\\.xml}", get_sitemap),
    ]


async def list_sitemaps(request: web.Request) -> web.Response:
    builder = request.app[builder_key]
    return web.json_response({"sitemaps": builder.document_names()})


async def get_sitemap(request: web.Request) -> web.Response:
    filename = request.match_info["filename"]
    builder = request.app[builder_key]

    try:
        xml = await builder.render(filename)
    except LocaleMismatchError as e:
        return web.json_response({"error": str(e)}, status=500)

    if xml is None:
        return web.json_response(
            {"error": "Sitemap not found", "filename": filename},
            status=404,
        )

    return web.Response(
        text=xml,
        content_type="application/xml",
        headers={"Cache-Control": "public, max-age=3600"},
    )
