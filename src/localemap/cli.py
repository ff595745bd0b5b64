"""CLI interface for localemap.

Command-line tool for building locale sitemaps and translating paths.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from localemap.config import Config
from localemap.core.assembler import LocaleMismatchError
from localemap.core.paths import PathLocalizer
from localemap.core.sitemap import SitemapBuilder

_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="Path to configuration file (default: auto-discover localemap.toml)",
)


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (debug logging)",
)
def cli(verbose: bool) -> None:
    """localemap - Locale-aware path translation and sitemap generation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@_config_option
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory to write sitemaps to (overrides config)",
)
@click.option(
    "--site-url",
    default=None,
    help="Absolute site URL (overrides config)",
)
@click.option(
    "--tolerance",
    type=click.IntRange(min=0),
    default=None,
    help="Allowed URL count difference between locales (overrides config)",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Fail on locale count drift beyond the tolerance (overrides config)",
)
@click.option(
    "--production/--development",
    default=None,
    help="Production build: disables the mtime fallback unless configured",
)
def build(
    config_path: Path | None,
    output_dir: Path | None,
    site_url: str | None,
    tolerance: int | None,
    strict: bool | None,
    production: bool | None,
) -> None:
    """Build the sitemap index and every locale sitemap."""
    config = _load_config(config_path).with_overrides(
        site_url=site_url,
        output_dir=output_dir,
        tolerance=tolerance,
        strict=strict,
        production=production,
    )

    click.echo(f"Site URL: {config.site.url}")
    click.echo(f"Output directory: {config.build.output_dir}")

    builder = _load_builder(config)
    try:
        written = asyncio.run(builder.write(config.build.output_dir))
    except LocaleMismatchError as e:
        _fail(f"Locale mismatch: {e}")

    for path in written:
        click.echo(f"  -> {path.name}")
    click.echo(click.style(f"\nWrote {len(written)} sitemaps", fg="green", bold=True))


@cli.command()
@_config_option
def routes(config_path: Path | None) -> None:
    """List discovered route templates and their canonical paths."""
    config = _load_config(config_path).with_overrides(strict=False)
    builder = _load_builder(config)

    async def collect():
        return await builder.route_templates(), await builder.canonical_entries()

    templates, entries = asyncio.run(collect())

    click.echo(click.style(f"Route templates ({len(templates)}):", bold=True))
    for template in templates:
        marker = " (dynamic)" if template.is_dynamic else ""
        if template.is_dynamic and template.template not in builder.registry:
            marker = click.style(" (dynamic, no generator)", fg="yellow")
        click.echo(f"  {template.template}{marker}")

    click.echo(click.style(f"\nCanonical paths ({len(entries)}):", bold=True))
    for entry in entries:
        locales = f" [{', '.join(entry.locales)}]" if entry.locales is not None else ""
        lastmod = f" {entry.last_modified}" if entry.last_modified else ""
        click.echo(f"  {entry.path}{lastmod}{locales}")


@cli.command()
@_config_option
@click.option(
    "--tolerance",
    type=click.IntRange(min=0),
    default=None,
    help="Allowed URL count difference between locales (overrides config)",
)
def validate(config_path: Path | None, tolerance: int | None) -> None:
    """Check locale URL counts against the default locale."""
    config = _load_config(config_path).with_overrides(tolerance=tolerance, strict=True)
    builder = _load_builder(config)

    async def count() -> dict[str, int]:
        return {
            locale: len(await builder.locale_entries(locale))
            for locale in config.site.locale_set().published
        }

    try:
        counts = asyncio.run(count())
    except LocaleMismatchError as e:
        _fail(f"Locale mismatch: {e}")

    for locale, total in counts.items():
        click.echo(f"  {locale}: {total} URLs")
    click.echo(click.style("Locale counts are consistent", fg="green"))


@cli.command()
@_config_option
@click.argument("locale")
@click.argument("path")
def localize(config_path: Path | None, locale: str, path: str) -> None:
    """Translate a canonical PATH into LOCALE."""
    localizer = _load_localizer(config_path, locale)
    click.echo(localizer.localize(locale, path))


@cli.command()
@_config_option
@click.argument("locale")
@click.argument("path")
def delocalize(config_path: Path | None, locale: str, path: str) -> None:
    """Translate a localized PATH in LOCALE back to its canonical form."""
    localizer = _load_localizer(config_path, locale)
    click.echo(localizer.delocalize(locale, path))


@cli.command()
@_config_option
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
def serve(config_path: Path | None, host: str | None, port: int | None) -> None:
    """Start a server that renders sitemaps on request."""
    from localemap.server import run_server

    config = _load_config(config_path).with_overrides(host=host, port=port)
    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Sitemap index: http://{config.server.host}:{config.server.port}/sitemap.xml")
    run_server(config, builder=_load_builder(config))


def _load_config(config_path: Path | None) -> Config:
    """Load configuration or exit with error."""
    try:
        return Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")


def _load_builder(config: Config) -> SitemapBuilder:
    """Build the sitemap builder or exit with error."""
    try:
        return SitemapBuilder.from_config(config)
    except (FileNotFoundError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")


def _load_localizer(config_path: Path | None, locale: str) -> PathLocalizer:
    config = _load_config(config_path)
    if locale not in config.site.locales:
        _fail(f"Unknown locale {locale!r} (expected one of {', '.join(config.site.locales)})")
    return _load_builder(config).localizer


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
