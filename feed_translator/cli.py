"""Command line interface of the feed translator."""

import asyncio
from functools import wraps
from pathlib import Path

import click
from dotenv import load_dotenv

from feed_translator.api import run_server
from feed_translator.config.settings import Settings
from feed_translator.core.errors import BaseError, ConfigurationError
from feed_translator.logging_config import configure_logging
from feed_translator.service import FeedTranslatorService


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


async def _run_with_service(settings: Settings, action):
    service = FeedTranslatorService(settings)
    try:
        await service.start()
        return await action(service)
    finally:
        await service.close()


@click.group()
@click.option(
    "--feeds-config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to the feeds configuration JSON file",
)
@click.option("--log-level", envvar="LOG_LEVEL", default=None, help="Log level")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
@click.pass_context
def cli(ctx, feeds_config, log_level, json_logs):
    """Feed Translator CLI"""
    load_dotenv()
    try:
        settings = Settings.from_env(
            {
                "feeds_config": str(feeds_config) if feeds_config else None,
                "log_level": log_level,
            }
        )
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    level = "DEBUG" if settings.is_dev and not log_level else settings.log_level
    configure_logging(level, json_logs=json_logs)
    ctx.obj = settings


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.pass_obj
def serve(settings, host, port):
    """Run the HTTP server."""
    run_server(FeedTranslatorService(settings), host or settings.host, port or settings.port)


@cli.command("list")
@click.pass_obj
@async_command
async def list_feeds(settings):
    """List the configured feeds."""

    async def action(service):
        for feed in service.registry.descriptors:
            marker = "" if feed.translate else " (no translation)"
            click.echo(f"{feed.name:<20} {feed.source_url}{marker}")

    try:
        await _run_with_service(settings, action)
    except BaseError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument("feed")
@click.pass_obj
@async_command
async def get(settings, feed):
    """Print the current content of FEED."""

    async def action(service):
        return await service.registry.get_feed(feed)

    try:
        result = await _run_with_service(settings, action)
    except BaseError as e:
        raise click.ClickException(str(e))

    click.echo(f"X-Cache: {result.state.value}", err=True)
    click.echo(f"Cache-Control: {result.cache_control}", err=True)
    click.echo(result.content)


@cli.command()
@click.option("--force", is_flag=True, help="Regenerate feeds even when cached content is fresh")
@click.pass_obj
@async_command
async def refresh(settings, force):
    """Refresh all configured feeds."""

    async def action(service):
        return await service.registry.refresh_all(force=force)

    try:
        results = await _run_with_service(settings, action)
    except BaseError as e:
        raise click.ClickException(str(e))

    for result in results:
        if result.ok:
            click.echo(f"{result.name:<20} ok ({result.state.value})")
        else:
            click.echo(f"{result.name:<20} failed: {result.error}", err=True)

    if not all(result.ok for result in results):
        raise click.exceptions.Exit(1)


@cli.command("clear-cache")
@click.pass_obj
@async_command
async def clear_cache(settings):
    """Evict the cached feeds configuration."""
    service = FeedTranslatorService(settings)
    try:
        await service.registry.clear_config_cache()
    finally:
        await service.close()
    click.echo("Cache cleared successfully")


if __name__ == "__main__":
    cli()
