"""HTTP surface of the feed translator."""

from html import escape

import structlog
from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from feed_translator.core.errors import BaseError, FeedNotFoundError
from feed_translator.metrics import metrics
from feed_translator.service import FeedTranslatorService

logger = structlog.get_logger(__name__)

SERVICE_KEY = web.AppKey("service", FeedTranslatorService)

INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>RSS Translator</title>
    <style>
      body {{ background-color: #0f172a; color: #e2e8f0; font-family: sans-serif; margin: 0; padding: 2rem; }}
      .container {{ max-width: 800px; margin: 0 auto; }}
      h1 {{ color: #60a5fa; text-align: center; }}
      .feeds-grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(250px, 1fr)); gap: 1rem; }}
      .feed-link {{ background-color: #1e293b; border: 1px solid #334155; border-radius: 8px; padding: 1rem; color: #e2e8f0; text-align: center; text-decoration: none; }}
      .feed-link:hover {{ background-color: #334155; }}
    </style>
  </head>
  <body>
    <div class="container">
      <h1>RSS Translator</h1>
      <div class="feeds-grid">{links}</div>
    </div>
  </body>
</html>
"""


async def index(request: web.Request) -> web.Response:
    """List the configured feeds."""
    service = request.app[SERVICE_KEY]
    links = "".join(
        f'<a href="/feeds/{escape(feed.name, quote=True)}" class="feed-link">{escape(feed.name)}</a>'
        for feed in service.registry.descriptors
    )
    return web.Response(text=INDEX_TEMPLATE.format(links=links), content_type="text/html")


async def get_feed(request: web.Request) -> web.Response:
    """Serve a translated feed with caching headers."""
    service = request.app[SERVICE_KEY]
    name = request.match_info["feed"]
    try:
        result = await service.registry.get_feed(name)
    except FeedNotFoundError:
        return web.json_response({"error": "Feed not found"}, status=404)
    except BaseError as e:
        logger.error("Error processing feed", feed=name, error=str(e))
        return web.json_response({"error": str(e)}, status=500)

    return web.Response(
        text=result.content,
        content_type="text/xml",
        headers={"Cache-Control": result.cache_control, "X-Cache": result.state.value},
    )


async def refresh_feeds(request: web.Request) -> web.Response:
    """Refresh every configured feed."""
    service = request.app[SERVICE_KEY]
    results = await service.registry.refresh_all()
    body = {"results": [result.to_dict() for result in results]}
    if all(result.ok for result in results):
        body["message"] = "All feeds refreshed successfully"
        return web.json_response(body)
    body["error"] = "Failed to refresh feeds"
    return web.json_response(body, status=500)


async def clear_cache(request: web.Request) -> web.Response:
    """Evict the cached feeds configuration."""
    service = request.app[SERVICE_KEY]
    try:
        await service.registry.clear_config_cache()
    except Exception as e:
        logger.error("Error clearing cache", error=str(e))
        return web.json_response({"error": "Failed to clear cache"}, status=500)
    return web.json_response({"success": True, "message": "Cache cleared successfully"})


async def metrics_endpoint(request: web.Request) -> web.Response:
    return web.Response(
        body=generate_latest(metrics.registry), headers={"Content-Type": CONTENT_TYPE_LATEST}
    )


async def _start_service(app: web.Application) -> None:
    await app[SERVICE_KEY].start()


async def _close_service(app: web.Application) -> None:
    await app[SERVICE_KEY].close()


def create_app(service: FeedTranslatorService) -> web.Application:
    """Create the web application around a service.

    The service is started with the application and closed on cleanup.
    """
    app = web.Application()
    app[SERVICE_KEY] = service
    app.router.add_get("/", index)
    app.router.add_get("/feeds/{feed}", get_feed)
    app.router.add_post("/feeds/refresh", refresh_feeds)
    app.router.add_delete("/api/clearcache", clear_cache)
    app.router.add_get("/metrics", metrics_endpoint)
    app.on_startup.append(_start_service)
    app.on_cleanup.append(_close_service)
    return app


def run_server(service: FeedTranslatorService, host: str, port: int) -> None:
    """Run the web server until interrupted."""
    logger.info("Starting server", host=host, port=port)
    web.run_app(create_app(service), host=host, port=port, print=None)
