# === FILE: vidscout/server.py ===
"""HTTP service for VidScout (aiohttp.web).

Routes
------
* ``POST /fetch-video-urls`` – find video URLs on a page.
* ``POST /api/info`` – title/thumbnail/formats of a media URL.
* ``POST /api/download`` – start a background download, returns a tracking id.
* ``GET  /api/status/{id}`` – poll a download.
* ``GET  /downloads/…`` – finished files (removed after ``cleanup_after``).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from aiohttp import web

from vidscout.config import ScoutConfig
from vidscout.downloader import DownloadTracker, MediaDownloader, is_valid_timestamp
from vidscout.engine import DiscoveryEngine
from vidscout.errors import DownloaderError, NoResultsError, TotalFailure
from vidscout.logger import logger
from vidscout.utils import is_absolute_url

CONFIG_KEY = web.AppKey("config", ScoutConfig)
ENGINE_KEY = web.AppKey("engine", DiscoveryEngine)
DOWNLOADER_KEY = web.AppKey("downloader", MediaDownloader)
TRACKER_KEY = web.AppKey("tracker", DownloadTracker)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str, /, **extra: Any) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Request body must be JSON"}), content_type="application/json"
        )
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Request body must be a JSON object"}),
            content_type="application/json",
        )
    return body


def cors_middleware(origin: str) -> Callable[..., Awaitable[web.StreamResponse]]:
    cors_headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }

    @web.middleware
    async def middleware(request: web.Request, handler: _Handler) -> web.StreamResponse:
        if request.method == "OPTIONS":
            return web.Response(status=204, headers=cors_headers)
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(cors_headers)
            raise
        response.headers.update(cors_headers)
        return response

    return middleware


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


async def fetch_video_urls(request: web.Request) -> web.Response:
    body = await _read_json(request)
    page_url = body.get("pageUrl")
    if not isinstance(page_url, str) or not page_url.strip():
        return _error(400, "Page URL is required")
    page_url = page_url.strip()
    if not is_absolute_url(page_url):
        return _error(400, "Invalid page URL")

    engine = request.app[ENGINE_KEY]
    update: Dict[str, Any] = {}
    if isinstance(body.get("useDynamic"), bool):
        update["use_dynamic"] = body["useDynamic"]
    timeout_ms = body.get("timeoutMs")
    if isinstance(timeout_ms, int) and not isinstance(timeout_ms, bool) and timeout_ms > 0:
        update["dynamic_timeout_ms"] = timeout_ms
    defaults = request.app[CONFIG_KEY].discovery
    options = defaults.model_copy(update=update) if update else None

    try:
        outcome = (await engine.discover(page_url, options)).raise_for_empty()
    except NoResultsError:
        return _error(404, "No video URLs found on the page")
    except TotalFailure as exc:
        logger.error("Error fetching video URLs: %s", exc)
        return _error(500, "Error fetching video URLs", details=exc.details)
    return web.json_response(outcome.to_payload())


async def media_info(request: web.Request) -> web.Response:
    body = await _read_json(request)
    url = body.get("url")
    if not isinstance(url, str) or not is_absolute_url(url.strip()):
        return _error(400, "URL is required")
    try:
        info = await request.app[DOWNLOADER_KEY].info(url.strip())
    except DownloaderError as exc:
        logger.error("Info lookup failed for %s: %s", url, exc)
        return _error(500, "Could not get media info", message=str(exc))
    return web.json_response(info.to_dict())


async def start_download(request: web.Request) -> web.Response:
    body = await _read_json(request)
    url = body.get("url")
    if not isinstance(url, str) or not is_absolute_url(url.strip()):
        return _error(400, "URL is required")
    start, end = body.get("start"), body.get("end")
    for value in (start, end):
        if value is not None and (not isinstance(value, str) or not is_valid_timestamp(value)):
            return _error(400, "Trim bounds must be seconds or [HH:]MM:SS")
    format_id = body.get("format") if isinstance(body.get("format"), str) else None

    config = request.app[CONFIG_KEY]
    downloader = request.app[DOWNLOADER_KEY]
    tracker = request.app[TRACKER_KEY]

    async def runner(job_id: str) -> Path:
        return await downloader.download(
            url.strip(), Path(config.downloader.output_dir), format_id, start, end, name=job_id
        )

    job = tracker.submit(url.strip(), runner)
    return web.json_response(job.to_dict(), status=202)


async def download_status(request: web.Request) -> web.Response:
    job = request.app[TRACKER_KEY].get(request.match_info["job_id"])
    if job is None:
        return _error(404, "Unknown download id")
    return web.json_response(job.to_dict())


# --------------------------------------------------------------------------- #
# Application factory                                                         #
# --------------------------------------------------------------------------- #


def create_app(
    config: ScoutConfig,
    engine: Optional[DiscoveryEngine] = None,
    downloader: Optional[MediaDownloader] = None,
) -> web.Application:
    """Собирает aiohttp-приложение; engine/downloader можно подменить в тестах."""
    app = web.Application(middlewares=[cors_middleware(config.server.cors_origin)])
    app[CONFIG_KEY] = config
    app[ENGINE_KEY] = engine or DiscoveryEngine(config)
    app[DOWNLOADER_KEY] = downloader or MediaDownloader(config)
    app[TRACKER_KEY] = DownloadTracker(config.downloader.cleanup_after)

    output_dir = Path(config.downloader.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    app.router.add_post("/fetch-video-urls", fetch_video_urls)
    app.router.add_post("/api/info", media_info)
    app.router.add_post("/api/download", start_download)
    app.router.add_get("/api/status/{job_id}", download_status)
    app.router.add_static("/downloads", output_dir)

    async def _shutdown(app: web.Application) -> None:
        await app[TRACKER_KEY].shutdown()

    app.on_cleanup.append(_shutdown)
    return app


def run_server(config: ScoutConfig, host: Optional[str] = None, port: Optional[int] = None) -> None:
    host = host or config.server.host
    port = port or config.server.port
    logger.info("Server is running on http://%s:%d", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)


__all__ = ["create_app", "run_server", "cors_middleware"]
