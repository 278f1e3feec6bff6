"""FastAPI application serving the video library."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Any
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import (
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
    StreamingResponse,
)
from fastapi.staticfiles import StaticFiles
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidshelf import __version__
from vidshelf.config import AppConfig
from vidshelf.errors import InvalidParameterError, NotFoundError, VidshelfError
from vidshelf.library.lister import DirectoryLister, is_video
from vidshelf.library.paths import resolve_path
from vidshelf.media.artifacts import (
    PLACEHOLDER_THUMBNAIL_URL,
    SUBTITLES_URL_PREFIX,
    THUMBNAILS_URL_PREFIX,
    ArtifactExtractor,
    DerivedArtifactCache,
    FFmpegExtractor,
)
from vidshelf.media.cache import MetadataCache
from vidshelf.media.probe import FFprobeProber, MediaProber
from vidshelf.streaming.streamer import RangeStreamer
from vidshelf.web.frontend import router as frontend_router
from vidshelf.web.rendering import render_listing

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    """Components shared by every request for the lifetime of the app."""

    config: AppConfig
    root: Path
    metadata: MetadataCache
    lister: DirectoryLister
    streamer: RangeStreamer
    artifacts: DerivedArtifactCache


def build_services(
    config: AppConfig,
    *,
    prober: MediaProber | None = None,
    extractor: ArtifactExtractor | None = None,
) -> Services:
    root = config.resolve_videos_dir()
    if prober is None:
        prober = FFprobeProber(config.ffprobe_binary, timeout=config.probe_timeout)
    if extractor is None:
        extractor = FFmpegExtractor(
            config.ffmpeg_binary,
            thumbnail_width=config.thumbnail_width,
            thumbnail_offset=config.thumbnail_offset,
        )
    metadata = MetadataCache(prober, ttl=config.cache_ttl)
    return Services(
        config=config,
        root=root,
        metadata=metadata,
        lister=DirectoryLister(root, metadata, max_workers=config.max_workers),
        streamer=RangeStreamer(root),
        artifacts=DerivedArtifactCache(
            extractor,
            metadata,
            thumbnails_dir=config.thumbnails_dir,
            subtitles_dir=config.subtitles_dir,
        ),
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def _require(value: str | None, name: str) -> str:
    if not value:
        raise InvalidParameterError(f"{name} parameter required")
    return value


def _single_line(message: str) -> str:
    return " ".join(message.split()) or "Error"


def _resolve_video(services: Services, path: str) -> Path:
    resolved = resolve_path(services.root, path)
    if not is_video(resolved.name) or not resolved.is_file():
        raise NotFoundError(f"Video not found: {path}")
    return resolved


def create_app(
    config: AppConfig | None = None,
    *,
    prober: MediaProber | None = None,
    extractor: ArtifactExtractor | None = None,
) -> FastAPI:
    """Build the application with its own metadata cache and collaborators."""
    config = config if config is not None else AppConfig.from_env()
    services = build_services(config, prober=prober, extractor=extractor)

    app = FastAPI(title="vidshelf", version=__version__)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
    )
    app.include_router(frontend_router)

    app.mount(
        THUMBNAILS_URL_PREFIX.rstrip("/"),
        StaticFiles(directory=config.thumbnails_dir, check_dir=False),
        name="thumbnails",
    )
    app.mount(
        SUBTITLES_URL_PREFIX.rstrip("/"),
        StaticFiles(directory=config.subtitles_dir, check_dir=False),
        name="subtitles",
    )
    app.mount(
        "/static",
        StaticFiles(directory=str(files("vidshelf.web").joinpath("static"))),
        name="static",
    )

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        config.ensure_directories()
        LOGGER.info("Videos directory: %s", services.root)

    @app.exception_handler(VidshelfError)
    async def vidshelf_error_handler(request: Request, exc: VidshelfError) -> PlainTextResponse:
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
            message = exc.public_message
        else:
            message = _single_line(str(exc))
        return PlainTextResponse(message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse("Invalid request parameters", status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        return PlainTextResponse(_single_line(str(exc.detail)), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
        return PlainTextResponse("Internal server error", status_code=500)

    @app.get("/api/browse")
    async def browse(request: Request, path: str | None = None) -> dict[str, Any]:
        path = path or "/"
        entries = await asyncio.to_thread(_services(request).lister.list, path)
        return {"path": path, "items": [entry.to_dict() for entry in entries]}

    @app.get("/api/browse/html", response_class=HTMLResponse)
    async def browse_html(request: Request, path: str | None = None) -> HTMLResponse:
        path = path or "/"
        if Path(path).suffix:
            raise InvalidParameterError("Cannot list a file")
        entries = await asyncio.to_thread(_services(request).lister.list, path)
        return HTMLResponse(render_listing(path, entries))

    @app.get("/api/video")
    async def video_info(request: Request, path: str | None = None) -> dict[str, Any]:
        path = _require(path, "path")
        services = _services(request)
        video = _resolve_video(services, path)
        info = await asyncio.to_thread(services.metadata.get_metadata, video)
        return {"path": path, "type": "video", "info": info.to_dict()}

    @app.api_route("/api/video/stream", methods=["GET", "HEAD"])
    async def video_stream(request: Request, path: str | None = None) -> Response:
        path = _require(path, "path")
        range_header = request.headers.get("range")
        plan = await asyncio.to_thread(_services(request).streamer.prepare, path, range_header)
        if request.method == "HEAD":
            plan.close()
            return Response(status_code=plan.status_code, headers=plan.headers)
        return StreamingResponse(
            plan.iter_body(),
            status_code=plan.status_code,
            headers=plan.headers,
            background=BackgroundTask(plan.close),
        )

    @app.get("/api/video/thumbnail")
    async def video_thumbnail(request: Request, path: str | None = None) -> RedirectResponse:
        path = _require(path, "path")
        services = _services(request)
        video = resolve_path(services.root, path)
        if not is_video(video.name):
            return RedirectResponse(PLACEHOLDER_THUMBNAIL_URL, status_code=302)
        thumbnail = await asyncio.to_thread(services.artifacts.ensure_thumbnail, video)
        if thumbnail is None:
            return RedirectResponse(PLACEHOLDER_THUMBNAIL_URL, status_code=302)
        return RedirectResponse(THUMBNAILS_URL_PREFIX + quote(thumbnail.name), status_code=302)

    @app.get("/api/video/subtitle")
    async def video_subtitle(
        request: Request, path: str | None = None, lang: str | None = None
    ) -> RedirectResponse:
        if not path or not lang:
            raise InvalidParameterError("path and lang parameters required")
        services = _services(request)
        video = _resolve_video(services, path)
        subtitle = await asyncio.to_thread(services.artifacts.ensure_subtitle, video, lang)
        return RedirectResponse(SUBTITLES_URL_PREFIX + quote(subtitle.name), status_code=302)

    return app


app = create_app()
