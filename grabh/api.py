"""HTTP API for GRABH.

JSON endpoints under /api, static web client from PUBLIC_DIR, and the
Telegram bot started and stopped with the application lifespan.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from grabh.config import Config, create_dispatcher, create_extractor, create_user_store, get_config
from grabh.errors import FileTooLargeError
from grabh.formatting import content_disposition
from grabh.mappers import media_info_to_dto, queue_status_to_dto
from grabh.models import (
    ClientConfig, DownloadCountResponse, HealthResponse, InfoResponse, StatusResponse,
)
from grabh.ports.extractor import MediaExtractorPort
from grabh.ports.job_queue import JobQueuePort
from grabh.ports.user_store import UserStorePort
from grabh.use_cases.fetch_media import FetchMediaUseCase

logger = logging.getLogger(__name__)


class CachedStaticFiles(StaticFiles):
    def file_response(self, *args, **kwargs):
        response = super().file_response(*args, **kwargs)
        response.headers["Cache-Control"] = "public, max-age=3600"
        return response


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def get_fetcher(request: Request) -> FetchMediaUseCase:
    return request.app.state.fetcher


def get_queue(request: Request) -> JobQueuePort:
    return request.app.state.queue


def get_user_store(request: Request) -> UserStorePort:
    return request.app.state.user_store


def create_app(
    cfg: Optional[Config] = None,
    queue: Optional[JobQueuePort] = None,
    extractor: Optional[MediaExtractorPort] = None,
    user_store: Optional[UserStorePort] = None,
    enable_bot: bool = True,
) -> FastAPI:
    """Wire adapters into a FastAPI app. Any adapter left as None is built from config."""
    cfg = cfg or get_config()
    queue = queue or create_dispatcher(cfg)
    extractor = extractor or create_extractor(cfg)
    user_store = user_store or create_user_store(cfg)
    fetcher = FetchMediaUseCase(queue, extractor, cfg.download_dir, cfg.max_file_size_mb)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bot_app = None
        if enable_bot and cfg.bot_enabled:
            from grabh.bot import build_bot, start_bot
            bot_app = build_bot(cfg.bot_token, fetcher, queue, user_store)
            await start_bot(bot_app)
        yield
        if bot_app is not None:
            from grabh.bot import stop_bot
            await stop_bot(bot_app)
        await queue.shutdown()

    app = FastAPI(title="GRABH", lifespan=lifespan)
    app.state.config = cfg
    app.state.queue = queue
    app.state.fetcher = fetcher
    app.state.user_store = user_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return _error(message, exc.status_code)

    @app.get("/health", response_model=HealthResponse)
    async def health(q: JobQueuePort = Depends(get_queue)):
        return HealthResponse(queue=queue_status_to_dto(q.status()))

    @app.get("/api/status", response_model=StatusResponse)
    async def status(
        q: JobQueuePort = Depends(get_queue),
        store: UserStorePort = Depends(get_user_store),
    ):
        return StatusResponse(
            maxFileSizeMB=cfg.max_file_size_mb,
            queue=queue_status_to_dto(q.status()),
            totalDownloads=await run_in_threadpool(store.global_download_count),
        )

    @app.get("/api/config", response_model=ClientConfig)
    async def client_config():
        return cfg.firebase_web_config()

    @app.post("/api/grabh", response_model=InfoResponse)
    async def media_info(request: Request, svc: FetchMediaUseCase = Depends(get_fetcher)):
        try:
            body = await request.json()
        except ValueError:
            return _error("Invalid JSON body", 400)

        url = body.get("url") if isinstance(body, dict) else None
        if not url or not isinstance(url, str):
            return _error("Missing or invalid 'url' field", 400)

        try:
            info = await svc.describe(url)
        except Exception as e:
            logger.error(f"[API Error] {e}")
            return _error(str(e) or "Failed to fetch video info", 500)
        return InfoResponse(data=media_info_to_dto(info), maxFileSizeMB=svc.max_file_size_mb)

    @app.get("/api/download")
    async def download(
        url: Optional[str] = Query(None),
        svc: FetchMediaUseCase = Depends(get_fetcher),
    ):
        if not url:
            return _error("Missing 'url' query parameter", 400)

        try:
            media = await svc.fetch(url)
        except FileTooLargeError as e:
            return _error(str(e), 413)
        except Exception as e:
            logger.error(f"[Download Error] {e}")
            return _error(str(e) or "Failed to download video", 500)

        return FileResponse(
            media.path,
            media_type="video/mp4",
            headers={"Content-Disposition": content_disposition(media.filename)},
            background=BackgroundTask(svc.discard, media),
        )

    @app.post("/api/download/count", response_model=DownloadCountResponse)
    def count_download(store: UserStorePort = Depends(get_user_store)):
        store.increment_global_downloads()
        return DownloadCountResponse(totalDownloads=store.global_download_count())

    if os.path.isdir(cfg.public_dir):
        app.mount("/", CachedStaticFiles(directory=cfg.public_dir, html=True), name="static")
    else:
        logger.warning(f"Public dir {cfg.public_dir} not found — web client disabled")

    return app
