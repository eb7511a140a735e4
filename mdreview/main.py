"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mdreview import __version__
from mdreview.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from mdreview.api.routes import comments, files, metrics, preferences, render, watch
from mdreview.core.config import Settings, get_settings
from mdreview.core.errors import MdReviewError
from mdreview.core.storage import KeyValueStorage, WriteBehindStorage, build_storage
from mdreview.core.structured_logging import log_json
from mdreview.schemas.errors import ErrorResponse
from mdreview.services.annotator import MarkdownRenderer
from mdreview.services.comment_store import CommentRepository
from mdreview.services.file_service import FileService
from mdreview.services.preferences_service import PreferencesService
from mdreview.services.watch_service import WatchService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    watch_service: WatchService = app.state.watch_service
    if settings.watch_enabled:
        watch_service.start()
    try:
        yield
    finally:
        watch_service.stop()
        storage = app.state.storage
        if isinstance(storage, WriteBehindStorage):
            storage.flush()


async def md_review_error_handler(request: Request, exc: MdReviewError) -> JSONResponse:
    if exc.status_code >= 500:
        log_json(
            logger,
            logging.ERROR,
            "request_failed",
            path=request.url.path,
            error=exc.error,
            message=exc.message,
        )
    body = ErrorResponse(error=exc.error, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


def create_app(settings: Settings | None = None, storage: KeyValueStorage | None = None) -> FastAPI:
    """Build the application and the services it serves from.

    ``storage`` defaults to the write-behind JSON file at ``settings.storage_path``.
    """
    settings = settings or get_settings()
    storage = storage if storage is not None else build_storage(settings.storage_path)

    docs_enabled = settings.api_docs_enabled
    if docs_enabled is None:
        docs_enabled = settings.environment != "production"

    app = FastAPI(
        title="md-review API",
        description="Markdown preview with line-anchored review comments",
        version=__version__,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url="/api/redoc" if docs_enabled else None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    file_service = FileService(
        settings.base_dir,
        markdown_file=settings.markdown_file_path,
        ignored_dirs=settings.ignored_dirs,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.file_service = file_service
    app.state.renderer = MarkdownRenderer()
    app.state.comment_repository = CommentRepository(storage)
    app.state.preferences = PreferencesService(storage)
    app.state.watch_service = WatchService(settings.watch_root, file_service)

    # Middleware configuration (order matters - the last one added runs first)
    # 1. CORS (innermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # 2. Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    # 3. Request logging (outermost - logs all requests)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(MdReviewError, md_review_error_handler)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    app.include_router(files.router, prefix="/api", tags=["files"])
    app.include_router(render.router, prefix="/api", tags=["render"])
    app.include_router(comments.router, prefix="/api", tags=["comments"])
    app.include_router(preferences.router, prefix="/api", tags=["preferences"])
    app.include_router(watch.router, prefix="/api", tags=["watch"])
    app.include_router(metrics.router, prefix="/api", tags=["metrics"])

    return app


app = create_app()
