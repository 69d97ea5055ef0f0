"""
FastAPI Application Factory & Configuration.

This module builds the framelog HTTP application. It is responsible for:
1.  **Middleware Setup**: CORS for the browser-side rendering collaborator.
2.  **Exception Handling**: Global handlers so every failure returns the
    ``{success: false, error}`` JSON shape.
3.  **Routing**: Mounting the commit router and the health probe.
4.  **Lifecycle**: Running the one-time backup backfill on startup.

Design Pattern
--------------
``create_app(service=None)`` is an application factory: tests inject a
:class:`CommitService` over in-memory stores, production builds one from
settings.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from framelog import __version__
from framelog.api.routers import commits
from framelog.api.schemas import ErrorPayload, HealthInfo
from framelog.core.errors import StorageWriteError
from framelog.core.settings import get_logger, load_settings
from framelog.core.storage.commit_store import CommitStore
from framelog.feedback.source import FigmaCommentSource
from framelog.pipelines.create_commit import CommitService

logger = get_logger(__name__)


def build_default_service() -> CommitService:
    """File-backed service for the configured design file."""
    store = CommitStore.from_settings()
    return CommitService(store, FigmaCommentSource.from_env(token_provider=store.get_pat))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    ASGI Lifespan context manager.

    - **Startup**: run the backup backfill once. Its failure is logged by the
      store and never blocks startup.
    """
    service: CommitService = app.state.service
    outcome = service.store.migrate_backup_once()
    if outcome.is_ok():
        logger.info("Backup backfill: %s", outcome.unwrap())
    yield
    logger.info("framelog API shutting down")


def create_app(service: CommitService | None = None) -> FastAPI:
    """
    Construct and configure the framelog FastAPI application.

    Parameters
    ----------
    service:
        The commit service to serve. Built from settings when omitted.
    """
    app = FastAPI(
        title="framelog API",
        description="Version history, feedback and analytics for design files",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service or build_default_service()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StorageWriteError)
    async def storage_error_handler(request: Request, exc: StorageWriteError) -> JSONResponse:
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content=ErrorPayload(error=str(exc)).to_wire())

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map Python ValueErrors to HTTP 400 Bad Request."""
        return JSONResponse(status_code=400, content=ErrorPayload(error=str(exc)).to_wire())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content=ErrorPayload(error=str(exc)).to_wire())

    app.include_router(commits.router)

    @app.get("/health", response_model=HealthInfo, tags=["System"])
    async def health_check() -> HealthInfo:
        """Simple liveness probe."""
        return HealthInfo(environment=load_settings().environment, version=__version__)

    return app


__all__ = ["build_default_service", "create_app"]
