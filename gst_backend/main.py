"""
GST Dashboard Backend - Main FastAPI Application

Small JSON service behind the GST dashboard and its admin UI:
- In-memory document store mirrored to disk
- Hot reload when the backing files change outside the process
- PDF uploads handed to the external extraction tool
- User registry for sign-ups
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
import sys

from gst_backend.api import content, health, uploads
from gst_backend.api.middleware import CORS_HEADERS, CORSAllMiddleware, StripPrefixMiddleware
from gst_backend.domains.document_store.store import DocumentStore
from gst_backend.domains.document_store.users import UserRegistry
from gst_backend.domains.document_store.watchers.filesystem import StoreWatcher
from gst_backend.domains.file_ingest.processors.extraction import (
    ExtractionBridge,
    Extractor,
    SubprocessExtractor,
)
from gst_backend.domains.file_ingest.uploads import UploadIngestor
from gst_backend.utils.config import Settings, get_settings
from gst_backend.utils.errors import BackendError, NotFound, backend_error_handler, error_response


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str):
    """Route loguru output to stdout at ``level``."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level.upper())


def create_app(settings: Optional[Settings] = None, extractor: Optional[Extractor] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; defaults to the cached environment settings
        extractor: Extraction adapter; defaults to the external tool subprocess

    Returns:
        Configured application whose components are created in the lifespan
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting {settings.api_title} v{settings.api_version}")

        store = DocumentStore(settings.primary_path, settings.db_path)
        users = UserRegistry(settings.users_path)
        store.load()
        users.load()
        logger.success(f"Snapshot loaded: {store.counts()}, users={users.count()}")

        bridge = ExtractionBridge(
            extractor or SubprocessExtractor(
                command=settings.get_extraction_command(),
                output_path=settings.primary_path,
                cwd=settings.get_extraction_cwd(),
                timeout=settings.extraction_timeout,
            ),
            store,
        )
        settings.uploads_path.mkdir(parents=True, exist_ok=True)

        app.state.settings = settings
        app.state.store = store
        app.state.users = users
        app.state.ingestor = UploadIngestor(settings.uploads_path, bridge)

        watcher = None
        if settings.watch_enabled:
            watcher = StoreWatcher([store, users], interval=settings.watch_interval)
            watcher.start()
        app.state.watcher = watcher

        yield

        # Cleanup
        logger.info("Shutting down application...")
        if watcher is not None:
            watcher.stop()
        logger.success("Application shut down complete")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Document store, uploads and extraction for the GST dashboard",
        lifespan=lifespan
    )

    # Added last runs first: rewrite the path, then apply CORS
    app.add_middleware(CORSAllMiddleware)
    app.add_middleware(
        StripPrefixMiddleware,
        prefix=settings.proxy_prefix,
        replacement="/api/",
    )

    app.add_exception_handler(BackendError, backend_error_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path is reported like an unknown path
        if exc.status_code in (404, 405):
            return await backend_error_handler(request, NotFound("Route not found"))
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(str(exc), 400)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.log_level.upper() == "DEBUG" else "An error occurred"
            },
            # Raised errors bypass CORSAllMiddleware
            headers=CORS_HEADERS,
        )

    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(content.router, prefix="/api", tags=["Content"])
    app.include_router(uploads.router, prefix="/api", tags=["Uploads"])

    return app


configure_logging(get_settings().log_level)
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "gst_backend.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
