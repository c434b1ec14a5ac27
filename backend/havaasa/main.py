"""FastAPI application entry point."""

import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from havaasa.api.errors import register_exception_handlers
from havaasa.api.router import api_router
from havaasa.config import Settings, get_settings
from havaasa.db.postgres import Database
from havaasa.logs import configure_logging
from havaasa.services.auth_service import AuthClient
from havaasa.services.cache import ResponseCache
from havaasa.services.crawler_service import CrawlerDetector
from havaasa.services.responder import Responder
from havaasa.services.storage_service import StorageClient

logger = structlog.get_logger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    settings: Settings = app.state.settings
    logger.info("starting", app=settings.app_name, environment=settings.environment)

    await app.state.database.create_tables()

    yield

    # Shutdown
    await app.state.auth_client.close()
    await app.state.storage_client.close()
    await app.state.database.dispose()
    logger.info("shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Magazine CMS with crawler-aware link previews",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Process-wide collaborators
    app.state.settings = settings
    app.state.cache = ResponseCache(ttl_seconds=settings.cache_ttl_seconds)
    app.state.responder = Responder(
        settings, CrawlerDetector.load(settings.crawler_signatures_path)
    )
    app.state.auth_client = AuthClient(settings)
    app.state.storage_client = StorageClient(settings)
    app.state.database = Database(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    register_exception_handlers(app)

    # Include API router
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health_check() -> dict[str, str | float]:
        """Health check endpoint."""
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        }

    return app


app = create_app()
