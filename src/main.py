"""FastAPI application entry point.

This module sets up the FastAPI application with all necessary middleware,
routers, and configuration.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
import structlog

from core.config import Settings, get_settings
from core.logging import setup_logging
from core.middleware import CorrelationIDMiddleware, LoggingMiddleware
from core.monitoring import setup_monitoring
from models.common import ErrorResponse, HealthResponse
from relay.router import router as relay_router

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use instead of the environment-derived ones.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting relay", version=settings.app_version, relay_path=settings.relay_path)
        setup_monitoring(settings)
        yield
        logger.info("Shutting down relay")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Same-origin HTTP relay for sandboxed clients",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )
    app.dependency_overrides[get_settings] = lambda: settings

    # Added last so it wraps the logging middleware and binds the ID first
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    app.include_router(relay_router, prefix=settings.relay_path, tags=["relay"])

    add_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=settings.app_version)

    if settings.metrics_enabled:
        app.mount("/metrics", make_asgi_app())

    return app


def add_exception_handlers(app: FastAPI) -> None:
    """Add global exception handlers to the FastAPI app.

    The relay maps its own failures to results; only unexpected errors
    escape the endpoint and end up here.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception("Unhandled exception", error=str(exc), path=request.url.path)
        payload = ErrorResponse(
            detail="Internal server error",
            type="internal_error",
            correlation_id=getattr(request.state, "correlation_id", None),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=payload.model_dump(exclude_none=True),
        )


app = create_app()


def run() -> None:
    """Run the relay under uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=1 if settings.reload else settings.workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
