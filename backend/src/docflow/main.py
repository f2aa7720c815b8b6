"""DocFlow - Main FastAPI Application

Multi-tenant document management core: permission resolution and the
document workflow engine behind a thin HTTP adapter.

This module creates and configures the FastAPI application, including:
- The documents API router
- Request ID middleware
- Typed error handlers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import __version__
from .api.errors import register_exception_handlers
from .api.router import router as documents_router
from .config import get_settings
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("DocFlow API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    yield

    logger.info("DocFlow API shutting down...")


app = FastAPI(
    title="DocFlow API",
    description="Multi-tenant document management: permissions and workflow",
    version=__version__,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged but not exposed to the client.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


app.include_router(documents_router, prefix="/api/v1")


@app.get("/health", tags=["observability"])
def health() -> dict:
    return {"status": "ok", "version": __version__}


@app.get("/metrics", tags=["observability"])
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
