"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from kudos_engine.api.routes import (
    audit_router,
    catalog_router,
    employees_router,
    health_router,
    news_router,
    points_router,
    quotas_router,
    redemptions_router,
    reports_router,
    transactions_router,
)
from kudos_engine.config import configure_logging, get_settings
from kudos_engine.database import create_tables, dispose_engine, init_db
from kudos_engine.services.errors import KudosError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db()
    if settings.auto_create_tables:
        await create_tables()
    logger.info("kudos engine %s started", settings.app_version)
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Kudos Engine API",
        description="Employee recognition points, rewards and redemptions",
        version=get_settings().app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(KudosError)
    async def kudos_exception_handler(request: Request, exc: KudosError) -> JSONResponse:
        """Domain rejections carry their own status and machine code."""
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc, exc.code)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """A database constraint caught a write the services let through."""
        logger.warning("%s %s integrity error: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "The change conflicts with existing data", "code": "CONFLICT"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    for router in (
        health_router,
        employees_router,
        points_router,
        transactions_router,
        redemptions_router,
        catalog_router,
        quotas_router,
        news_router,
        reports_router,
        audit_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
