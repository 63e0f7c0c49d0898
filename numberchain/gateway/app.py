# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
FastAPI Gateway Application

Main entry point for the Number Chain API.

`create_app()` builds every long-lived object the routes need (database
handle, token codec, password service) and stores it on ``app.state``;
the lifespan hooks open and dispose them.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.lifecycle import Lifecycle
from ..core.settings import Settings, get_settings
from ..data.database import Database
from ..observability.logging import configure_logging
from .auth import PasswordService, TokenCodec
from .auth_routes import router as auth_router
from .cookies import ACCESS_TOKEN_HEADER, REFRESH_TOKEN_HEADER
from .errors import register_exception_handlers
from .health import router as health_router
from .post_routes import router as post_router
from .request_context import RequestContextMiddleware

logger = logging.getLogger(__name__)


# ============================================================
# LIFECYCLE
# ============================================================


def build_lifecycle(settings: Settings, database: Database) -> Lifecycle:
    """Startup and shutdown hooks for one application instance."""
    lifecycle = Lifecycle()

    @lifecycle.on_startup
    async def startup_database():
        """Create tables when configured to (SQLite / development)."""
        if settings.database.create_tables:
            await database.create_all()
        logger.info("Database initialized")

    @lifecycle.on_shutdown
    async def shutdown_database():
        """Close database connections."""
        await database.close()
        logger.info("Database closed")

    return lifecycle


# ============================================================
# APPLICATION
# ============================================================


def create_app(settings: Settings | None = None, configure_logs: bool = True) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    if configure_logs:
        configure_logging(
            level="DEBUG" if settings.debug else settings.observability.level,
            format=settings.observability.format,
        )

    database = Database(settings.database)
    lifecycle = build_lifecycle(settings, database)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """FastAPI lifespan context manager."""
        await lifecycle.startup()
        yield
        await lifecycle.shutdown()

    app = FastAPI(
        title=settings.app_name,
        description="Collaborative arithmetic discussion service",
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.lifecycle = lifecycle
    app.state.token_codec = TokenCodec(settings.security)
    app.state.password_service = PasswordService(rounds=settings.security.bcrypt_rounds)

    # --------------------------------------------------------
    # MIDDLEWARE
    # --------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[ACCESS_TOKEN_HEADER, REFRESH_TOKEN_HEADER, "X-Request-ID"],
    )

    app.add_middleware(
        RequestContextMiddleware,
        header_name="X-Request-ID",
        log_requests=True,
    )

    # --------------------------------------------------------
    # EXCEPTION HANDLERS
    # --------------------------------------------------------

    register_exception_handlers(app)

    # --------------------------------------------------------
    # ROUTES
    # --------------------------------------------------------

    base_path = settings.api_base_path

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": settings.app_name, "docs": app.docs_url}

    app.include_router(health_router, prefix=base_path)
    app.include_router(auth_router, prefix=base_path)
    app.include_router(post_router, prefix=base_path)

    logger.info(f"{settings.app_name} {settings.app_version} ready on {base_path}")
    return app


# ============================================================
# EXPORTS
# ============================================================

__all__ = ["build_lifecycle", "create_app"]
