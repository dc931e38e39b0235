# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Scholaris API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middleware.auth import ActorMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.domains.access_control import AccessDeniedError
from src.infrastructure.cache import CacheAccelerator, RedisClient
from src.infrastructure.database import Database, DatabaseError
from src.infrastructure.database.query import InvalidQueryError, TenantScopeRequiredError
from src.infrastructure.events import EventBus, NotificationRelay
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes and cleans up:
    - Database engine
    - Redis cache (optional; the API runs uncached without it)
    - Event bus and notification relay

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting Scholaris API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database = Database(settings)
    await database.connect()
    app.state.database = database

    redis_client: RedisClient | None = None
    if settings.redis.enabled:
        try:
            redis_client = RedisClient(settings)
            await redis_client.connect()
            logger.info("Redis connection initialized")
        except Exception as e:
            logger.warning("Failed to initialize Redis, running without cache: %s", str(e))
            redis_client = None
    app.state.redis = redis_client
    app.state.cache = CacheAccelerator(redis_client, settings)

    event_bus = EventBus()
    NotificationRelay().attach(event_bus)
    app.state.event_bus = event_bus

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    event_bus.clear()

    if redis_client is not None:
        try:
            await redis_client.close()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.warning("Error closing Redis: %s", str(e))

    await database.dispose()
    logger.info("Shutting down Scholaris API")


async def _access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


async def _query_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("List query failed on %s: %s", request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


async def _database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("Database error on %s: %s", request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Scholaris API",
        description="Multi-tenant school backend: question bank, exams and coursework",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(AccessDeniedError, _access_denied_handler)
    app.add_exception_handler(InvalidQueryError, _query_error_handler)
    app.add_exception_handler(TenantScopeRequiredError, _query_error_handler)
    app.add_exception_handler(DatabaseError, _database_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(ActorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
