"""FastAPI application factory for the address service.

Creates the application with:
- Address CRUD router backed by the Redis read-through cache
- Health and Prometheus metrics endpoints
- Lifecycle management for database and cache connections
- Consistent error envelopes
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from address_service import __version__
from address_service.api.errors import (
    ApiError,
    address_not_found_handler,
    api_exception_handler,
    generic_exception_handler,
    store_failure_handler,
)
from address_service.api.middleware import CorrelationMiddleware
from address_service.api.routers import addresses, health
from address_service.api.routers import metrics as metrics_router
from address_service.cache import (
    CacheLifecycleManager,
    RedisCacheManager,
    RedisCacheStore,
    close_redis,
    get_redis,
)
from address_service.config import settings
from address_service.core.errors import AddressNotFound, StoreFailure
from address_service.observability import configure_logging
from address_service.observability.metrics import MetricsMiddleware, get_metrics
from address_service.persistence.db import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Initialize database (create tables)
    - Connect Redis and build the cache namespaces
    - Clear every cache layer left by a previous process

    On shutdown:
    - Hand cache ownership to the shutdown path and clear with retry
    - Close Redis connection
    - Close database connections
    """
    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )
    get_metrics()

    logger.info(f"Starting address service ({settings.env})")
    await init_db()

    store = RedisCacheStore(await get_redis())
    caches = RedisCacheManager(store, ttl=settings.cache_ttl_seconds)
    lifecycle = CacheLifecycleManager(
        caches,
        store,
        max_attempts=settings.cache_clear_max_attempts,
        retry_delay=settings.cache_clear_retry_delay,
    )
    app.state.cache_store = store
    app.state.cache_manager = caches
    app.state.cache_lifecycle = lifecycle

    await lifecycle.on_start()
    logger.info("Address service startup complete")

    yield

    logger.info("Shutting down address service")
    lifecycle.on_shutdown_requested()
    await lifecycle.clear_all_caches_with_retry()
    await store.close()
    await close_redis()
    await close_db()
    logger.info("Address service shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Map API and domain exceptions to error responses."""
    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(AddressNotFound, cast(ExceptionHandler, address_not_found_handler))
    app.add_exception_handler(StoreFailure, cast(ExceptionHandler, store_failure_handler))
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Address Service",
        description="Billing and shipping addresses with a Redis read-through cache",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CorrelationMiddleware is innermost so request ids are set for everything below it
    app.add_middleware(CorrelationMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    if settings.enable_metrics:
        app.include_router(metrics_router.router)
    app.include_router(addresses.router)

    return app
