"""Health check endpoints.

Kubernetes-style probes:
- /health/live  - the process is up
- /health/ready - PostgreSQL and Redis both answer within CHECK_TIMEOUT
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from address_service.api.deps import get_cache_store
from address_service.cache.redis import RedisCacheStore
from address_service.persistence.db import health_check as db_health_check

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0  # seconds


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Outcome of one dependency probe."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None


class Readiness(BaseModel):
    status: HealthStatus
    components: list[ComponentHealth]


async def _probe(name: str, check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    """Run a check; timeouts and exceptions count as unhealthy."""
    start = time.monotonic()
    message: str | None = None
    try:
        healthy = await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT)
        if not healthy:
            message = f"{name} check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = f"{name} check timed out"
    except Exception as e:
        healthy = False
        message = str(e)
    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        latency_ms=round((time.monotonic() - start) * 1000, 2),
        message=message,
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready", response_model=Readiness)
async def ready(store: RedisCacheStore = Depends(get_cache_store)) -> JSONResponse:
    """Readiness probe: 200 when every dependency is healthy, 503 otherwise."""
    components = list(
        await asyncio.gather(
            _probe("database", db_health_check),
            _probe("redis", store.health_check),
        )
    )
    healthy = all(c.status is HealthStatus.HEALTHY for c in components)
    readiness = Readiness(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        components=components,
    )
    return JSONResponse(
        content=readiness.model_dump(mode="json", exclude_none=True),
        status_code=200 if healthy else 503,
    )
