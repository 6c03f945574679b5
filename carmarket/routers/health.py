"""Health check endpoints for system monitoring."""

import logging
import time
from typing import List, Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from carmarket.db import check_connection
from carmarket.dependencies import ServiceContainer, get_container

# Create router
router = APIRouter(prefix="/health", tags=["System"])

# Configure logger
logger = logging.getLogger(__name__)


class ServiceCheck(BaseModel):
    """Model for individual service health check."""

    name: str
    status: Literal["healthy", "unhealthy"]
    duration_ms: float | None = None


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: Literal["healthy", "unhealthy"]
    timestamp: float
    duration_ms: float
    checks: List[ServiceCheck]


async def _timed(name: str, check) -> ServiceCheck:
    start = time.time()
    healthy = await check
    if not healthy:
        logger.error(f"{name} health check failed")
    return ServiceCheck(
        name=name,
        status="healthy" if healthy else "unhealthy",
        duration_ms=round((time.time() - start) * 1000, 2),
    )


@router.get("/", summary="System health check", response_model=HealthCheckResponse)
async def health_check(request: Request, container: ServiceContainer = Depends(get_container)):
    """Check the database and the cache.

    Answers 503 when any of them is unhealthy.
    """
    start_time = time.time()
    checks: List[ServiceCheck] = [await _timed("database", check_connection(request.app.state.db_client))]
    if container.cache is not None:
        checks.append(await _timed("cache", container.cache.ping()))

    overall = "healthy" if all(check.status == "healthy" for check in checks) else "unhealthy"
    response = HealthCheckResponse(
        status=overall,
        timestamp=start_time,
        duration_ms=round((time.time() - start_time) * 1000, 2),
        checks=checks,
    )
    return JSONResponse(status_code=200 if overall == "healthy" else 503, content=response.model_dump())
