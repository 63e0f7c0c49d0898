# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Health Check Endpoints

- /health - Liveness (is the app running?)
- /health/ready - Readiness (can the app reach its database?)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from ..core.settings import Settings
from ..data.database import Database, get_database
from .auth import get_app_settings
from .responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Track startup time for uptime calculation
_startup_time = time.time()


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: str  # healthy, unhealthy
    latency_ms: float | None = None
    error: str | None = None


@router.get("/health")
async def health_check():
    """Liveness probe. Does not touch the database."""
    return success_response({"status": "ok"}, "Service is healthy")


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """
    Readiness probe.

    Returns 503 while the database is unreachable.
    """
    db_health = await _check_database(database)
    ready = db_health.status == "healthy"
    if not ready:
        response.status_code = 503

    data = {
        "status": "ready" if ready else "not_ready",
        "version": settings.app_version,
        "environment": settings.environment,
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "checks": {"database": db_health.model_dump(exclude_none=True)},
    }
    message = "Service is ready" if ready else "Service is not ready"
    return success_response(data, message, response.status_code or 200)


async def _check_database(database: Database) -> ComponentHealth:
    start = time.time()
    try:
        health = await database.health_check()
        return ComponentHealth(
            status=health.get("status", "unknown"),
            latency_ms=round((time.time() - start) * 1000, 2),
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round((time.time() - start) * 1000, 2),
            error=type(e).__name__,
        )


__all__ = ["router"]
