"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 unless the resource store is
      reachable and the cache manager controls clients (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from payflow.api.dependencies import get_cache_manager
from payflow.core.domain_types import WorkerState
from payflow.infrastructure import database
from payflow.services.resource_cache_manager import ResourceCacheManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "payflow-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    manager: ResourceCacheManager | None = Depends(get_cache_manager),
):
    """Readiness probe — resource store connectivity and cache lifecycle."""
    db_ok = await database.db_manager.health_check() if database.db_manager else False
    cache_state = manager.state.value if manager else WorkerState.NEW.value
    if not db_ok or cache_state != WorkerState.ACTIVATED.value:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "checks": {
                    "database": "healthy" if db_ok else "unavailable",
                    "resource_cache": cache_state,
                },
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "resource_cache": cache_state},
    }
