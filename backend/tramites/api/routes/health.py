"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 if the sql backend's database is unreachable
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import tramites.infrastructure.database as database
from tramites.config import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "tramites-api", "version": "1.0.0"}


@router.get("/ready")
async def readiness_check():
    """Readiness probe — includes database connectivity for the sql backend."""
    if get_settings().storage_backend == "memory":
        return {"status": "ready", "checks": {"storage": "memory"}}
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
