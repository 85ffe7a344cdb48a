"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.config import get_logger, get_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_start_time = time.time()


def _health(database: ProviderHealthResponse | None = None) -> HealthResponse:
    healthy = database is None or database.available
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=database,
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Service status and uptime."""
    return _health()


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Opens the pool if needed and times a trivial query against the ledger
    database.
    """
    from src.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        latency = await pool.ping()
        database = ProviderHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=round(latency, 2),
        )
    except Exception as e:
        logger.warning("db_health_check_failed", error=str(e))
        database = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    return _health(database)
