"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from tradeledger.api.dependencies import get_app_settings, get_store
from tradeledger.application.dto.responses import HealthResponse, ProviderHealthResponse
from tradeledger.config import Settings
from tradeledger.core.interfaces import IRecordStore

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(
    store: IRecordStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """
    Database health check.

    Pings the record store and reports the round-trip time.
    """
    name = settings.storage.backend
    try:
        start = time.time()
        available = await store.ping()
        db_status = ProviderHealthResponse(
            name=name,
            available=available,
            latency_ms=(time.time() - start) * 1000,
        )
    except Exception as e:
        db_status = ProviderHealthResponse(name=name, available=False, error=str(e))

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
