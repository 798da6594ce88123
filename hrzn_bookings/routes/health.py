"""
Health and readiness check endpoints for container probes.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from hrzn_bookings.db.store import BookingStore
from hrzn_bookings.dependencies import get_booking_store

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe endpoint.

    Returns 200 whenever the process is serving requests.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(store: BookingStore = Depends(get_booking_store)) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 if the bookings file can be written, 503 otherwise. Bookings
    are still accepted into memory while storage is down, so this only
    signals that durability is degraded.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"storage": "ok"}}
    """
    checks = {}

    if store.is_writable():
        checks["storage"] = "ok"
        return JSONResponse(content={"status": "ready", "checks": checks})
    else:
        logger.error("readiness_check_failed", reason="bookings_file_not_writable")
        checks["storage"] = "failed"
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "checks": checks},
        )
