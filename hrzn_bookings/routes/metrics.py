"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP hrzn_bookings_created_total Total number of bookings created from confirmed payments
        # TYPE hrzn_bookings_created_total counter
        hrzn_bookings_created_total{property_code="cos1"} 3.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Prometheus metrics endpoint.

    Returns:
        Response: Metrics in Prometheus text exposition format
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
