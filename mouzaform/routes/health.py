"""
MouzaForm Backend — Health Check Route
========================================

What:  GET /health for container and load-balancer probes.
How:   Runs `SELECT 1` through the app's Database handle.
       healthy (200) when the store answers, unhealthy (503) otherwise.
"""

import logging
import time

from fastapi import APIRouter, Request, Response

from mouzaform import __version__
from mouzaform.schemas.form_data import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    connected = await request.app.state.database.ping()
    if not connected:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
