"""
SnipBin Backend — Health Check Route
=====================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs `SELECT 1` against the application's engine.
       healthy   → 200
       unhealthy → 503 (database unreachable)
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from snipbin import __version__
from snipbin.api.error_handlers import Surface, use_surface
from snipbin.schemas.document import HealthResponse, envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"], dependencies=[Depends(use_surface(Surface.JSON))])

_start_time = time.time()


@router.get("/health", summary="Service health check")
async def health_check(request: Request) -> JSONResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    payload = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content=envelope(payload),
    )
