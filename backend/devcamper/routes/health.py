"""
DevCamper Backend: Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Checks the database (SELECT 1 on the app's engine) and the geocoder's
       circuit breaker state.

Status levels:
    - healthy:   All dependencies operational (HTTP 200)
    - degraded:  Geocoder circuit open; reads still work (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503)
"""

import logging

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from devcamper import __version__
from devcamper.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Health of the API and its dependencies, for container probes and load balancers.",
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    geocoder_status = "available"
    overall = "healthy"

    # ── Database ──────────────────────────────────────────────────────────
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Geocoder ──────────────────────────────────────────────────────────
    if not await request.app.state.geocoder.health_check():
        geocoder_status = "circuit_open"
        overall = "degraded" if overall != "unhealthy" else overall

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        database=db_status,
        geocoder=geocoder_status,
        version=__version__,
    )
