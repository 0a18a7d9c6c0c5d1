"""
ProfileHub Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and container probes.
How:   Pings MongoDB and reports uptime.

Status levels:
    - healthy:   MongoDB answered the ping
    - unhealthy: MongoDB unreachable (still HTTP 200; the process itself is up
                 and serves static files)
"""

import logging
import time

from fastapi import APIRouter, Depends

from app import __version__
from app.database import MongoDatabase, get_database
from app.schemas.user import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(database: MongoDatabase = Depends(get_database)) -> HealthResponse:
    connected = await database.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
