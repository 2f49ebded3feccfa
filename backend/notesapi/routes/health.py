"""
Notes API — Health Check Route
===============================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the deployed storage backend and reports whether semantic
       search is configured.
Who:   Called by Docker health checks, load balancers, and monitoring systems.

Status levels:
    - healthy:   storage reachable and embeddings configured (HTTP 200)
    - degraded:  storage reachable, embeddings disabled (HTTP 200)
    - unhealthy: storage unreachable (HTTP 503)

The embedding provider is not called here: health checks run every few
seconds and would spend provider quota.
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from notesapi import __version__
from notesapi.config import settings
from notesapi.dependencies import get_note_repository
from notesapi.exceptions import DatabaseError
from notesapi.repositories.base import NoteRepository
from notesapi.schemas.note import HealthResponse
from notesapi.services.gemini_service import embedding_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    repo: NoteRepository = Depends(get_note_repository),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await repo.ping()
    except DatabaseError:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: %s storage unreachable", settings.storage_backend)

    embeddings = "enabled" if embedding_service.enabled else "disabled"
    if embeddings == "disabled" and overall == "healthy":
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        storage_backend=settings.storage_backend,
        database=db_status,
        embeddings=embeddings,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
