"""Healthcheck endpoint.

GET /v1/healthcheck - Report status, environment and version
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from reelshelf import __version__
from reelshelf.models.types import HealthStatus, SystemInfo

router = APIRouter()


@router.get("/healthcheck", response_model=HealthStatus)
def healthcheck(request: Request) -> HealthStatus:
    """Health check endpoint."""
    return HealthStatus(
        status="available",
        system_info=SystemInfo(
            environment=request.app.state.settings.env,
            version=__version__,
        ),
    )
