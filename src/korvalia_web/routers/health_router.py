"""
Health check endpoints for monitoring service status.
"""

import os
import time
from datetime import datetime

from fastapi import APIRouter, Depends, Request

from korvalia_web import __version__
from korvalia_web.clients.api_client import BackendApiClient
from korvalia_web.config import settings
from korvalia_web.dependencies import get_api_client
from korvalia_web.schemas.common import HealthCheckResponse, HealthStatus
from korvalia_web.utils.errors import ApiError
from korvalia_web.utils.logging_config import logger

router = APIRouter(tags=["Health"])

# Track app startup time for uptime monitoring
start_time = time.time()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request) -> HealthCheckResponse:
    """
    Basic health check endpoint for the service.
    Only reports on this process; use /health/detailed to check the backend.
    """
    return HealthCheckResponse(
        status=HealthStatus.OK,
        version=__version__,
        timestamp=datetime.utcnow(),
        components={"api": {"status": HealthStatus.OK}},
        uptime_seconds=time.time() - start_time,
    )


@router.get("/health/detailed", response_model=HealthCheckResponse)
async def detailed_health_check(
    request: Request,
    api: BackendApiClient = Depends(get_api_client),
) -> HealthCheckResponse:
    """
    Detailed health check that tests connectivity to the property backend.
    A failing backend degrades the status; the site still serves static content.
    """
    response = await health_check(request)
    response_dict = response.model_dump()

    try:
        logger.debug(f"Testing backend connectivity at: {api.api_url}")
        await api.get("/cities", requires_auth=False)
        response_dict["components"]["backend"] = {"status": HealthStatus.OK}
    except ApiError as e:
        logger.error(f"Backend health check failed: {e}")
        response_dict["components"]["backend"] = {
            "status": HealthStatus.ERROR,
            "message": f"Backend error: {e.message}",
        }
        response_dict["status"] = HealthStatus.DEGRADED

    response_dict["components"]["environment"] = {
        "status": HealthStatus.OK,
        "message": f"Environment: {settings.ENVIRONMENT.value}",
    }
    response_dict["components"]["process"] = {
        "status": HealthStatus.OK,
        "message": f"PID: {os.getpid()}",
    }

    return HealthCheckResponse(**response_dict)
