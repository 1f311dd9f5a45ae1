"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from datetime import datetime

from fastapi import APIRouter

from careerpath.server.core import constant
from careerpath.server.core.config import settings

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    """
    return {
        "status": "ok",
        "message": "CareerPath API is running",
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    """
    Get API version.

    Returns the current semantic version of the API and the deployment environment.
    """
    return {"version": constant.VERSION, "environment": settings.environment}
