"""
Health check route.

PUBLIC (no authentication required): used by load balancers, monitoring
and deployment verification.
"""

from fastapi import APIRouter

from cashdesk.config import settings
from cashdesk.schemas.health import HealthResponse
from cashdesk.utils.logging import get_logger

logger = get_logger(__name__)

# Mounted at root level in main.py
router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description="Public health check endpoint (no authentication required).",
    status_code=200,
)
async def health_check() -> HealthResponse:
    """
    Example response:
        {"status": "ok", "service": "cashdesk-backend", "environment": "development"}
    """
    logger.debug("Health check endpoint called")

    return HealthResponse(status="ok", environment=settings.ENVIRONMENT)
