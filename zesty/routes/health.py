"""
Health check route for the Zesty backend.

This endpoint is PUBLIC (no authentication required) and reports whether
each upstream integration is configured or running on fallbacks.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from zesty.config import settings
from zesty.db.client import is_supabase_configured
from zesty.schemas.health import HealthResponse
from zesty.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


def _service_state(configured: bool) -> str:
    return "configured" if configured else "fallback"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Public health check endpoint (no authentication required). "
        "Always answers OK while the process is up; `services` shows which "
        "upstreams are configured."
    ),
    status_code=200,
)
async def health_check() -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "OK",
            "timestamp": "2025-08-01T12:00:00+00:00",
            "services": {"qloo": "configured", "gemini": "fallback", "supabase": "configured"}
        }
    """
    logger.debug("Health check endpoint called")

    return HealthResponse(
        status="OK",
        timestamp=datetime.now(timezone.utc).isoformat(),
        services={
            "qloo": _service_state(bool(settings.QLOO_API_KEY)),
            "gemini": _service_state(bool(settings.GOOGLE_API_KEY)),
            "supabase": _service_state(is_supabase_configured()),
        },
    )
