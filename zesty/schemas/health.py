"""
Health check endpoint schemas.

The health endpoint is PUBLIC (no authentication required) and reports
which upstream integrations are configured.
"""

from typing import Dict

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Response model for GET /api/health.

    `services` reports "configured" or "fallback" per upstream; a
    fallback service still answers, just with mock or curated content.
    """

    status: str = Field(
        default="OK",
        description="Health status of the API (always 'OK' if responding)",
        examples=["OK"]
    )
    timestamp: str = Field(..., description="ISO-8601 server time")
    services: Dict[str, str] = Field(default_factory=dict)

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "status": "OK",
                "timestamp": "2025-08-01T12:00:00+00:00",
                "services": {"qloo": "configured", "gemini": "fallback", "supabase": "configured"}
            }
        }
