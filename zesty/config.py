"""
Configuration module for the Zesty backend.

Loads environment variables and validates settings.

Every upstream credential is optional: a missing taste graph key or Gemini
key degrades the service to mock and curated content instead of crashing it.
"""
import logging
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    # Qloo taste graph
    QLOO_BASE_URL: str = os.getenv("QLOO_BASE_URL", "https://hackathon.api.qloo.com")
    QLOO_API_KEY: str = os.getenv("QLOO_API_KEY", "")

    # Google Gemini API
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    # Optional override of the Gemini endpoint (proxies, regional gateways)
    GEMINI_API_URL: str = os.getenv("GEMINI_API_URL", "")

    # Supabase Configuration
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_PUBLISHABLE_KEY: str = os.getenv("SUPABASE_PUBLISHABLE_KEY", "")

    @property
    def SUPABASE_JWKS_URL(self) -> str:
        """Get the JWKS URL for JWT verification."""
        if not self.SUPABASE_URL:
            return ""
        return f"{self.SUPABASE_URL}/auth/v1/.well-known/jwks.json"

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PORT: int = int(os.getenv("PORT", "3001"))

    # CORS Settings
    CORS_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:5173"))

    # Per-IP fixed window, slowapi/limits notation
    RATE_LIMIT: str = os.getenv("RATE_LIMIT", "100/15minutes")

    # Upper bound for any single taste graph or Gemini call
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))

    # How many cards per batch may carry a Gemini-written explanation
    CARD_EXPLANATION_BUDGET: int = int(os.getenv("CARD_EXPLANATION_BUDGET", "4"))

    # Local challenge store (fallback when Supabase is unreachable)
    ZESTY_DATA_DIR: Path = Path(os.getenv("ZESTY_DATA_DIR", str(Path.home() / ".zesty")))

    @classmethod
    def validate(cls) -> None:
        """
        Validate settings that would break the service if wrong.

        Missing upstream credentials are reported as warnings only.

        Raises:
            ValueError: If a setting has an unusable value.
        """
        problems = []
        if cls.UPSTREAM_TIMEOUT_SECONDS <= 0:
            problems.append("UPSTREAM_TIMEOUT_SECONDS must be positive")
        if cls.CARD_EXPLANATION_BUDGET < 0:
            problems.append("CARD_EXPLANATION_BUDGET must not be negative")
        if "/" not in cls.RATE_LIMIT and " per " not in cls.RATE_LIMIT:
            problems.append(f"RATE_LIMIT '{cls.RATE_LIMIT}' is not in 'N/period' form")

        if problems:
            raise ValueError("Invalid configuration: " + "; ".join(problems))

        optional_settings = {
            "QLOO_API_KEY": cls.QLOO_API_KEY,
            "GOOGLE_API_KEY": cls.GOOGLE_API_KEY,
            "SUPABASE_URL": cls.SUPABASE_URL,
        }
        for key, value in optional_settings.items():
            if not value:
                logger.warning(f"{key} not set; dependent features will use fallbacks")

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment."""
        return cls.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Skip validation during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    try:
        settings.validate()
    except ValueError as e:
        # In development, warn but don't crash
        if settings.is_development():
            logger.warning(f"{e}. The app may not work correctly until you fix your .env file.")
        else:
            raise
