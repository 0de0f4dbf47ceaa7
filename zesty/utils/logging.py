"""
Logging utilities for the Zesty backend.

Provides standardized logger configuration following privacy rules.

SECURITY RULES:
- NEVER log Qloo or Gemini API keys
- NEVER log Supabase Auth tokens
- NEVER log full user preference lists or full prompts

Acceptable logging:
- High-level events (e.g., "generate-cards called", "Qloo search failed")
- Counts and domains (e.g., "movie: 4 candidates")
- Failure kinds and sanitized error messages

Loggers returned by get_logger also carry a SecretRedactionFilter, so an
upstream key that leaks into an exception message is masked before output.
"""

import logging
from typing import Iterable, List, Optional

from zesty.config import settings

REDACTED = "[REDACTED]"


class SecretRedactionFilter(logging.Filter):
    """Replace known secret values in log messages with REDACTED."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        # Longest first so a key containing another key is fully masked
        self.secrets: List[str] = sorted({s for s in secrets if s}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True

        message = record.getMessage()
        redacted = message
        for secret in self.secrets:
            redacted = redacted.replace(secret, REDACTED)

        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _configured_level() -> int:
    return getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to settings.LOG_LEVEL)

    Returns:
        Configured logger instance

    Usage:
        >>> from zesty.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Qloo search failed: timeout")
    """
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _configured_level())

    if not any(isinstance(f, SecretRedactionFilter) for f in logger.filters):
        logger.addFilter(SecretRedactionFilter([settings.QLOO_API_KEY, settings.GOOGLE_API_KEY]))

    # Propagate to the root handler configured in main.py; only standalone
    # scripts without one get a handler of their own
    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(handler)

    return logger
