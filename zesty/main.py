"""
FastAPI application entry point for the Zesty backend.

Builds the app, wires middleware (CORS, input sanitization) and registers
all routers behind the per-IP rate limit dependency.
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from zesty import __version__
from zesty.config import settings
from zesty.routes.challenges import router as challenges_router
from zesty.routes.health import router as health_router
from zesty.routes.preferences import router as preferences_router
from zesty.routes.taste_graph import router as taste_graph_router
from zesty.routes.text_generation import router as text_generation_router
from zesty.routes.zesty import router as zesty_router
from zesty.utils.rate_limit import (
    RateLimitExceededError,
    RateLimitGuard,
    enforce_rate_limit,
    rate_limit_exceeded_handler,
)
from zesty.utils.sanitize import SanitizationMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors and return them as a 422."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "error": "validation_error",
            "details": exc.errors(),
            "body": exc.body
        })
    )


def create_app(rate_limit: Optional[str] = None) -> FastAPI:
    """
    Build the Zesty FastAPI application.

    Args:
        rate_limit: Per-IP limit such as "100/15minutes"; defaults to
                    settings.RATE_LIMIT. Each app gets its own counters.
    """
    app = FastAPI(
        title="Zesty API",
        description="Recommendation proxy for Zesty, the cultural discomfort explorer",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    guard = RateLimitGuard(rate_limit or settings.RATE_LIMIT)
    app.state.rate_limit_guard = guard
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)

    # Last added runs first: CORS -> sanitization -> routes
    app.add_middleware(SanitizationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every route counts against the per-IP window
    rate_limited = [Depends(enforce_rate_limit)]
    for router in (
        health_router,
        taste_graph_router,
        text_generation_router,
        zesty_router,
        preferences_router,
        challenges_router,
    ):
        app.include_router(router, dependencies=rate_limited)

    logger.info(
        f"Zesty app initialized (environment={settings.ENVIRONMENT}, "
        f"rate_limit={rate_limit or settings.RATE_LIMIT})"
    )
    return app


app = create_app()
