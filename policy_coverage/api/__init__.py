"""
FastAPI application factory and API package.

Run with:
    uvicorn policy_coverage.api:app --reload --port 8000

Or via main.py:
    python -m policy_coverage --serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from policy_coverage.config import get_settings
from policy_coverage.api.routes import (
    assess_router,
    get_assessment_service,
    health_router,
    review_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title="Policy Coverage API",
        description="Obligation-to-policy coverage assessment and human review",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS: allow the review frontend (adjust origins in production)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health_router, tags=["Health"])
    application.include_router(assess_router, prefix="/api", tags=["Assessment"])
    application.include_router(review_router, prefix="/api", tags=["Review"])

    @application.on_event("shutdown")
    async def shutdown():
        # Only close a service that was actually built.
        if get_assessment_service.cache_info().currsize:
            get_assessment_service().repository.close()
        logger.info(f"Stopped {settings.app_name} API")

    logger.info(f"Created {settings.app_name} API (mock_mode={settings.mock_mode})")
    return application


# Module-level instance for `uvicorn policy_coverage.api:app`
app = create_app()
