"""
Badge Builder Backend API - FastAPI application.

Provides endpoints for:
- Building Credly Badge Builder embed links
- Rendering the featured-image metabox for a post
- Receiving the badge builder save callback
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routers import builder
from badge_builder.errors import BadgeBuilderError
from badge_builder.hooks import FilterRegistry

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting up Badge Builder API...")
    if getattr(app.state, "filters", None) is None:
        app.state.filters = FilterRegistry()
    yield
    logger.info("Shutting down Badge Builder API...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Badge Builder API",
        description="Credly Badge Builder integration for post featured images",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Filters plugins can hook into; routers read it through `api.deps.get_filters`.
    app.state.filters = FilterRegistry()

    # If no origins configured, allows all origins but disables credentials
    cors_origins = get_cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins else ["*"],
        allow_credentials=len(cors_origins) > 0,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(builder.router, prefix="/api/v1")

    @app.exception_handler(BadgeBuilderError)
    def badge_builder_error(request: Request, exc: BadgeBuilderError):
        """Errors raised outside an endpoint body, e.g. by a dependency."""
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return builder.error_response(exc)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "badge-builder-backend"}

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
