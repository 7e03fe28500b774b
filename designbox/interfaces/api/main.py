"""
FastAPI Main Application - API entry point.

Run with: uvicorn designbox.interfaces.api:create_app --factory --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from designbox import __version__
from designbox.bootstrap import build_services
from designbox.config import get_settings
from designbox.config.errors import DesignBoxError

from .middleware import RequestContextMiddleware, designbox_error_handler
from .routes import chat, health, resources

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting DesignBox API...")
    logger.info("  Corpus: %s", settings.corpus_path)
    logger.info("  Chat provider: %s (fallbacks: %s)", settings.llm_provider, settings.fallback_providers)

    app.state.services = await build_services(settings)
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down DesignBox API...")
    await app.state.services.aclose()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DesignBox API",
        description="Conversational retrieval over a curated design resource catalog",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(DesignBoxError, designbox_error_handler)
    app.add_middleware(RequestContextMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
    app.include_router(resources.router, prefix="/api", tags=["Resources"])

    return app
