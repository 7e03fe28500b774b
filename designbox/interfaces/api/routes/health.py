"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from designbox import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "designbox"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "DesignBox API",
        "version": __version__,
        "description": "Conversational retrieval over a curated design resource catalog",
        "docs": "/docs",
    }
