"""
API Dependencies - Dependency injection for FastAPI routes.

Services are built once in the application lifespan and kept on
``app.state.services``; routes receive the pieces they need from here.
"""

from __future__ import annotations

from fastapi import Depends, Request

from designbox.bootstrap import Services
from designbox.domains.orchestration import CacheManager, RAGEngine


def get_services(request: Request) -> Services:
    """Get the services built at startup."""
    return request.app.state.services


def get_engine(services: Services = Depends(get_services)) -> RAGEngine:
    """Get the retrieval pipeline."""
    return services.engine


def get_cache(services: Services = Depends(get_services)) -> CacheManager:
    """Get the cache manager."""
    return services.cache
