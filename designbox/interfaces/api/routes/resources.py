"""
Resource Routes - Related resources and cache statistics.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from designbox.domains.orchestration import CacheManager, RAGEngine
from designbox.interfaces.api.deps import get_cache, get_engine

router = APIRouter()


@router.get("/resources/{resource_id}/similar")
async def similar_resources(
    resource_id: str,
    limit: int = Query(default=5, ge=1, le=20),
    engine: RAGEngine = Depends(get_engine),
) -> dict[str, Any]:
    """
    Find resources related to an indexed one.

    Unknown ids answer 404 via the error middleware.
    """
    results = await engine.similar_resources(resource_id, limit)
    return {
        "resource_id": resource_id,
        "results": [r.model_dump(mode="json", by_alias=True) for r in results],
        "total": len(results),
    }


@router.get("/cache/stats")
async def cache_stats(cache: CacheManager = Depends(get_cache)) -> dict[str, Any]:
    """Hit/miss statistics for the result and analysis caches."""
    return {name: stats.model_dump() for name, stats in cache.stats().items()}
