"""
Cache Manager - In-memory TTL caches for search results and query analysis.

Provides memoization for repeated queries so identical turns skip the
embedding and vector work. Entries expire lazily: an entry past its TTL is
dropped on the next lookup. There is no size-based eviction.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from designbox.domains.analysis.models import QueryAnalysis, SearchDimensions
from designbox.domains.search.models import SearchFilters, SearchResult

from .models import CachedSearch, CacheEntry, CacheStats

logger = logging.getLogger(__name__)

__all__ = ["TTLCache", "CacheManager"]


class TTLCache:
    """
    Named in-memory cache with TTL and hit/miss accounting.

    Example:
        >>> cache = TTLCache("results", default_ttl=3600)
        >>> await cache.set("key", [1, 2, 3])
        >>> await cache.get("key")
        [1, 2, 3]
    """

    def __init__(
        self,
        name: str,
        default_ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            name: Label used in statistics and logs
            default_ttl: Default TTL in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.name = name
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Any | None:
        """Get cached value if not expired."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() - entry.inserted_at > entry.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                logger.debug("Cache entry expired: %s/%s", self.name, key[:16])
                return None

            entry.hit_count += 1
            self._hits += 1
            logger.debug("Cache hit: %s/%s (hits: %d)", self.name, key[:16], entry.hit_count)
            return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Cache a value, replacing any existing entry."""
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        async with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                inserted_at=self._clock(),
                ttl_seconds=ttl,
            )
        logger.debug("Cached: %s/%s (TTL: %ss)", self.name, key[:16], ttl)

    async def invalidate(self, pattern: str) -> int:
        """Invalidate cache entries whose key matches a regex pattern."""
        regex = re.compile(pattern)
        async with self._lock:
            keys_to_delete = [k for k in self._entries if regex.search(k)]
            for key in keys_to_delete:
                del self._entries[key]

        logger.info("Invalidated %d %s cache entries matching: %s", len(keys_to_delete), self.name, pattern)
        return len(keys_to_delete)

    async def clear(self) -> None:
        """Clear all cache entries. Statistics are kept."""
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d %s cache entries", count, self.name)

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        lookups = self._hits + self._misses
        return CacheStats(
            name=self.name,
            size=len(self._entries),
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / lookups if lookups else 0.0,
        )

    def __len__(self) -> int:
        return len(self._entries)


class CacheManager:
    """
    Results cache and analysis cache behind one facade.

    Example:
        >>> cache = CacheManager()
        >>> cached = await cache.cached_search("配色工具", filters, lambda: engine.search("配色工具", filters))
        >>> cached.from_cache
        False
    """

    def __init__(
        self,
        results_ttl: float = 3600,
        analysis_ttl: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize caches.

        Args:
            results_ttl: TTL for search results in seconds
            analysis_ttl: TTL for query analyses in seconds
            clock: Monotonic time source shared by both caches
        """
        self.results = TTLCache("results", results_ttl, clock)
        self.analysis = TTLCache("analysis", analysis_ttl, clock)

    @staticmethod
    def generate_key(
        query: str,
        filters: BaseModel | dict[str, Any] | None = None,
        case_sensitive: bool = False,
    ) -> str:
        """
        Generate cache key from normalized query and canonical filters.

        Whitespace is always collapsed. Case is folded unless ``case_sensitive``;
        analyses keep the user's casing, so their keys must too.
        """
        normalized = " ".join(query.split())
        if not case_sensitive:
            normalized = normalized.lower()
        if isinstance(filters, BaseModel):
            filter_data: dict[str, Any] = filters.model_dump(mode="json", exclude_none=True)
        else:
            filter_data = filters or {}
        canonical = json.dumps(filter_data, sort_keys=True, ensure_ascii=False, default=str)
        return hashlib.sha256(f"{normalized}|{canonical}".encode()).hexdigest()[:32]

    async def cached_search(
        self,
        query: str,
        filters: SearchFilters | None,
        search_fn: Callable[[], Awaitable[list[SearchResult]]],
    ) -> CachedSearch:
        """
        Serve search results from cache or run the search and cache them.

        Args:
            query: Search text
            filters: Filters that take part in the key
            search_fn: Runs the actual search on a miss

        Returns:
            CachedSearch with the results and whether they were cached
        """
        start = time.perf_counter()
        key = self.generate_key(query, filters)

        cached = await self.results.get(key)
        if cached is not None:
            return CachedSearch(
                results=cached,
                from_cache=True,
                processing_time_ms=int((time.perf_counter() - start) * 1000),
            )

        # The lock is not held while searching; concurrent misses may both search
        results = await search_fn()
        await self.results.set(key, results)
        return CachedSearch(
            results=results,
            from_cache=False,
            processing_time_ms=int((time.perf_counter() - start) * 1000),
        )

    async def cached_analysis(
        self,
        query: str,
        context: SearchDimensions | None,
        analyze_fn: Callable[[], QueryAnalysis],
    ) -> QueryAnalysis:
        """Serve a query analysis from cache or compute and cache it."""
        key = self.generate_key(query, context, case_sensitive=True)
        cached = await self.analysis.get(key)
        if cached is not None:
            return cached
        analysis = analyze_fn()
        await self.analysis.set(key, analysis)
        return analysis

    async def clear(self) -> None:
        """Clear both caches (after an index rebuild)."""
        await self.results.clear()
        await self.analysis.clear()

    def stats(self) -> dict[str, CacheStats]:
        """Statistics per cache."""
        return {"results": self.results.stats(), "analysis": self.analysis.stats()}
