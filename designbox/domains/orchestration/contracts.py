"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable

from designbox.domains.search.models import SearchFilters, SearchResult

from .models import CacheStats, RAGOptions, RAGResponse, RAGStreamChunk


@runtime_checkable
class ResponseCache(Protocol):
    """Contract for TTL caches."""

    async def get(self, key: str) -> Any | None:
        """Get a live cached value, or None."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Cache a value."""
        ...

    async def invalidate(self, pattern: str) -> int:
        """Invalidate entries whose key matches a regex pattern."""
        ...

    def stats(self) -> CacheStats:
        """Hit/miss statistics."""
        ...


@runtime_checkable
class RetrievalOrchestrator(Protocol):
    """Contract for the conversational retrieval pipeline."""

    async def respond(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> RAGResponse:
        """
        Run one turn: clarify, or search and answer.

        Args:
            query: Raw user text
            filters: Structured search filters
            options: Generation options and session context

        Returns:
            RAGResponse; failures degrade to an apology instead of raising
        """
        ...

    def respond_stream(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> AsyncIterator[RAGStreamChunk]:
        """Streamed variant of ``respond``."""
        ...

    async def handle_clarification(
        self,
        original_query: str,
        answer: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> RAGResponse:
        """Refine the original query with a clarification answer and respond."""
        ...

    async def similar_resources(self, resource_id: str, limit: int = 5) -> list[SearchResult]:
        """Resources related to an indexed one."""
        ...
