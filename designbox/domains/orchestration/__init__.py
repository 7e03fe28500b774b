"""
Orchestration Domain - Conversational turn pipeline and caching.

This domain handles:
- The clarify / search / no-results / respond state machine
- Grounding context and prompt construction
- Batch and streamed answers with graceful degradation
- TTL caches for search results and query analysis
"""

from .cache import CacheManager, TTLCache
from .contracts import ResponseCache, RetrievalOrchestrator
from .models import (
    CachedSearch,
    CacheEntry,
    CacheStats,
    PipelineState,
    PipelineStep,
    RAGOptions,
    RAGResponse,
    RAGStreamChunk,
)
from .rag_engine import RAGEngine

__all__ = [
    # Contracts
    "ResponseCache",
    "RetrievalOrchestrator",
    # Models
    "PipelineState",
    "PipelineStep",
    "CacheEntry",
    "CacheStats",
    "CachedSearch",
    "RAGOptions",
    "RAGResponse",
    "RAGStreamChunk",
    # Implementations
    "TTLCache",
    "CacheManager",
    "RAGEngine",
]
