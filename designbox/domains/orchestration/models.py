"""
Orchestration Models - Data types for the retrieval pipeline and caches.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from designbox.adapters.llm.models import ChatMessage
from designbox.domains.analysis.models import QueryAnalysis, SearchDimensions
from designbox.domains.guidance.models import ClarificationQuestion
from designbox.domains.search.models import SearchResult


class PipelineState(str, Enum):
    """States of one conversational turn."""

    START = "start"
    ANALYZING = "analyzing"
    CLARIFYING = "clarifying"
    SEARCHING = "searching"
    NO_RESULTS = "no_results"
    RESPONDING = "responding"
    DONE = "done"
    FAILED = "failed"


class PipelineStep(BaseModel):
    """Single step in a pipeline execution."""

    name: str
    status: str  # completed, failed
    duration_ms: float = 0.0
    error: str | None = None


class CacheEntry(BaseModel):
    """Cached value with its insertion time on the cache clock."""

    key: str
    value: Any
    inserted_at: float
    ttl_seconds: float
    hit_count: int = 0


class CacheStats(BaseModel):
    """Hit/miss accounting for one cache."""

    name: str
    size: int
    hits: int
    misses: int
    hit_rate: float


class CachedSearch(BaseModel):
    """Search results plus where they came from."""

    results: list[SearchResult] = Field(default_factory=list)
    from_cache: bool = False
    processing_time_ms: int = 0


class RAGOptions(BaseModel):
    """Per-turn generation options and session context."""

    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    conversation_history: list[ChatMessage] = Field(default_factory=list)
    # Dimensions carried over from earlier turns of the session
    session_dimensions: SearchDimensions | None = None


class RAGResponse(BaseModel):
    """Outcome of one non-streamed turn."""

    content: str
    search_results: list[SearchResult] = Field(default_factory=list)
    processing_time_ms: int = 0
    needs_clarification: bool = False
    clarification_questions: list[ClarificationQuestion] | None = None
    analysis: QueryAnalysis | None = None
    suggested_queries: list[str] = Field(default_factory=list)
    from_cache: bool = False
    state: PipelineState = PipelineState.DONE
    steps: list[PipelineStep] = Field(default_factory=list)


class RAGStreamChunk(BaseModel):
    """One event of a streamed turn. The last event has is_complete=True."""

    chunk: str = ""
    search_results: list[SearchResult] | None = None
    needs_clarification: bool | None = None
    clarification_questions: list[ClarificationQuestion] | None = None
    suggested_queries: list[str] | None = None
    is_complete: bool = False
