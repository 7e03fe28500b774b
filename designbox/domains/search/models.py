"""
Search Models - Data types for semantic and hybrid search.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from designbox.domains.catalog.models import Resource


class SearchFilters(BaseModel):
    """Caller-supplied structured filters."""

    categories: list[str] | None = None
    min_rating: float | None = Field(default=None, ge=0.0, le=5.0)
    exclude_ids: list[str] | None = None
    max_results: int | None = Field(default=None, ge=1, le=50)

    model_config = {"frozen": True}


class SemanticSearchOptions(BaseModel):
    """Options for a pure vector search."""

    limit: int = Field(default=10, ge=1)
    min_similarity: float = Field(default=0.0, ge=-1.0, le=1.0)
    category_filter: list[str] | None = None
    min_rating: float | None = Field(default=None, ge=0.0, le=5.0)

    model_config = {"frozen": True}


class HybridSearchOptions(BaseModel):
    """Options for a hybrid search. Unset weights fall back to the engine's."""

    max_results: int = Field(default=10, ge=1, le=50)
    min_similarity: float = Field(default=0.0, ge=-1.0, le=1.0)
    vector_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    structured_weight: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = {"frozen": True}


class IndexMetadata(BaseModel):
    """Filterable facets stored beside each embedding."""

    category: str
    rating: float = 0.0
    tags: list[str] = Field(default_factory=list)
    last_updated: datetime | None = None


class VectorIndexEntry(BaseModel):
    """One embedded resource."""

    resource_id: str
    embedding: list[float]
    metadata: IndexMetadata

    @classmethod
    def for_resource(cls, resource: Resource, embedding: list[float]) -> VectorIndexEntry:
        return cls(
            resource_id=resource.id,
            embedding=embedding,
            metadata=IndexMetadata(
                category=resource.category_id,
                rating=resource.rating.overall,
                tags=list(resource.tags),
                last_updated=resource.created_at,
            ),
        )


class IndexSyncSummary(BaseModel):
    """Outcome of reconciling a persisted index with the current corpus."""

    added: list[str] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


class VectorMatch(BaseModel):
    """Raw semantic match (cosine similarity, before blending)."""

    resource_id: str
    similarity: float
    resource: Resource


class SearchResult(BaseModel):
    """Ranked result handed to the orchestrator and the interfaces."""

    resource: Resource
    similarity: float  # Blended score once it leaves the hybrid engine
    match_reason: str = ""
