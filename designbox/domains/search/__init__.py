"""
Search Domain - Semantic and hybrid resource retrieval.

This domain handles:
- Resource embedding and cosine ranking (in-memory or FAISS-backed)
- Structured filtering (category, rating, exclusions)
- Score blending and match reasons
- Related-resource lookups
"""

from .contracts import SemanticIndex, VectorStore
from .hybrid_search import HybridSearchEngine
from .models import (
    HybridSearchOptions,
    IndexMetadata,
    IndexSyncSummary,
    SearchFilters,
    SearchResult,
    SemanticSearchOptions,
    VectorIndexEntry,
    VectorMatch,
)
from .semantic_search import (
    InMemorySemanticIndex,
    StoreBackedSemanticIndex,
    cosine_similarity,
    resource_to_text,
)

__all__ = [
    # Contracts
    "SemanticIndex",
    "VectorStore",
    # Models
    "SearchFilters",
    "SemanticSearchOptions",
    "HybridSearchOptions",
    "IndexMetadata",
    "IndexSyncSummary",
    "VectorIndexEntry",
    "VectorMatch",
    "SearchResult",
    # Implementation
    "InMemorySemanticIndex",
    "StoreBackedSemanticIndex",
    "HybridSearchEngine",
    "cosine_similarity",
    "resource_to_text",
]
