"""
FAISS Adapter - Persisted vector index.
"""

from .index import FAISSVectorStore

__all__ = ["FAISSVectorStore"]
