"""
Local Adapter - In-process embedding models.
"""

from .embedder import SentenceTransformerEmbedder

__all__ = ["SentenceTransformerEmbedder"]
