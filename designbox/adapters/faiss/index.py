"""
FAISS Vector Store - Persisted cosine-similarity index over resource embeddings.

Features:
- Async-compatible operations
- Index persistence (index file + JSON metadata)
- Build-then-publish updates: readers never see a half-built index
- Metadata filtering on search
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import faiss
import numpy as np

logger = logging.getLogger(__name__)

__all__ = ["FAISSVectorStore"]

INDEX_FILE = "faiss_index.bin"
METADATA_FILE = "metadata.json"


class FAISSVectorStore:
    """
    Exact inner-product FAISS index over L2-normalized vectors.

    Each vector carries a metadata dict with at least ``resource_id``.

    Example:
        >>> store = FAISSVectorStore()
        >>> await store.replace(embeddings, [{"resource_id": "r1", "category": "color"}])
        >>> hits = await store.search(query_vector, k=10)
    """

    def __init__(self, dimension: int | None = None) -> None:
        """
        Initialize store.

        Args:
            dimension: Vector dimension; inferred from the first build when None
        """
        self.dimension = dimension
        self._index: faiss.Index | None = None
        self._metadata: list[dict[str, Any]] = []
        self._write_lock = asyncio.Lock()

    @staticmethod
    def _prepare(vectors: np.ndarray) -> np.ndarray:
        """Convert to contiguous float32 and normalize rows in place."""
        if vectors.ndim == 1:
            vectors = vectors.reshape(1, -1)
        prepared = np.ascontiguousarray(vectors.astype("float32"))
        faiss.normalize_L2(prepared)
        return prepared

    def _build(self, vectors: np.ndarray, metadata: list[dict[str, Any]]) -> faiss.Index:
        if len(vectors) != len(metadata):
            raise ValueError(f"Got {len(vectors)} vectors for {len(metadata)} metadata entries")
        dimension = vectors.shape[1] if len(vectors) else (self.dimension or 0)
        if self.dimension is not None and len(vectors) and dimension != self.dimension:
            raise ValueError(f"Vector dimension {dimension} does not match index dimension {self.dimension}")
        index = faiss.IndexFlatIP(dimension)
        if len(vectors):
            index.add(self._prepare(vectors))
        return index

    async def replace(self, vectors: np.ndarray, metadata: list[dict[str, Any]]) -> None:
        """
        Replace the whole index.

        Args:
            vectors: Array of shape (n, dimension)
            metadata: One dict per vector, each with a ``resource_id``
        """
        async with self._write_lock:
            if not metadata:
                self._index, self._metadata = None, []
                logger.info("FAISS index cleared")
                return
            index = await asyncio.to_thread(self._build, vectors, metadata)
            self._index, self._metadata = index, list(metadata)
            self.dimension = index.d
        logger.info("FAISS index rebuilt: %d vectors, dimension=%d", index.ntotal, index.d)

    def _rows_excluding(self, resource_ids: set[str]) -> tuple[list[np.ndarray], list[dict[str, Any]]]:
        """Stored rows and metadata whose ``resource_id`` is not in ``resource_ids``."""
        kept_rows: list[np.ndarray] = []
        kept_meta: list[dict[str, Any]] = []
        if self._index is not None and self._index.ntotal:
            existing = self._index.reconstruct_n(0, self._index.ntotal)
            for row, meta in zip(existing, self._metadata):
                if meta["resource_id"] not in resource_ids:
                    kept_rows.append(row)
                    kept_meta.append(meta)
        return kept_rows, kept_meta

    async def upsert(self, vectors: np.ndarray, metadata: list[dict[str, Any]]) -> None:
        """Insert or overwrite vectors by ``resource_id``; rebuilds and publishes a new index."""
        if not metadata:
            return
        async with self._write_lock:
            kept_rows, kept_meta = self._rows_excluding({meta["resource_id"] for meta in metadata})

            new_vectors = self._prepare(np.asarray(vectors))
            if kept_rows:
                all_vectors = np.vstack([np.array(kept_rows, dtype="float32"), new_vectors])
            else:
                all_vectors = new_vectors
            all_meta = kept_meta + list(metadata)

            index = await asyncio.to_thread(self._build, all_vectors, all_meta)
            self._index, self._metadata = index, all_meta
            self.dimension = index.d
        logger.debug("Upserted %d vectors (total %d)", len(metadata), index.ntotal)

    async def remove(self, resource_ids: list[str]) -> int:
        """
        Drop vectors by ``resource_id``; rebuilds and publishes a new index.

        Returns:
            Number of vectors removed
        """
        if not resource_ids or self._index is None:
            return 0
        async with self._write_lock:
            before = self._index.ntotal
            kept_rows, kept_meta = self._rows_excluding(set(resource_ids))
            if len(kept_meta) == before:
                return 0

            dimension = self._index.d
            vectors = np.array(kept_rows, dtype="float32").reshape(-1, dimension)
            index = await asyncio.to_thread(self._build, vectors, kept_meta)
            self._index, self._metadata = index, kept_meta
        logger.debug("Removed %d vectors (total %d)", before - index.ntotal, index.ntotal)
        return before - index.ntotal

    async def search(
        self,
        query_vector: np.ndarray,
        k: int = 10,
        predicate: Callable[[dict[str, Any]], bool] | None = None,
        min_score: float | None = None,
    ) -> list[dict[str, Any]]:
        """
        Search for similar vectors.

        Args:
            query_vector: Query vector of shape (dimension,) or (1, dimension)
            k: Number of results
            predicate: Metadata filter applied before truncation
            min_score: Drop hits scoring below this cosine similarity

        Returns:
            List of dicts with 'score', 'index' and 'metadata', best first,
            ties in insertion order
        """
        index, metadata = self._index, self._metadata
        if index is None or index.ntotal == 0 or k <= 0:
            return []

        query = self._prepare(np.asarray(query_vector))
        if query.shape[1] != index.d:
            raise ValueError(f"Query dimension {query.shape[1]} does not match index dimension {index.d}")

        # Score everything; filters run on metadata so the candidate pool must be complete
        scores, indices = await asyncio.to_thread(index.search, query, index.ntotal)

        hits = []
        for score, idx in zip(scores[0], indices[0]):
            if idx < 0 or idx >= len(metadata):
                continue
            meta = metadata[idx]
            if predicate is not None and not predicate(meta):
                continue
            if min_score is not None and score < min_score:
                continue
            hits.append({"score": float(score), "index": int(idx), "metadata": meta})

        hits.sort(key=lambda hit: (-hit["score"], hit["index"]))
        return hits[:k]

    def get_vector(self, resource_id: str) -> np.ndarray | None:
        """Return the stored (normalized) vector for a resource, if indexed."""
        index, metadata = self._index, self._metadata
        if index is None:
            return None
        for position, meta in enumerate(metadata):
            if meta["resource_id"] == resource_id:
                return index.reconstruct(position)
        return None

    async def save(self, path: str | Path) -> None:
        """
        Save index to disk.

        Args:
            path: Directory to save index
        """
        if self._index is None:
            raise ValueError("Cannot save an index that was never built")

        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(faiss.write_index, self._index, str(path / INDEX_FILE))
        data = {"dimension": self.dimension, "metadata": self._metadata}
        await asyncio.to_thread(self._write_json, path / METADATA_FILE, data)

        logger.info("Index saved to %s (%d vectors)", path, self._index.ntotal)

    @staticmethod
    def _write_json(path: Path, data: dict[str, Any]) -> None:
        """Write JSON file (sync helper for to_thread)."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    async def load(self, path: str | Path) -> None:
        """
        Load index from disk.

        Args:
            path: Directory containing saved index

        Raises:
            FileNotFoundError: Index or metadata file is missing
        """
        path = Path(path)
        index = await asyncio.to_thread(faiss.read_index, str(path / INDEX_FILE))
        data = await asyncio.to_thread(self._read_json, path / METADATA_FILE)

        async with self._write_lock:
            self._index, self._metadata = index, data["metadata"]
            self.dimension = data["dimension"]

        logger.info("Index loaded from %s (%d vectors)", path, index.ntotal)

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        """Read JSON file (sync helper for to_thread)."""
        with open(path, encoding="utf-8") as f:
            result: dict[str, Any] = json.load(f)
            return result

    @property
    def metadata(self) -> list[dict[str, Any]]:
        """Metadata of every stored vector, in index order."""
        return list(self._metadata)

    @property
    def size(self) -> int:
        """Get number of vectors in index."""
        return self._index.ntotal if self._index else 0
