"""
Semantic Search Engine - Embedding similarity over the resource corpus.

Two index implementations share one interface:
- InMemorySemanticIndex: dict of entries, rebuilt wholesale
- StoreBackedSemanticIndex: delegates vectors to a VectorStore (FAISS on disk)

Both publish updates atomically: a search sees the old index or the new
one, never a partially built one.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np

from designbox.adapters.llm.contracts import EmbeddingProvider
from designbox.config.errors import ResourceNotIndexedError, SearchError
from designbox.domains.catalog.models import Resource

from .contracts import VectorStore
from .models import IndexSyncSummary, SemanticSearchOptions, VectorIndexEntry, VectorMatch

logger = logging.getLogger(__name__)

__all__ = [
    "InMemorySemanticIndex",
    "StoreBackedSemanticIndex",
    "content_hash",
    "cosine_similarity",
    "resource_to_text",
]


def resource_to_text(resource: Resource) -> str:
    """Text used to embed a resource."""
    return (
        f"{resource.name}. {resource.description}. "
        f"标签: {', '.join(resource.tags)}. 策展人笔记: {resource.curator_note}"
    )


def content_hash(resource: Resource) -> str:
    """Fingerprint of the embedded text; a change means the vector is stale."""
    return hashlib.sha256(resource_to_text(resource).encode("utf-8")).hexdigest()


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        ValueError: Vectors differ in length
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vectors must have the same length ({va.shape[0]} != {vb.shape[0]})")
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def _passes_filters(category: str, rating: float, options: SemanticSearchOptions) -> bool:
    if options.category_filter and category not in options.category_filter:
        return False
    if options.min_rating is not None and rating < options.min_rating:
        return False
    return True


async def _embed_resources(
    embedder: EmbeddingProvider,
    resources: list[Resource],
) -> list[list[float]]:
    """Embed resources in one batch call and check the provider kept count."""
    if not resources:
        return []
    embeddings = await embedder.embed_batch([resource_to_text(r) for r in resources])
    if len(embeddings) != len(resources):
        raise SearchError(
            f"Embedding provider returned {len(embeddings)} vectors for {len(resources)} resources",
            {"provider": getattr(embedder, "name", "")},
        )
    return embeddings


class InMemorySemanticIndex:
    """
    In-process semantic index.

    Example:
        >>> index = InMemorySemanticIndex(embedder)
        >>> await index.build_index(resources)
        >>> matches = await index.search("免费配色工具", SemanticSearchOptions(limit=5))
    """

    def __init__(self, embedder: EmbeddingProvider) -> None:
        """
        Initialize index.

        Args:
            embedder: Provider used for resource and query embeddings
        """
        self._embedder = embedder
        self._entries: dict[str, VectorIndexEntry] = {}
        self._resources: dict[str, Resource] = {}
        self._build_lock = asyncio.Lock()

    async def build_index(self, resources: list[Resource]) -> None:
        """Embed all resources and replace the index."""
        logger.info("Building vector index for %d resources", len(resources))
        async with self._build_lock:
            embeddings = await _embed_resources(self._embedder, resources)
            entries = {
                r.id: VectorIndexEntry.for_resource(r, e) for r, e in zip(resources, embeddings)
            }
            resource_map = {r.id: r for r in resources}
            self._entries, self._resources = entries, resource_map
        logger.info("Vector index built with %d entries", len(entries))

    async def upsert(self, resources: list[Resource]) -> None:
        """Re-embed the given resources; others keep their embeddings."""
        if not resources:
            return
        async with self._build_lock:
            embeddings = await _embed_resources(self._embedder, resources)
            entries = dict(self._entries)
            resource_map = dict(self._resources)
            for resource, embedding in zip(resources, embeddings):
                entries[resource.id] = VectorIndexEntry.for_resource(resource, embedding)
                resource_map[resource.id] = resource
            self._entries, self._resources = entries, resource_map
        logger.debug("Upserted %d resources into vector index", len(resources))

    async def search(
        self,
        query: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """
        Rank indexed resources against a query.

        Args:
            query: Search text (embedded once)
            options: Limit, similarity floor and pre-scoring filters

        Returns:
            Matches best first; ties keep corpus order
        """
        options = options or SemanticSearchOptions()
        entries, resources = self._entries, self._resources
        if not entries:
            return []

        query_embedding = await self._embedder.embed(query)
        matches = []
        for resource_id, entry in entries.items():
            if not _passes_filters(entry.metadata.category, entry.metadata.rating, options):
                continue
            similarity = cosine_similarity(query_embedding, entry.embedding)
            if similarity >= options.min_similarity:
                matches.append(
                    VectorMatch(
                        resource_id=resource_id,
                        similarity=similarity,
                        resource=resources[resource_id],
                    )
                )

        matches.sort(key=lambda m: -m.similarity)
        return matches[: options.limit]

    async def find_similar(
        self,
        resource_id: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """
        Rank other resources by similarity to an indexed one.

        Raises:
            ResourceNotIndexedError: Resource id is not in the index
        """
        options = options or SemanticSearchOptions(limit=5)
        entries, resources = self._entries, self._resources
        target = entries.get(resource_id)
        if target is None:
            raise ResourceNotIndexedError(resource_id)

        matches = []
        for other_id, entry in entries.items():
            if other_id == resource_id:
                continue
            if not _passes_filters(entry.metadata.category, entry.metadata.rating, options):
                continue
            similarity = cosine_similarity(target.embedding, entry.embedding)
            if similarity >= options.min_similarity:
                matches.append(
                    VectorMatch(resource_id=other_id, similarity=similarity, resource=resources[other_id])
                )

        matches.sort(key=lambda m: -m.similarity)
        return matches[: options.limit]

    @property
    def size(self) -> int:
        return len(self._entries)


class StoreBackedSemanticIndex:
    """
    Semantic index whose vectors live in a persisted VectorStore.

    Example:
        >>> index = StoreBackedSemanticIndex(embedder, FAISSVectorStore())
        >>> await index.build_index(resources)
        >>> await index.save("data/indices/faiss")
    """

    def __init__(self, embedder: EmbeddingProvider, store: VectorStore) -> None:
        """
        Initialize index.

        Args:
            embedder: Provider used for resource and query embeddings
            store: Vector store holding embeddings and filter metadata
        """
        self._embedder = embedder
        self._store = store
        self._resources: dict[str, Resource] = {}
        self._build_lock = asyncio.Lock()

    @staticmethod
    def _metadata(resource: Resource) -> dict[str, Any]:
        return {
            "resource_id": resource.id,
            "category": resource.category_id,
            "rating": resource.rating.overall,
            "tags": list(resource.tags),
            "last_updated": resource.created_at.isoformat() if resource.created_at else None,
            "content_hash": content_hash(resource),
        }

    async def build_index(self, resources: list[Resource]) -> None:
        """Embed all resources and replace the store contents."""
        logger.info("Building persisted vector index for %d resources", len(resources))
        async with self._build_lock:
            embeddings = await _embed_resources(self._embedder, resources)
            await self._store.replace(
                np.asarray(embeddings, dtype="float32"),
                [self._metadata(r) for r in resources],
            )
            self._resources = {r.id: r for r in resources}

    async def upsert(self, resources: list[Resource]) -> None:
        """Re-embed the given resources and upsert them into the store."""
        if not resources:
            return
        async with self._build_lock:
            embeddings = await _embed_resources(self._embedder, resources)
            await self._store.upsert(
                np.asarray(embeddings, dtype="float32"),
                [self._metadata(r) for r in resources],
            )
            self._resources = {**self._resources, **{r.id: r for r in resources}}

    def _to_matches(self, hits: list[dict[str, Any]]) -> list[VectorMatch]:
        matches = []
        for hit in hits:
            resource = self._resources.get(hit["metadata"]["resource_id"])
            if resource is None:
                logger.warning("Indexed resource %s missing from corpus", hit["metadata"]["resource_id"])
                continue
            matches.append(VectorMatch(resource_id=resource.id, similarity=hit["score"], resource=resource))
        return matches

    async def search(
        self,
        query: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """Rank stored resources against a query."""
        options = options or SemanticSearchOptions()
        if self._store.size == 0:
            return []

        query_embedding = await self._embedder.embed(query)
        hits = await self._store.search(
            np.asarray(query_embedding, dtype="float32"),
            k=options.limit,
            predicate=lambda meta: _passes_filters(meta["category"], meta["rating"], options),
            min_score=options.min_similarity,
        )
        return self._to_matches(hits)

    async def find_similar(
        self,
        resource_id: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """
        Rank other resources by similarity to a stored one.

        Raises:
            ResourceNotIndexedError: Resource id is not in the store
        """
        options = options or SemanticSearchOptions(limit=5)
        vector = self._store.get_vector(resource_id)
        if vector is None:
            raise ResourceNotIndexedError(resource_id)

        hits = await self._store.search(
            vector,
            k=options.limit,
            predicate=lambda meta: meta["resource_id"] != resource_id
            and _passes_filters(meta["category"], meta["rating"], options),
            min_score=options.min_similarity,
        )
        return self._to_matches(hits)

    async def save(self, path: str | Path) -> None:
        await self._store.save(path)

    async def load(self, path: str | Path, resources: list[Resource]) -> IndexSyncSummary:
        """
        Load a persisted store and reconcile it with the current corpus.

        Args:
            path: Directory written by ``save``
            resources: Current corpus

        Returns:
            What the reconciliation changed; save again when ``changed``
        """
        async with self._build_lock:
            await self._store.load(path)
        return await self.sync(resources)

    async def sync(self, resources: list[Resource]) -> IndexSyncSummary:
        """
        Embed new or edited resources and drop ones no longer in the corpus.

        A resource counts as edited when its embedded text hashes differently
        from the stored ``content_hash``. Unchanged vectors are kept as is.
        """
        async with self._build_lock:
            stored = {meta["resource_id"]: meta.get("content_hash") for meta in self._store.metadata}
            current = {r.id: r for r in resources}

            added = [r for r in resources if r.id not in stored]
            updated = [r for r in resources if r.id in stored and stored[r.id] != content_hash(r)]
            removed = [resource_id for resource_id in stored if resource_id not in current]

            stale = added + updated
            if stale:
                embeddings = await _embed_resources(self._embedder, stale)
                await self._store.upsert(
                    np.asarray(embeddings, dtype="float32"),
                    [self._metadata(r) for r in stale],
                )
            if removed:
                await self._store.remove(removed)
            self._resources = current

        summary = IndexSyncSummary(
            added=[r.id for r in added],
            updated=[r.id for r in updated],
            removed=removed,
            unchanged=len(resources) - len(stale),
        )
        logger.info(
            "Index synced: added=%d updated=%d removed=%d unchanged=%d",
            len(summary.added),
            len(summary.updated),
            len(summary.removed),
            summary.unchanged,
        )
        return summary

    @property
    def size(self) -> int:
        return self._store.size
