"""
Bootstrap - Build every service once from settings.

The interfaces (API lifespan, CLI commands) call ``build_services`` and hand
the resulting objects to the code that needs them; nothing is constructed
lazily at import time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from designbox.adapters.faiss import FAISSVectorStore
from designbox.adapters.faiss.index import INDEX_FILE
from designbox.adapters.llm import (
    EmbeddingProvider,
    LLMService,
    ProviderCapability,
    ProviderRegistry,
    build_registry,
)
from designbox.config.settings import Settings, get_settings
from designbox.domains.analysis import QueryAnalyzer
from designbox.domains.catalog import JsonResourceCatalog, Resource, ResourceCatalog
from designbox.domains.guidance import GuidedQuestioningEngine
from designbox.domains.orchestration import CacheManager, RAGEngine
from designbox.domains.search import (
    HybridSearchEngine,
    InMemorySemanticIndex,
    SemanticIndex,
    StoreBackedSemanticIndex,
)

logger = logging.getLogger(__name__)

__all__ = ["Services", "build_services", "build_index"]

INDEX_BACKENDS = ("memory", "faiss")


@dataclass
class Services:
    """Fully wired application services."""

    settings: Settings
    registry: ProviderRegistry
    chat: LLMService
    embedder: EmbeddingProvider
    resources: list[Resource]
    index: SemanticIndex
    hybrid: HybridSearchEngine
    cache: CacheManager
    engine: RAGEngine

    async def aclose(self) -> None:
        """Release provider network clients."""
        await self.registry.close()


async def build_index(
    settings: Settings,
    embedder: EmbeddingProvider,
    resources: list[Resource],
    rebuild: bool = False,
) -> SemanticIndex:
    """
    Build or load the semantic index for the configured backend.

    Args:
        settings: Application settings (``index_backend``, ``index_path``)
        embedder: Embedding provider
        resources: Current corpus
        rebuild: For the faiss backend, re-embed even when a saved index exists

    Returns:
        Ready-to-query index

    Raises:
        ValueError: Unknown index backend
    """
    if settings.index_backend == "memory":
        index = InMemorySemanticIndex(embedder)
        await index.build_index(resources)
        return index

    if settings.index_backend == "faiss":
        store_index = StoreBackedSemanticIndex(embedder, FAISSVectorStore())
        path = Path(settings.index_path)
        if not rebuild and (path / INDEX_FILE).exists():
            summary = await store_index.load(path, resources)
            if summary.changed:
                await store_index.save(path)
        else:
            await store_index.build_index(resources)
            await store_index.save(path)
        return store_index

    raise ValueError(f"Unknown index backend: {settings.index_backend} (expected one of {INDEX_BACKENDS})")


async def build_services(
    settings: Settings | None = None,
    registry: ProviderRegistry | None = None,
    catalog: ResourceCatalog | None = None,
) -> Services:
    """
    Construct providers, corpus, index, search, caches and the RAG engine.

    Args:
        settings: Application settings (defaults to ``get_settings()``)
        registry: Pre-built provider registry (defaults to one built from settings)
        catalog: Resource catalog (defaults to the JSON corpus at ``corpus_path``)

    Raises:
        CatalogError: Corpus could not be loaded
        ProviderError: Embedding provider failed while building the index
    """
    settings = settings or get_settings()
    registry = registry or build_registry(settings)

    chat = LLMService(
        registry.select(
            ProviderCapability.CHAT,
            [settings.llm_provider, *settings.fallback_providers],
        )
    )
    embedder = registry.get(settings.embedding_provider)

    catalog = catalog or JsonResourceCatalog(settings.corpus_path)
    resources = await catalog.load()
    index = await build_index(settings, embedder, resources)

    hybrid = HybridSearchEngine(
        index,
        resources,
        vector_weight=settings.vector_weight,
        structured_weight=settings.structured_weight,
        strong_match_threshold=settings.strong_match_threshold,
        related_match_threshold=settings.related_match_threshold,
        top_rating_threshold=settings.top_rating_threshold,
        similar_min_similarity=settings.similar_min_similarity,
    )
    cache = CacheManager(
        results_ttl=settings.results_cache_ttl_seconds,
        analysis_ttl=settings.analysis_cache_ttl_seconds,
    )
    engine = RAGEngine(
        chat,
        hybrid,
        analyzer=QueryAnalyzer(settings.query_max_length),
        guidance=GuidedQuestioningEngine(),
        cache=cache,
        max_results=settings.default_max_results,
        min_similarity=settings.rag_min_similarity,
        history_window=settings.history_window,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
    )

    logger.info(
        "Services ready: %d resources, index=%s (%d entries), chat=%s",
        len(resources),
        settings.index_backend,
        index.size,
        chat.provider_names,
    )
    return Services(
        settings=settings,
        registry=registry,
        chat=chat,
        embedder=embedder,
        resources=resources,
        index=index,
        hybrid=hybrid,
        cache=cache,
        engine=engine,
    )
