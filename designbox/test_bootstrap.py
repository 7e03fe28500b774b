"""
Tests for service construction.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from designbox.adapters.llm import ProviderRegistry
from designbox.config.errors import CatalogError
from designbox.config.settings import Settings
from designbox.domains.catalog import InMemoryResourceCatalog, JsonResourceCatalog, Resource
from designbox.domains.search import InMemorySemanticIndex, SemanticSearchOptions, StoreBackedSemanticIndex

from .bootstrap import build_index, build_services


def make_settings(**overrides) -> Settings:
    values = {
        "llm_provider": "scripted",
        "embedding_provider": "keyword",
        "fallback_providers": [],
        "default_max_results": 3,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def registry(chat_provider, embedder) -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(chat_provider)
    registry.register(embedder)
    return registry


async def test_build_services_in_memory(registry, sample_resources: list[Resource]) -> None:
    """Test the default backend wires a working engine."""
    services = await build_services(
        make_settings(),
        registry=registry,
        catalog=InMemoryResourceCatalog(sample_resources),
    )

    assert isinstance(services.index, InMemorySemanticIndex)
    assert services.index.size == len(sample_resources)
    assert services.chat.provider_names == ["scripted"]
    assert services.embedder.name == "keyword"

    response = await services.engine.respond("红色 3D 医疗 图标")
    assert len(response.search_results) == 3
    assert response.search_results[0].resource.id == "medical-icons"

    await services.aclose()


async def test_build_index_faiss_saves_then_loads(
    embedder,
    sample_resources: list[Resource],
    tmp_path: Path,
) -> None:
    """Test the faiss backend persists on first build and reloads afterwards."""
    settings = make_settings(index_backend="faiss", index_path=tmp_path / "faiss")

    first = await build_index(settings, embedder, sample_resources)
    assert isinstance(first, StoreBackedSemanticIndex)
    assert (tmp_path / "faiss" / "faiss_index.bin").exists()
    assert embedder.batch_calls == 1

    second = await build_index(settings, embedder, sample_resources)
    assert second.size == len(sample_resources)
    assert embedder.batch_calls == 1

    await build_index(settings, embedder, sample_resources, rebuild=True)
    assert embedder.batch_calls == 2


async def test_build_index_faiss_syncs_saved_index_with_corpus(
    embedder,
    sample_resources: list[Resource],
    tmp_path: Path,
) -> None:
    """Test a saved index picks up resources added to the corpus after it was written."""
    settings = make_settings(index_backend="faiss", index_path=tmp_path / "faiss")
    await build_index(settings, embedder, sample_resources[:-1])

    index = await build_index(settings, embedder, sample_resources)
    assert index.size == len(sample_resources)
    assert embedder.batch_calls == 2
    matches = await index.search("灵感", SemanticSearchOptions(limit=1))
    assert [m.resource_id for m in matches] == ["dribbble"]

    # The reconciled index was saved, so the next start embeds nothing
    again = await build_index(settings, embedder, sample_resources)
    assert again.size == len(sample_resources)
    assert embedder.batch_calls == 2


async def test_build_index_unknown_backend(embedder, sample_resources: list[Resource]) -> None:
    """Test an unknown backend is rejected."""
    with pytest.raises(ValueError):
        await build_index(make_settings(index_backend="redis"), embedder, sample_resources)


async def test_build_services_missing_corpus(registry, tmp_path: Path) -> None:
    """Test a missing corpus surfaces as a catalog error."""
    with pytest.raises(CatalogError):
        await build_services(
            make_settings(),
            registry=registry,
            catalog=JsonResourceCatalog(tmp_path / "absent.json"),
        )
