"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np

from designbox.domains.catalog.models import Resource

from .models import SemanticSearchOptions, VectorMatch


@runtime_checkable
class SemanticIndex(Protocol):
    """Contract for embedding-backed resource indices."""

    async def build_index(self, resources: list[Resource]) -> None:
        """Embed every resource and publish a fresh index."""
        ...

    async def upsert(self, resources: list[Resource]) -> None:
        """Re-embed the given resources and publish the updated index."""
        ...

    async def search(
        self,
        query: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """Rank indexed resources by cosine similarity to the query."""
        ...

    async def find_similar(
        self,
        resource_id: str,
        options: SemanticSearchOptions | None = None,
    ) -> list[VectorMatch]:
        """Rank other resources by similarity to an indexed one."""
        ...

    @property
    def size(self) -> int:
        """Number of indexed resources."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    """Contract for persisted vector stores (FAISS)."""

    async def replace(self, vectors: np.ndarray, metadata: list[dict[str, Any]]) -> None:
        ...

    async def upsert(self, vectors: np.ndarray, metadata: list[dict[str, Any]]) -> None:
        ...

    async def remove(self, resource_ids: list[str]) -> int:
        ...

    async def search(
        self,
        query_vector: np.ndarray,
        k: int = 10,
        predicate: Callable[[dict[str, Any]], bool] | None = None,
        min_score: float | None = None,
    ) -> list[dict[str, Any]]:
        ...

    def get_vector(self, resource_id: str) -> np.ndarray | None:
        ...

    async def save(self, path: str | Path) -> None:
        ...

    async def load(self, path: str | Path) -> None:
        ...

    @property
    def metadata(self) -> list[dict[str, Any]]:
        ...

    @property
    def size(self) -> int:
        ...
