"""
Catalog Contracts - Interfaces for the resource corpus.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Resource


@runtime_checkable
class ResourceCatalog(Protocol):
    """Contract for read-only access to the curated resource corpus."""

    async def load(self) -> list[Resource]:
        """Load every published resource in stable corpus order."""
        ...
