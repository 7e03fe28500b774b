"""
JSON Resource Catalog - Loads the curated corpus exported by the admin layer.

Accepts either a bare JSON array of resources or an object with a
``resources`` array. Field names may be camelCase or snake_case.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from designbox.config.errors import CatalogError

from .models import Resource

logger = logging.getLogger(__name__)

__all__ = ["JsonResourceCatalog", "InMemoryResourceCatalog"]


class JsonResourceCatalog:
    """
    Resource catalog backed by a JSON export.

    Example:
        >>> catalog = JsonResourceCatalog("data/resources.json")
        >>> resources = await catalog.load()
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load(self) -> list[Resource]:
        """
        Load and validate all resources.

        Returns:
            Resources in file order

        Raises:
            CatalogError: File missing, not JSON, or a record fails validation
        """
        if not self.path.exists():
            raise CatalogError(f"Resource corpus not found: {self.path}", {"path": str(self.path)})

        try:
            data = await asyncio.to_thread(self._read_json, self.path)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to read resource corpus: {e}", {"path": str(self.path)}) from e

        records = data.get("resources", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise CatalogError("Resource corpus must be a JSON array", {"path": str(self.path)})

        resources: list[Resource] = []
        seen: set[str] = set()
        for position, record in enumerate(records):
            try:
                resource = Resource.model_validate(record)
            except ValidationError as e:
                raise CatalogError(
                    f"Invalid resource at position {position}",
                    {"path": str(self.path), "errors": e.errors(include_url=False)},
                ) from e
            if resource.id in seen:
                logger.warning("Duplicate resource id %s in corpus, keeping first", resource.id)
                continue
            seen.add(resource.id)
            resources.append(resource)

        logger.info("Loaded %d resources from %s", len(resources), self.path)
        return resources

    @staticmethod
    def _read_json(path: Path) -> Any:
        """Read JSON file (sync helper for to_thread)."""
        with open(path, encoding="utf-8") as f:
            return json.load(f)


class InMemoryResourceCatalog:
    """Catalog over an already materialized list (tests, embedding callers)."""

    def __init__(self, resources: list[Resource]) -> None:
        self._resources = list(resources)

    async def load(self) -> list[Resource]:
        return list(self._resources)
