"""
Tests for resource models and catalog loading.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from designbox.config.errors import CatalogError, ErrorCode

from .contracts import ResourceCatalog
from .models import Resource
from .repository import InMemoryResourceCatalog, JsonResourceCatalog

RECORD = {
    "id": "coolors",
    "name": "Coolors",
    "url": "https://coolors.co",
    "description": "快速生成配色方案",
    "categoryId": "color",
    "tags": ["配色", "免费"],
    "curatorRating": {"overall": 4.8, "usability": 4.9, "aesthetics": 4.7, "updateFrequency": 4.5, "freeLevel": 4.0},
    "curatorNote": "新手友好",
    "isFeatured": True,
    "createdAt": "2024-01-15T08:00:00Z",
    "viewCount": 120,
    "favoriteCount": 30,
}


def write_corpus(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "resources.json"
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


# --- Model Tests ---


def test_resource_accepts_camel_case() -> None:
    """Test camelCase export fields map onto the model."""
    resource = Resource.model_validate(RECORD)
    assert resource.category_id == "color"
    assert resource.rating.overall == 4.8
    assert resource.rating.free_level == 4.0
    assert resource.is_featured is True
    assert resource.view_count == 120


def test_resource_accepts_snake_case() -> None:
    """Test snake_case construction works too."""
    resource = Resource(id="x", name="X", category_id="font", curator_note="note")
    assert resource.rating.overall == 0.0
    assert resource.curator_note == "note"


def test_resource_rejects_out_of_range_rating() -> None:
    """Test ratings outside 0-5 fail validation."""
    with pytest.raises(ValueError):
        Resource.model_validate({**RECORD, "curatorRating": {"overall": 7}})


def test_resource_is_frozen() -> None:
    """Test resources cannot be mutated."""
    resource = Resource.model_validate(RECORD)
    with pytest.raises(Exception):
        resource.name = "Other"  # type: ignore[misc]


# --- JSON Catalog Tests ---


async def test_load_bare_array(tmp_path: Path) -> None:
    """Test a JSON array loads in file order."""
    second = {**RECORD, "id": "adobe-color", "name": "Adobe Color"}
    catalog = JsonResourceCatalog(write_corpus(tmp_path, [RECORD, second]))

    resources = await catalog.load()

    assert [r.id for r in resources] == ["coolors", "adobe-color"]


async def test_load_wrapped_object(tmp_path: Path) -> None:
    """Test an object with a resources key is accepted."""
    catalog = JsonResourceCatalog(write_corpus(tmp_path, {"resources": [RECORD]}))
    assert len(await catalog.load()) == 1


async def test_load_skips_duplicate_ids(tmp_path: Path) -> None:
    """Test the first occurrence of a duplicated id wins."""
    duplicate = {**RECORD, "name": "Duplicate"}
    catalog = JsonResourceCatalog(write_corpus(tmp_path, [RECORD, duplicate]))

    resources = await catalog.load()

    assert len(resources) == 1
    assert resources[0].name == "Coolors"


async def test_load_missing_file(tmp_path: Path) -> None:
    """Test a missing corpus raises CatalogError."""
    catalog = JsonResourceCatalog(tmp_path / "absent.json")
    with pytest.raises(CatalogError) as exc_info:
        await catalog.load()
    assert exc_info.value.code == ErrorCode.CATALOG_LOAD_FAILED


async def test_load_invalid_json(tmp_path: Path) -> None:
    """Test unparseable JSON raises CatalogError."""
    path = tmp_path / "resources.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError):
        await JsonResourceCatalog(path).load()


async def test_load_non_array(tmp_path: Path) -> None:
    """Test a scalar document is rejected."""
    with pytest.raises(CatalogError):
        await JsonResourceCatalog(write_corpus(tmp_path, {"resources": "nope"})).load()


async def test_load_invalid_record(tmp_path: Path) -> None:
    """Test a record failing validation reports its position."""
    catalog = JsonResourceCatalog(write_corpus(tmp_path, [RECORD, {"id": "broken"}]))
    with pytest.raises(CatalogError) as exc_info:
        await catalog.load()
    assert "position 1" in exc_info.value.message
    assert exc_info.value.details["errors"]


async def test_bundled_corpus_loads() -> None:
    """Test the sample corpus shipped under data/ is valid."""
    corpus = Path(__file__).resolve().parents[3] / "data" / "resources.json"
    resources = await JsonResourceCatalog(corpus).load()

    assert len(resources) == 16
    assert len({r.category_id for r in resources}) == 8
    assert all(r.tags for r in resources)


# --- In-Memory Catalog Tests ---


async def test_in_memory_catalog(sample_resources: list[Resource]) -> None:
    """Test the in-memory catalog returns a copy of its resources."""
    catalog = InMemoryResourceCatalog(sample_resources)
    loaded = await catalog.load()
    loaded.clear()
    assert len(await catalog.load()) == len(sample_resources)


def test_catalogs_satisfy_protocol(tmp_path: Path) -> None:
    """Test both implementations satisfy the catalog contract."""
    assert isinstance(InMemoryResourceCatalog([]), ResourceCatalog)
    assert isinstance(JsonResourceCatalog(tmp_path / "x.json"), ResourceCatalog)
