"""
Catalog Domain - The curated resource corpus.

This domain handles:
- Resource and rating models
- Loading the published corpus
"""

from .contracts import ResourceCatalog
from .models import RatingBreakdown, Resource
from .repository import InMemoryResourceCatalog, JsonResourceCatalog

__all__ = [
    "ResourceCatalog",
    "Resource",
    "RatingBreakdown",
    "JsonResourceCatalog",
    "InMemoryResourceCatalog",
]
