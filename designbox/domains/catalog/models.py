"""
Catalog Models - Design resources as supplied by the curation layer.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RatingBreakdown(BaseModel):
    """Curator rating on a 0-5 scale."""

    overall: float = Field(default=0.0, ge=0.0, le=5.0)
    usability: float = Field(default=0.0, ge=0.0, le=5.0)
    aesthetics: float = Field(default=0.0, ge=0.0, le=5.0)
    update_frequency: float = Field(default=0.0, ge=0.0, le=5.0)
    free_level: float = Field(default=0.0, ge=0.0, le=5.0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Resource(BaseModel):
    """A curated design resource (tool, library, font set, site)."""

    id: str
    name: str
    url: str = ""
    description: str = ""
    category_id: str
    tags: list[str] = Field(default_factory=list)
    rating: RatingBreakdown = Field(
        default_factory=RatingBreakdown,
        validation_alias=AliasChoices("rating", "curatorRating", "curator_rating"),
    )
    curator_note: str = ""
    is_featured: bool = False
    created_at: datetime | None = None
    view_count: int = 0
    favorite_count: int = 0

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
