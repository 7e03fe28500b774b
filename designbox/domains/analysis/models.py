"""
Analysis Models - Data types for query analysis.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Intent(str, Enum):
    """What the user is trying to do this turn."""

    SEARCH = "search"
    CORRECTION = "correction"  # Negating or replacing a previous request
    INSPIRATION = "inspiration"  # Open-ended browsing
    QUESTION = "question"  # Asking about resources rather than for them
    BLOCKED = "blocked"  # Nothing usable left after sanitizing


class KeywordDensity(str, Enum):
    """Keyword count bucket."""

    LOW = "low"  # 0-1 keywords
    MEDIUM = "medium"  # 2-3 keywords
    HIGH = "high"  # 4+ keywords


class Clarity(str, Enum):
    """How well specified a query is."""

    CLEAR = "clear"
    AMBIGUOUS = "ambiguous"
    VAGUE = "vague"


class SearchDimensions(BaseModel):
    """Structured facets detected in (or inherited by) a query."""

    industry: str | None = None
    style: str | None = None
    type: str | None = None
    color: str | None = None

    model_config = {"frozen": True}

    def populated(self) -> dict[str, str]:
        """Set dimensions only, in field order."""
        return {k: v for k, v in self.model_dump().items() if v}

    def count(self) -> int:
        return len(self.populated())

    def merged_over(self, context: SearchDimensions | None) -> SearchDimensions:
        """Overlay these values on an inherited context, field by field."""
        if context is None:
            return self
        return SearchDimensions(**{**context.populated(), **self.populated()})


class QueryAnalysis(BaseModel):
    """Result of analyzing one user turn. Never mutated after creation."""

    intent: Intent
    keyword_density: KeywordDensity
    extracted_keywords: list[str] = Field(default_factory=list)
    dimensions: SearchDimensions = Field(default_factory=SearchDimensions)
    confidence: float = Field(ge=0.0, le=1.0)
    clarity: Clarity
    requires_clarification: bool
    normalized_query: str = ""
    # Dimension names carried over from the session rather than found in this text
    inherited_fields: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}
