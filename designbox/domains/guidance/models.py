"""
Guidance Models - Clarity assessments and clarification questions.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from designbox.domains.analysis.models import Clarity


class Aspect(str, Enum):
    """What a clarification question asks about, in priority order."""

    CATEGORY = "category"
    STYLE = "style"
    AUDIENCE = "audience"
    PURPOSE = "purpose"


class ClarityAssessment(BaseModel):
    """How under-specified a query is, from the questioning engine's point of view."""

    clarity: Clarity
    missing_aspects: list[Aspect] = Field(default_factory=list)
    # Confidence that the query needs clarifying
    confidence: float = Field(ge=0.0, le=1.0)

    model_config = {"frozen": True}


class ClarificationQuestion(BaseModel):
    """One structured follow-up question with quick-reply options."""

    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=1)
    aspect: Aspect

    model_config = {"frozen": True}
