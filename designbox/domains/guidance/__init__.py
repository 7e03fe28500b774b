"""
Guidance Domain - Guided questioning for under-specified queries.

This domain handles:
- Clarity assessment by aspect (category, style, audience, purpose)
- The clarify-or-search gate
- Clarification questions with quick-reply options
- Query refinement and suggested queries
"""

from .models import Aspect, ClarificationQuestion, ClarityAssessment
from .questioning import GuidedQuestioningEngine

__all__ = [
    "Aspect",
    "ClarityAssessment",
    "ClarificationQuestion",
    "GuidedQuestioningEngine",
]
