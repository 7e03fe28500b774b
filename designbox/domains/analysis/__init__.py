"""
Analysis Domain - Understanding a single user turn.

This domain handles:
- Input sanitizing
- Keyword extraction (mixed Chinese/Latin)
- Dimension detection with session inheritance
- Intent classification
- Confidence and clarity scoring
"""

from .analyzer import (
    QueryAnalyzer,
    calculate_confidence,
    classify_intent,
    extract_dimensions,
    extract_keywords,
    format_analysis_for_log,
    keyword_density,
    missing_dimensions,
    sanitize_query,
)
from .models import Clarity, Intent, KeywordDensity, QueryAnalysis, SearchDimensions

__all__ = [
    # Models
    "Intent",
    "KeywordDensity",
    "Clarity",
    "SearchDimensions",
    "QueryAnalysis",
    # Implementation
    "QueryAnalyzer",
    "sanitize_query",
    "extract_keywords",
    "keyword_density",
    "extract_dimensions",
    "classify_intent",
    "calculate_confidence",
    "missing_dimensions",
    "format_analysis_for_log",
]
