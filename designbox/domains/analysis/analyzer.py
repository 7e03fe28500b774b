"""
Query Analyzer - Intent, keywords and search dimensions from raw user text.

Pipeline:
1. Sanitize (tags, control characters, length)
2. Keyword extraction with greedy vocabulary segmentation for CJK text
3. Keyword density bucket
4. Dimension extraction with session inheritance
5. Intent classification (ordered rules)
6. Confidence and clarity scoring

Pure CPU work: no I/O, never raises for any string input.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from .models import Clarity, Intent, KeywordDensity, QueryAnalysis, SearchDimensions
from .vocabulary import (
    CORRECTION_PATTERNS,
    DIMENSION_TERMS,
    INSPIRATION_PATTERNS,
    QUESTION_PATTERNS,
    SEGMENTATION_TERMS,
    STOP_WORDS,
)

logger = logging.getLogger(__name__)

__all__ = [
    "QueryAnalyzer",
    "sanitize_query",
    "extract_keywords",
    "keyword_density",
    "extract_dimensions",
    "classify_intent",
    "calculate_confidence",
    "missing_dimensions",
    "format_analysis_for_log",
    "DEFAULT_MAX_QUERY_LENGTH",
]

DEFAULT_MAX_QUERY_LENGTH = 500

_BLOCK_TAGS = re.compile(r"<(script|iframe)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]*>")
_LAYOUT_CONTROLS = re.compile(r"[\t\n\r\f\v]")
_CONTROLS = re.compile(r"[\x00-\x1f\x7f]")
_SPACES = re.compile(r"\s+")
_SEGMENT_SPLIT = re.compile(r"[\W_]+")
_LATIN_TOKEN = re.compile(r"[A-Za-z0-9]+")
_ALNUM_TERM = re.compile(r"[a-z0-9][a-z0-9 \-]*")

_DENSITY_BONUS = {
    KeywordDensity.LOW: 0.0,
    KeywordDensity.MEDIUM: 0.2,
    KeywordDensity.HIGH: 0.4,
}
_DIMENSION_BONUS = 0.15


def sanitize_query(text: str, max_length: int = DEFAULT_MAX_QUERY_LENGTH) -> str:
    """
    Remove markup and control characters, collapse whitespace, truncate.

    Args:
        text: Raw user input
        max_length: Maximum characters kept

    Returns:
        Cleaned text, possibly empty
    """
    if not isinstance(text, str):
        text = "" if text is None else str(text)
    cleaned = _BLOCK_TAGS.sub(" ", text)
    cleaned = _TAGS.sub(" ", cleaned)
    cleaned = _LAYOUT_CONTROLS.sub(" ", cleaned)
    cleaned = _CONTROLS.sub("", cleaned)
    cleaned = _SPACES.sub(" ", cleaned).strip()
    return cleaned[:max_length].strip()


def _segment(segment: str) -> list[str]:
    """Greedy longest-first vocabulary matching inside one CJK segment."""
    lowered = segment.lower()
    if len(lowered) != len(segment):
        lowered = segment
    taken = [False] * len(segment)
    found: list[tuple[int, str]] = []

    for term in SEGMENTATION_TERMS:
        needle = term.lower()
        start = lowered.find(needle)
        while start != -1:
            end = start + len(needle)
            if not any(taken[start:end]):
                taken[start:end] = [True] * len(needle)
                found.append((start, segment[start:end]))
            start = lowered.find(needle, start + 1)

    if not found:
        return [segment]
    return [text for _, text in sorted(found)]


def extract_keywords(text: str) -> list[str]:
    """
    Split into keywords: Latin/digit tokens as typed, CJK runs segmented
    against the dimension vocabularies, stop words removed, first
    occurrence kept.
    """
    keywords: list[str] = []
    seen: set[str] = set()

    for segment in _SEGMENT_SPLIT.split(text):
        if not segment:
            continue
        pieces = [segment] if _LATIN_TOKEN.fullmatch(segment) else _segment(segment)
        for piece in pieces:
            key = piece.lower()
            if key in STOP_WORDS or piece in STOP_WORDS or key in seen:
                continue
            seen.add(key)
            keywords.append(piece)

    return keywords


def keyword_density(keywords: list[str]) -> KeywordDensity:
    """Bucket keyword count: 0-1 low, 2-3 medium, 4+ high."""
    if len(keywords) >= 4:
        return KeywordDensity.HIGH
    if len(keywords) >= 2:
        return KeywordDensity.MEDIUM
    return KeywordDensity.LOW


@lru_cache(maxsize=1024)
def _term_pattern(term: str) -> re.Pattern[str]:
    needle = term.lower()
    if _ALNUM_TERM.fullmatch(needle):
        # Latin terms must not match inside longer words ("ai" in "email")
        return re.compile(rf"(?<![a-z0-9]){re.escape(needle)}(?![a-z0-9])")
    return re.compile(re.escape(needle))


def extract_dimensions(text: str) -> SearchDimensions:
    """First matching canonical value per dimension, case-insensitive."""
    lowered = text.lower()
    found: dict[str, str] = {}
    for dimension, table in DIMENSION_TERMS.items():
        for canonical, terms in table.items():
            if any(_term_pattern(term).search(lowered) for term in terms):
                found[dimension] = canonical
                break
    return SearchDimensions(**found)


def classify_intent(text: str) -> Intent:
    """Ordered rules: blocked, correction, inspiration, question, search."""
    if not text:
        return Intent.BLOCKED
    if any(p.search(text) for p in CORRECTION_PATTERNS):
        return Intent.CORRECTION
    if any(p.search(text) for p in INSPIRATION_PATTERNS):
        return Intent.INSPIRATION
    if any(p.search(text) for p in QUESTION_PATTERNS):
        return Intent.QUESTION
    return Intent.SEARCH


def calculate_confidence(density: KeywordDensity, dimensions: SearchDimensions) -> float:
    """0.5 base + density bonus + 0.15 per populated dimension, capped at 1."""
    score = 0.5 + _DENSITY_BONUS[density] + _DIMENSION_BONUS * dimensions.count()
    return round(min(1.0, score), 4)


def _clarity(confidence: float, density: KeywordDensity, dimension_count: int) -> Clarity:
    if confidence >= 0.8 and dimension_count >= 2:
        return Clarity.CLEAR
    if density == KeywordDensity.LOW and dimension_count <= 1:
        return Clarity.VAGUE
    return Clarity.AMBIGUOUS


def missing_dimensions(dimensions: SearchDimensions) -> list[str]:
    """Required dimensions not yet known (color is optional)."""
    return [name for name in ("industry", "style", "type") if not getattr(dimensions, name)]


def format_analysis_for_log(analysis: QueryAnalysis) -> str:
    """Multi-line summary for debug logs."""
    return "\n".join(
        [
            f"Intent: {analysis.intent.value}",
            f"Confidence: {analysis.confidence * 100:.1f}%",
            f"Clarity: {analysis.clarity.value}",
            f"Density: {analysis.keyword_density.value}",
            f"Dimensions: {analysis.dimensions.populated()}",
            f"Keywords: [{', '.join(analysis.extracted_keywords)}]",
            f"Needs Clarification: {analysis.requires_clarification}",
        ]
    )


class QueryAnalyzer:
    """
    Analyze a user turn into intent, dimensions and confidence.

    Example:
        >>> analyzer = QueryAnalyzer()
        >>> analysis = analyzer.analyze("红色 3D 医疗 图标")
        >>> analysis.keyword_density
        <KeywordDensity.HIGH: 'high'>
        >>> analysis.dimensions.industry
        '医疗'
    """

    def __init__(self, max_length: int = DEFAULT_MAX_QUERY_LENGTH) -> None:
        """
        Initialize analyzer.

        Args:
            max_length: Sanitized queries are truncated to this many characters
        """
        self.max_length = max_length

    def analyze(
        self,
        query: str,
        context: SearchDimensions | None = None,
    ) -> QueryAnalysis:
        """
        Analyze one user turn.

        Args:
            query: Raw user text (may contain markup or be empty)
            context: Dimensions inherited from earlier turns in the session

        Returns:
            Fresh QueryAnalysis; empty input yields the blocked intent
        """
        text = sanitize_query(query, self.max_length)
        inherited = context or SearchDimensions()

        if not text:
            logger.debug("Query blocked after sanitizing: %r", str(query)[:50])
            return QueryAnalysis(
                intent=Intent.BLOCKED,
                keyword_density=KeywordDensity.LOW,
                extracted_keywords=[],
                dimensions=inherited,
                confidence=0.0,
                clarity=Clarity.VAGUE,
                requires_clarification=True,
                normalized_query="",
                inherited_fields=list(inherited.populated()),
            )

        keywords = extract_keywords(text)
        density = keyword_density(keywords)
        detected = extract_dimensions(text)
        dimensions = detected.merged_over(context)
        confidence = calculate_confidence(density, dimensions)
        dimension_count = dimensions.count()

        analysis = QueryAnalysis(
            intent=classify_intent(text),
            keyword_density=density,
            extracted_keywords=keywords,
            dimensions=dimensions,
            confidence=confidence,
            clarity=_clarity(confidence, density, dimension_count),
            requires_clarification=confidence < 0.7
            or (density == KeywordDensity.LOW and dimension_count < 2),
            normalized_query=text,
            inherited_fields=[
                name for name in dimensions.populated() if name not in detected.populated()
            ],
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Query analysis for '%s':\n%s", text[:50], format_analysis_for_log(analysis))
        return analysis
