"""
Hybrid Search Engine - Blends semantic similarity with structured filters.

Scoring:
- in both pools:        vector_weight * similarity + structured_weight
- semantic pool only:   vector_weight * similarity
- structured pool only: structured_weight

Every result carries a human-readable match reason.
"""

from __future__ import annotations

import logging

from designbox.domains.catalog.models import Resource

from .contracts import SemanticIndex
from .models import HybridSearchOptions, SearchFilters, SearchResult, SemanticSearchOptions

logger = logging.getLogger(__name__)

__all__ = ["HybridSearchEngine", "FALLBACK_REASON"]

REASON_SEPARATOR = "；"
FALLBACK_REASON = "符合搜索条件"


class HybridSearchEngine:
    """
    Hybrid search combining vector similarity and structured filtering.

    Example:
        >>> engine = HybridSearchEngine(index, resources)
        >>> results = await engine.search("免费配色工具", SearchFilters(categories=["color"]))
        >>> results[0].match_reason
        '高评分资源；符合类别筛选；精选推荐'
    """

    def __init__(
        self,
        index: SemanticIndex,
        resources: list[Resource],
        vector_weight: float = 0.7,
        structured_weight: float = 0.3,
        strong_match_threshold: float = 0.7,
        related_match_threshold: float = 0.5,
        top_rating_threshold: float = 4.5,
        similar_min_similarity: float = 0.3,
    ) -> None:
        """
        Initialize hybrid search engine.

        Args:
            index: Semantic index over the same corpus
            resources: Full corpus for structured filtering
            vector_weight: Weight of the semantic score
            structured_weight: Bonus for passing the structured filters
            strong_match_threshold: Blended score above which a result is "highly related"
            related_match_threshold: Blended score above which a result is "related"
            top_rating_threshold: Overall rating that earns the high-rating reason
            similar_min_similarity: Similarity floor for related-resource lookups
        """
        self._index = index
        self._resources = list(resources)
        self.vector_weight = vector_weight
        self.structured_weight = structured_weight
        self.strong_match_threshold = strong_match_threshold
        self.related_match_threshold = related_match_threshold
        self.top_rating_threshold = top_rating_threshold
        self.similar_min_similarity = similar_min_similarity

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: HybridSearchOptions | None = None,
    ) -> list[SearchResult]:
        """
        Execute hybrid search.

        Args:
            query: Search text
            filters: Structured filters; ``filters.max_results`` overrides the option
            options: Result count, similarity floor and weight overrides

        Returns:
            Results sorted by blended score, each with a non-empty match reason
        """
        filters = filters or SearchFilters()
        options = options or HybridSearchOptions()
        vector_weight = self.vector_weight if options.vector_weight is None else options.vector_weight
        structured_weight = (
            self.structured_weight if options.structured_weight is None else options.structured_weight
        )
        max_results = filters.max_results or options.max_results

        vector_matches = await self._index.search(
            query,
            SemanticSearchOptions(
                limit=max_results * 2,
                min_similarity=options.min_similarity,
                category_filter=filters.categories,
                min_rating=filters.min_rating,
            ),
        )
        structured = self._structured_filter(filters)
        structured_ids = {r.id for r in structured}

        combined: dict[str, SearchResult] = {}
        for match in vector_matches:
            score = match.similarity * vector_weight
            if match.resource_id in structured_ids:
                score += structured_weight
            combined[match.resource_id] = SearchResult(resource=match.resource, similarity=score)
        for resource in structured:
            if resource.id not in combined:
                combined[resource.id] = SearchResult(resource=resource, similarity=structured_weight)

        excluded = set(filters.exclude_ids or ())
        ranked = sorted(
            (r for r in combined.values() if r.resource.id not in excluded),
            key=lambda r: -r.similarity,
        )[:max_results]

        results = [
            r.model_copy(update={"match_reason": self._match_reason(r, query, filters)}) for r in ranked
        ]

        logger.info(
            "Hybrid search: query='%s' -> %d results (vector=%d, structured=%d)",
            query[:50],
            len(results),
            len(vector_matches),
            len(structured),
        )
        return results

    def _structured_filter(self, filters: SearchFilters) -> list[Resource]:
        """Corpus restricted by categories, minimum rating and exclusions."""
        filtered = self._resources
        if filters.categories:
            filtered = [r for r in filtered if r.category_id in filters.categories]
        if filters.min_rating is not None:
            filtered = [r for r in filtered if r.rating.overall >= filters.min_rating]
        if filters.exclude_ids:
            filtered = [r for r in filtered if r.id not in filters.exclude_ids]
        return filtered

    def _match_reason(self, result: SearchResult, query: str, filters: SearchFilters) -> str:
        reasons = []
        resource = result.resource

        if result.similarity > self.strong_match_threshold:
            reasons.append("高度语义相关")
        elif result.similarity > self.related_match_threshold:
            reasons.append("语义相关")

        if resource.rating.overall >= self.top_rating_threshold:
            reasons.append("高评分资源")

        if filters.categories and resource.category_id in filters.categories:
            reasons.append("符合类别筛选")

        query_lower = query.lower().strip()
        if query_lower:
            matched_tags = [
                tag
                for tag in resource.tags
                if tag and (tag.lower() in query_lower or query_lower in tag.lower())
            ]
            if matched_tags:
                reasons.append(f"匹配标签: {', '.join(matched_tags)}")

        if resource.is_featured:
            reasons.append("精选推荐")

        return REASON_SEPARATOR.join(reasons) or FALLBACK_REASON

    async def find_similar_resources(self, resource_id: str, limit: int = 5) -> list[SearchResult]:
        """
        Resources most similar to the given one.

        Raises:
            ResourceNotIndexedError: Resource id is not indexed
        """
        matches = await self._index.find_similar(
            resource_id,
            SemanticSearchOptions(limit=limit, min_similarity=self.similar_min_similarity),
        )
        return [
            SearchResult(
                resource=m.resource,
                similarity=m.similarity,
                match_reason=f"与当前资源相似度: {m.similarity * 100:.1f}%",
            )
            for m in matches
        ]
