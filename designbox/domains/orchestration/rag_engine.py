"""
RAG Engine - Orchestrates one conversational turn.

Flow:
1. Analyze the query (with session dimensions)
2. Clarify gate: ask structured questions instead of searching
3. Cached hybrid search
4. No results: apology with suggested queries, no chat call
5. Grounded chat completion, batch or streamed

Provider and search failures end the turn in the failed state with an
apology; they never propagate to the caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator

from designbox.adapters.llm.contracts import ChatProvider
from designbox.adapters.llm.models import ChatOptions
from designbox.config.errors import DesignBoxError
from designbox.domains.analysis import QueryAnalysis, QueryAnalyzer
from designbox.domains.guidance import ClarificationQuestion, GuidedQuestioningEngine
from designbox.domains.search import HybridSearchEngine, HybridSearchOptions, SearchFilters, SearchResult

from .cache import CacheManager
from .models import (
    PipelineState,
    PipelineStep,
    RAGOptions,
    RAGResponse,
    RAGStreamChunk,
)
from .prompts import (
    build_context,
    build_degraded_message,
    build_messages,
    build_no_results_message,
    build_search_text,
)

logger = logging.getLogger(__name__)

__all__ = ["RAGEngine"]


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class RAGEngine:
    """
    Retrieval-augmented answer pipeline with guided clarification.

    Example:
        >>> engine = RAGEngine(chat_provider, hybrid_engine)
        >>> response = await engine.respond("推荐免费的配色工具")
        >>> [r.resource.name for r in response.search_results]
        ['Coolors', 'Adobe Color']
    """

    def __init__(
        self,
        chat: ChatProvider,
        hybrid: HybridSearchEngine,
        analyzer: QueryAnalyzer | None = None,
        guidance: GuidedQuestioningEngine | None = None,
        cache: CacheManager | None = None,
        max_results: int = 5,
        min_similarity: float = 0.3,
        history_window: int = 10,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> None:
        """
        Initialize engine.

        Args:
            chat: Chat provider (usually the failover LLMService)
            hybrid: Hybrid search engine
            analyzer: Query analyzer
            guidance: Guided questioning engine
            cache: Results/analysis caches
            max_results: Default number of results per turn
            min_similarity: Semantic similarity floor for retrieval
            history_window: Most recent history messages sent to the model
            max_tokens: Default completion budget
            temperature: Default sampling temperature
        """
        self._chat = chat
        self._hybrid = hybrid
        self._analyzer = analyzer or QueryAnalyzer()
        self._guidance = guidance or GuidedQuestioningEngine()
        self._cache = cache or CacheManager()
        self.max_results = max_results
        self.min_similarity = min_similarity
        self.history_window = history_window
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def cache(self) -> CacheManager:
        return self._cache

    async def _analyze(self, query: str, options: RAGOptions) -> QueryAnalysis:
        context = options.session_dimensions
        return await self._cache.cached_analysis(
            query,
            context,
            lambda: self._analyzer.analyze(query, context),
        )

    def _clarify(self, query: str, analysis: QueryAnalysis) -> list[ClarificationQuestion] | None:
        """Questions to ask instead of searching, or None to proceed."""
        assessment = self._guidance.assess(query, analysis)
        if not self._guidance.should_ask_for_clarification(assessment):
            return None
        return self._guidance.generate_clarification_questions(assessment)

    async def _search(
        self,
        analysis: QueryAnalysis,
        filters: SearchFilters | None,
    ) -> tuple[list[SearchResult], bool]:
        search_text = build_search_text(analysis)
        options = HybridSearchOptions(max_results=self.max_results, min_similarity=self.min_similarity)
        cached = await self._cache.cached_search(
            search_text,
            filters,
            lambda: self._hybrid.search(search_text, filters, options),
        )
        return cached.results, cached.from_cache

    def _chat_options(self, options: RAGOptions) -> ChatOptions:
        return ChatOptions(
            max_tokens=options.max_tokens or self.max_tokens,
            temperature=self.temperature if options.temperature is None else options.temperature,
        )

    @staticmethod
    def _log_failure(query: str, error: Exception) -> None:
        if isinstance(error, DesignBoxError):
            logger.error("Turn degraded for '%s': %s", query[:50], error)
        else:
            logger.exception("Unexpected failure for '%s'", query[:50])

    async def respond(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> RAGResponse:
        """
        Run one turn and return the full answer.

        Args:
            query: Raw user text
            filters: Structured search filters
            options: Generation options, history and session dimensions

        Returns:
            RAGResponse in the clarifying, no-results, done or failed shape
        """
        options = options or RAGOptions()
        start = time.perf_counter()
        steps: list[PipelineStep] = []
        analysis: QueryAnalysis | None = None
        results: list[SearchResult] = []
        from_cache = False
        state = PipelineState.ANALYZING
        step_start = time.perf_counter()

        try:
            analysis = await self._analyze(query, options)
            steps.append(PipelineStep(name=state.value, status="completed", duration_ms=_elapsed_ms(step_start)))

            questions = self._clarify(query, analysis)
            if questions:
                logger.info("Clarifying '%s' with %d questions", query[:50], len(questions))
                steps.append(PipelineStep(name=PipelineState.CLARIFYING.value, status="completed"))
                return RAGResponse(
                    content=self._guidance.clarification_message(questions),
                    processing_time_ms=int(_elapsed_ms(start)),
                    needs_clarification=True,
                    clarification_questions=questions,
                    analysis=analysis,
                    state=PipelineState.CLARIFYING,
                    steps=steps,
                )

            state, step_start = PipelineState.SEARCHING, time.perf_counter()
            results, from_cache = await self._search(analysis, filters)
            steps.append(PipelineStep(name=state.value, status="completed", duration_ms=_elapsed_ms(step_start)))

            if not results:
                suggestions = self._guidance.generate_suggested_queries(query)
                logger.info("No results for '%s'", query[:50])
                steps.append(PipelineStep(name=PipelineState.NO_RESULTS.value, status="completed"))
                return RAGResponse(
                    content=build_no_results_message(analysis.normalized_query or query, suggestions),
                    processing_time_ms=int(_elapsed_ms(start)),
                    analysis=analysis,
                    suggested_queries=suggestions,
                    from_cache=from_cache,
                    state=PipelineState.NO_RESULTS,
                    steps=steps,
                )

            state, step_start = PipelineState.RESPONDING, time.perf_counter()
            messages = build_messages(
                analysis.normalized_query,
                build_context(results),
                options.conversation_history,
                self.history_window,
            )
            response = await self._chat.complete(messages, self._chat_options(options))
            steps.append(PipelineStep(name=state.value, status="completed", duration_ms=_elapsed_ms(step_start)))

        except Exception as e:
            self._log_failure(query, e)
            steps.append(
                PipelineStep(name=state.value, status="failed", duration_ms=_elapsed_ms(step_start), error=str(e))
            )
            return RAGResponse(
                content=build_degraded_message(analysis, results),
                search_results=results,
                processing_time_ms=int(_elapsed_ms(start)),
                analysis=analysis,
                from_cache=from_cache,
                state=PipelineState.FAILED,
                steps=steps,
            )

        logger.info(
            "Answered '%s' with %d resources in %.0fms (cache=%s)",
            query[:50],
            len(results),
            _elapsed_ms(start),
            from_cache,
        )
        return RAGResponse(
            content=response.content,
            search_results=results,
            processing_time_ms=int(_elapsed_ms(start)),
            analysis=analysis,
            from_cache=from_cache,
            state=PipelineState.DONE,
            steps=steps,
        )

    async def respond_stream(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> AsyncIterator[RAGStreamChunk]:
        """
        Run one turn as a stream of events.

        Yields the clarification event, or the results event (empty chunk)
        followed by content chunks. Every stream ends with an
        ``is_complete=True`` event.
        """
        options = options or RAGOptions()
        analysis: QueryAnalysis | None = None
        results: list[SearchResult] = []

        try:
            analysis = await self._analyze(query, options)

            questions = self._clarify(query, analysis)
            if questions:
                yield RAGStreamChunk(
                    chunk=self._guidance.clarification_message(questions),
                    search_results=[],
                    needs_clarification=True,
                    clarification_questions=questions,
                )
                yield RAGStreamChunk(is_complete=True)
                return

            results, _ = await self._search(analysis, filters)
            yield RAGStreamChunk(search_results=results, needs_clarification=False)

            if not results:
                suggestions = self._guidance.generate_suggested_queries(query)
                yield RAGStreamChunk(
                    chunk=build_no_results_message(analysis.normalized_query or query, suggestions),
                    suggested_queries=suggestions,
                )
                yield RAGStreamChunk(is_complete=True)
                return

            messages = build_messages(
                analysis.normalized_query,
                build_context(results),
                options.conversation_history,
                self.history_window,
            )
            async for piece in self._chat.stream(messages, self._chat_options(options)):
                if piece.content:
                    yield RAGStreamChunk(chunk=piece.content)

        except Exception as e:
            self._log_failure(query, e)
            yield RAGStreamChunk(chunk=build_degraded_message(analysis, results))

        yield RAGStreamChunk(is_complete=True)

    async def handle_clarification(
        self,
        original_query: str,
        answer: str,
        filters: SearchFilters | None = None,
        options: RAGOptions | None = None,
    ) -> RAGResponse:
        """Append the clarification answer to the original query and respond."""
        refined = self._guidance.refine_query(original_query, answer)
        logger.info("Refined query: '%s' -> '%s'", original_query[:50], refined[:50])
        return await self.respond(refined, filters, options)

    async def similar_resources(self, resource_id: str, limit: int = 5) -> list[SearchResult]:
        """
        Resources related to an indexed one.

        Raises:
            ResourceNotIndexedError: Resource id is not indexed
        """
        return await self._hybrid.find_similar_resources(resource_id, limit)
