"""
Chat Routes - Conversational retrieval endpoints.

- POST /api/chat: one full turn
- POST /api/chat/stream: the same turn as server-sent events
- POST /api/chat/clarify: answer a clarification question and search
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from designbox.adapters.llm import ChatMessage
from designbox.domains.analysis import SearchDimensions
from designbox.domains.orchestration import RAGEngine, RAGOptions, RAGResponse, RAGStreamChunk
from designbox.domains.search import SearchFilters
from designbox.interfaces.api.deps import get_engine

router = APIRouter()


class ChatRequest(BaseModel):
    """Chat request body."""

    query: str = Field(..., min_length=1, description="User message")
    filters: SearchFilters | None = None
    history: list[ChatMessage] = Field(default_factory=list, description="Earlier turns, oldest first")
    session_context: SearchDimensions | None = Field(
        default=None, description="Dimensions carried over from earlier turns"
    )
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    def to_options(self) -> RAGOptions:
        return RAGOptions(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            conversation_history=self.history,
            session_dimensions=self.session_context,
        )


class ClarifyRequest(ChatRequest):
    """Clarification answer body. ``query`` is the original, vague query."""

    answer: str = Field(..., min_length=1, description="Selected option or free-text answer")


def sse_event(chunk: RAGStreamChunk) -> str:
    """Format one stream chunk as a server-sent event."""
    return f"data: {chunk.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


@router.post("", response_model=RAGResponse)
async def chat(
    request: ChatRequest,
    engine: RAGEngine = Depends(get_engine),
) -> RAGResponse:
    """
    Answer one conversational turn.

    Vague queries come back with ``needs_clarification`` and up to three
    questions instead of results.
    """
    return await engine.respond(request.query, request.filters, request.to_options())


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    engine: RAGEngine = Depends(get_engine),
) -> StreamingResponse:
    """
    Stream one conversational turn.

    The first event carries results (or clarification questions), then
    content chunks follow. The last event has ``is_complete: true``.
    """

    async def event_stream() -> AsyncIterator[str]:
        async for chunk in engine.respond_stream(
            request.query, request.filters, request.to_options()
        ):
            yield sse_event(chunk)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/clarify", response_model=RAGResponse)
async def clarify(
    request: ClarifyRequest,
    engine: RAGEngine = Depends(get_engine),
) -> RAGResponse:
    """Refine the original query with the user's answer and respond."""
    return await engine.handle_clarification(
        request.query, request.answer, request.filters, request.to_options()
    )
