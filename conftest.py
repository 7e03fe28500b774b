"""
Shared test fixtures: a small curated corpus, a deterministic embedder
and a scripted chat provider.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from designbox.adapters.llm.models import (
    ChatChunk,
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ProviderCapabilities,
)
from designbox.domains.catalog.models import RatingBreakdown, Resource
from designbox.domains.search import HybridSearchEngine, InMemorySemanticIndex

# Each term is one embedding dimension
EMBED_VOCABULARY = (
    "配色", "颜色", "color", "css", "框架", "组件", "字体", "font", "图标", "icon",
    "svg", "医疗", "3d", "红色", "灵感", "ui", "免费", "新手", "简约",
)


class KeywordEmbedder:
    """Embeds text as vocabulary term counts. Deterministic and offline."""

    name = "keyword"
    capabilities = ProviderCapabilities(embedding=True)

    def __init__(self) -> None:
        self.query_calls = 0
        self.batch_calls = 0

    @staticmethod
    def vector(text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(term)) for term in EMBED_VOCABULARY]

    async def embed(self, text: str) -> list[float]:
        self.query_calls += 1
        return self.vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls += 1
        return [self.vector(t) for t in texts]


class ScriptedChatProvider:
    """Chat provider that replays a fixed answer and records every request."""

    name = "scripted"
    capabilities = ProviderCapabilities(chat=True, streaming=True, max_tokens=8192)

    def __init__(self, reply: str = "根据您的需求，我推荐以下资源。", chunk_size: int = 4) -> None:
        self.reply = reply
        self.chunk_size = chunk_size
        self.error: Exception | None = None
        self.requests: list[list[ChatMessage]] = []
        self.options: list[ChatOptions | None] = []

    async def complete(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        self.requests.append(list(messages))
        self.options.append(options)
        if self.error:
            raise self.error
        return ChatResponse(content=self.reply, finish_reason="stop", provider=self.name)

    async def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        self.requests.append(list(messages))
        self.options.append(options)
        if self.error:
            raise self.error
        for start in range(0, len(self.reply), self.chunk_size):
            yield ChatChunk(content=self.reply[start : start + self.chunk_size])
        yield ChatChunk(is_complete=True, finish_reason="stop")


def make_resource(
    resource_id: str,
    name: str,
    category_id: str,
    tags: list[str],
    rating: float,
    description: str = "",
    curator_note: str = "",
    is_featured: bool = False,
) -> Resource:
    return Resource(
        id=resource_id,
        name=name,
        url=f"https://example.com/{resource_id}",
        description=description,
        category_id=category_id,
        tags=tags,
        rating=RatingBreakdown(
            overall=rating,
            usability=rating,
            aesthetics=rating,
            update_frequency=4.0,
            free_level=3.0,
        ),
        curator_note=curator_note,
        is_featured=is_featured,
    )


@pytest.fixture
def sample_resources() -> list[Resource]:
    return [
        make_resource(
            "coolors", "Coolors", "color", ["配色", "免费", "新手"], 4.8,
            description="快速生成配色方案的在线工具",
            curator_note="新手友好的配色工具",
            is_featured=True,
        ),
        make_resource(
            "adobe-color", "Adobe Color", "color", ["配色", "色轮"], 4.6,
            description="专业的配色与色轮工具",
        ),
        make_resource(
            "tailwind", "Tailwind CSS", "css", ["CSS", "框架"], 4.9,
            description="实用优先的 CSS 框架",
            is_featured=True,
        ),
        make_resource(
            "bootstrap", "Bootstrap", "css", ["CSS", "框架", "组件"], 4.3,
            description="流行的 CSS 框架与 UI 组件库",
        ),
        make_resource(
            "google-fonts", "Google Fonts", "font", ["字体", "免费"], 4.7,
            description="免费开源字体库",
        ),
        make_resource(
            "iconify", "Iconify", "icon", ["图标", "免费", "SVG"], 4.5,
            description="统一的开源图标集合",
        ),
        make_resource(
            "medical-icons", "Medical Icons", "icon", ["图标", "医疗", "3D"], 4.2,
            description="红色 3D 医疗图标集合",
        ),
        make_resource(
            "dribbble", "Dribbble", "inspiration", ["灵感", "UI"], 4.4,
            description="设计师作品与 UI 灵感社区",
        ),
    ]


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def chat_provider() -> ScriptedChatProvider:
    return ScriptedChatProvider()


@pytest.fixture
async def semantic_index(
    embedder: KeywordEmbedder,
    sample_resources: list[Resource],
) -> InMemorySemanticIndex:
    index = InMemorySemanticIndex(embedder)
    await index.build_index(sample_resources)
    return index


@pytest.fixture
def hybrid_engine(
    semantic_index: InMemorySemanticIndex,
    sample_resources: list[Resource],
) -> HybridSearchEngine:
    return HybridSearchEngine(semantic_index, sample_resources)
