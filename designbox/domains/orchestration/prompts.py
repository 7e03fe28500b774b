"""
Prompt Builders - Grounding context, chat messages and canned replies.
"""

from __future__ import annotations

from designbox.adapters.llm.models import ChatMessage, ChatRole
from designbox.domains.analysis.models import Intent, QueryAnalysis
from designbox.domains.search.models import SearchResult

__all__ = [
    "build_context",
    "build_system_prompt",
    "build_messages",
    "build_search_text",
    "build_no_results_message",
    "build_degraded_message",
]

NO_CONTEXT = "没有找到相关资源。"

SYSTEM_PROMPT = """你是设计百宝箱的AI助手，专门帮助用户找到最适合的设计资源。

## 你的职责
1. 基于搜索结果为用户推荐最合适的设计资源
2. 解释为什么推荐这些资源，突出它们的优势
3. 如果用户需求不明确，主动询问澄清问题
4. 提供实用的使用建议和注意事项

## 搜索结果
{context}

## 回答原则
1. **具体推荐**: 明确指出推荐哪些资源，按优先级排序
2. **解释理由**: 说明为什么这些资源适合用户的需求
3. **突出特点**: 强调每个资源的独特优势和适用场景
4. **实用建议**: 提供使用技巧或注意事项
5. **友好语气**: 保持专业但不失亲和力
6. **简洁明了**: 避免冗长，重点突出

## 特殊情况处理
- 如果没有完全匹配的资源，推荐最接近的替代方案
- 如果用户需求模糊，询问具体的使用场景、目标受众或风格偏好
- 如果搜索结果为空，建议用户尝试其他关键词或浏览分类

请基于以上信息回答用户的问题。"""

DEGRADED_APOLOGY = "抱歉，AI 助手暂时无法生成回答，请稍后再试。"

SUMMARY_LEADS = {
    Intent.INSPIRATION: "这些资源或许能带给您一些灵感：",
    Intent.CORRECTION: "根据您的调整，为您重新找到以下资源：",
}
DEFAULT_SUMMARY_LEAD = "以下是与您的需求最相关的资源："


def build_context(results: list[SearchResult]) -> str:
    """Numbered resource list used to ground the answer."""
    if not results:
        return NO_CONTEXT

    blocks = []
    for position, result in enumerate(results, 1):
        r = result.resource
        rating = r.rating
        blocks.append(
            f"{position}. **{r.name}**\n"
            f"   - 类别: {r.category_id}\n"
            f"   - 评分: {rating.overall}/5.0 (可用性: {rating.usability}, 美观: {rating.aesthetics}, "
            f"更新频率: {rating.update_frequency}, 免费程度: {rating.free_level})\n"
            f"   - 描述: {r.description}\n"
            f"   - 标签: {', '.join(r.tags)}\n"
            f"   - 策展人笔记: {r.curator_note}\n"
            f"   - 匹配理由: {result.match_reason}\n"
            f"   - 相似度: {result.similarity * 100:.1f}%"
        )
    return "\n\n".join(blocks)


def build_system_prompt(context: str) -> str:
    return SYSTEM_PROMPT.format(context=context)


def build_messages(
    query: str,
    context: str,
    history: list[ChatMessage] | None = None,
    history_window: int = 10,
) -> list[ChatMessage]:
    """System prompt, the most recent history messages, then the current query."""
    messages = [ChatMessage(role=ChatRole.SYSTEM, content=build_system_prompt(context))]
    if history and history_window > 0:
        messages.extend(history[-history_window:])
    messages.append(ChatMessage(role=ChatRole.USER, content=query))
    return messages


def build_search_text(analysis: QueryAnalysis) -> str:
    """Sanitized query plus inherited dimension values it does not already mention."""
    text = analysis.normalized_query
    lowered = text.lower()
    extra = []
    for name in analysis.inherited_fields:
        value = getattr(analysis.dimensions, name)
        if value and value.lower() not in lowered:
            extra.append(value)
    return " ".join([text, *extra]).strip()


def build_no_results_message(query: str, suggestions: list[str]) -> str:
    numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(suggestions, 1))
    return (
        f"抱歉，没有找到与\"{query}\"完全匹配的资源。\n\n"
        f"您可以尝试以下搜索：\n{numbered}\n\n"
        "或者浏览我们的分类页面，发现更多优质设计资源。"
    )


def build_degraded_message(analysis: QueryAnalysis | None, results: list[SearchResult]) -> str:
    """Apology, followed by a template summary when results were retrieved."""
    if not results:
        return DEGRADED_APOLOGY

    intent = analysis.intent if analysis is not None else Intent.SEARCH
    lead = SUMMARY_LEADS.get(intent, DEFAULT_SUMMARY_LEAD)
    lines = [
        f"{i}. {r.resource.name}（评分 {r.resource.rating.overall}/5.0）- {r.match_reason}"
        for i, r in enumerate(results, 1)
    ]
    return f"{DEGRADED_APOLOGY}\n\n{lead}\n" + "\n".join(lines)
