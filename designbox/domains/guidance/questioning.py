"""
Guided Questioning Engine - Decide when to interrupt with clarifying questions.

The gate is deliberately conservative: only short or content-free queries
trigger questions; anything with two or more recognizable aspects goes
straight to search.
"""

from __future__ import annotations

import logging

from designbox.domains.analysis.models import Clarity, Intent, QueryAnalysis

from .models import Aspect, ClarificationQuestion, ClarityAssessment

logger = logging.getLogger(__name__)

__all__ = ["GuidedQuestioningEngine", "MAX_QUESTIONS"]

MAX_QUESTIONS = 3
MIN_QUERY_LENGTH = 3

ASPECT_KEYWORDS: dict[Aspect, tuple[str, ...]] = {
    Aspect.CATEGORY: (
        "配色", "颜色", "color", "css", "样式", "框架", "字体", "font", "文字", "图标", "icon",
        "灵感", "设计", "inspiration", "网站", "website", "网页", "ui", "组件", "component",
        "样机", "mockup",
    ),
    Aspect.STYLE: (
        "简洁", "简约", "极简", "minimal", "现代", "modern", "复古", "vintage", "retro", "扁平",
        "flat", "立体", "3d", "手绘", "hand-drawn", "专业", "professional", "可爱", "cute",
        "优雅", "elegant", "炫酷", "cool",
    ),
    Aspect.AUDIENCE: (
        "新手", "初学者", "beginner", "专业", "professional", "高级", "学生", "student",
        "开发者", "developer", "程序员", "设计师", "designer", "年轻", "young", "企业",
        "enterprise", "商业",
    ),
    Aspect.PURPOSE: (
        "学习", "learn", "教程", "项目", "project", "工作", "work", "练习", "practice", "参考",
        "reference", "快速", "quick", "快捷", "详细", "detailed", "免费", "free", "商用",
        "commercial",
    ),
}

# Analyzer dimensions that already answer an aspect
_DIMENSION_ASPECTS = {
    "type": Aspect.CATEGORY,
    "style": Aspect.STYLE,
    "industry": Aspect.AUDIENCE,
}

QUESTION_TEMPLATES: dict[Aspect, tuple[str, tuple[str, ...]]] = {
    Aspect.CATEGORY: (
        "您需要哪个类别的资源？（例如：配色工具、CSS框架、字体、图标等）",
        ("配色工具", "CSS框架", "字体", "图标", "设计灵感", "UI组件"),
    ),
    Aspect.STYLE: (
        "您偏好什么风格的设计？（例如：简约、现代、复古等）",
        ("简约", "现代", "复古", "扁平", "3D立体"),
    ),
    Aspect.AUDIENCE: (
        "这个资源主要面向什么人群？（例如：新手、专业设计师、开发者等）",
        ("新手", "专业设计师", "开发者", "学生"),
    ),
    Aspect.PURPOSE: (
        "您使用这个资源的主要目的是什么？（例如：学习、项目开发、快速参考等）",
        ("学习", "项目开发", "快速参考", "商业使用"),
    ),
}

SUGGESTION_TABLE: list[tuple[tuple[str, ...], tuple[str, str, str]]] = [
    (("配色", "颜色", "color"), ("推荐免费的配色工具", "适合新手的配色方案生成器", "专业的配色设计工具")),
    (("css", "框架"), ("流行的CSS框架", "轻量级CSS库", "CSS动画工具")),
    (("字体", "font"), ("免费商用字体", "中文字体库", "字体配对工具")),
    (("图标", "icon"), ("免费图标库", "SVG图标集合", "可定制的图标工具")),
]
GENERIC_SUGGESTIONS = ("推荐高评分的设计工具", "适合新手的设计资源", "免费的设计灵感网站")

CLARIFICATION_MESSAGE = "为了更好地帮助您找到合适的资源，我需要了解更多信息。"


class GuidedQuestioningEngine:
    """
    Clarify gate, question generation and query refinement.

    Example:
        >>> engine = GuidedQuestioningEngine()
        >>> assessment = engine.assess("图标")
        >>> engine.should_ask_for_clarification(assessment)
        True
        >>> [q.aspect for q in engine.generate_clarification_questions(assessment)]
        [<Aspect.CATEGORY: 'category'>, <Aspect.STYLE: 'style'>, <Aspect.AUDIENCE: 'audience'>]
    """

    def __init__(self, max_questions: int = MAX_QUESTIONS) -> None:
        self.max_questions = max_questions

    def assess(self, query: str, analysis: QueryAnalysis | None = None) -> ClarityAssessment:
        """
        Assess which aspects a query leaves open.

        Args:
            query: User text (sanitized text from the analysis is preferred when given)
            analysis: Analyzer output whose dimensions count as answered aspects

        Returns:
            ClarityAssessment; never raises
        """
        text = (analysis.normalized_query if analysis is not None else query or "").lower().strip()

        # Dimensions may come from earlier turns, so short follow-ups can still be specific
        answered: set[Aspect] = set()
        if analysis is not None and analysis.intent != Intent.BLOCKED:
            answered.update(
                aspect
                for dimension, aspect in _DIMENSION_ASPECTS.items()
                if getattr(analysis.dimensions, dimension)
            )

        if not answered and (
            len(text) < MIN_QUERY_LENGTH or (analysis is not None and analysis.intent == Intent.BLOCKED)
        ):
            return ClarityAssessment(
                clarity=Clarity.VAGUE,
                missing_aspects=list(Aspect),
                confidence=0.9,
            )

        answered.update(
            aspect
            for aspect, keywords in ASPECT_KEYWORDS.items()
            if any(keyword in text for keyword in keywords)
        )

        missing = [aspect for aspect in Aspect if aspect not in answered]
        if not missing:
            clarity = Clarity.CLEAR
        elif len(missing) >= 3:
            clarity = Clarity.VAGUE
        else:
            clarity = Clarity.AMBIGUOUS

        return ClarityAssessment(
            clarity=clarity,
            missing_aspects=missing,
            confidence=self._confidence(text, len(missing)),
        )

    @staticmethod
    def _confidence(text: str, missing_count: int) -> float:
        confidence = 0.5
        if len(text) < 5:
            confidence += 0.3
        elif len(text) < 10:
            confidence += 0.2
        elif len(text) > 30:
            confidence -= 0.1
        confidence += 0.1 * missing_count
        return round(max(0.0, min(1.0, confidence)), 4)

    def should_ask_for_clarification(self, assessment: ClarityAssessment) -> bool:
        """Only vague queries with high confidence that something is missing interrupt the user."""
        if assessment.clarity != Clarity.VAGUE:
            return False
        if len(assessment.missing_aspects) >= 4 and assessment.confidence > 0.8:
            return True
        return assessment.confidence > 0.85

    def generate_clarification_questions(
        self,
        assessment: ClarityAssessment,
    ) -> list[ClarificationQuestion]:
        """One question per missing aspect in priority order, at most ``max_questions``."""
        questions = []
        for aspect in Aspect:
            if aspect not in assessment.missing_aspects:
                continue
            text, options = QUESTION_TEMPLATES[aspect]
            questions.append(ClarificationQuestion(question=text, options=list(options), aspect=aspect))
        return questions[: self.max_questions]

    @staticmethod
    def refine_query(original: str, answer: str) -> str:
        """Append the clarification answer; the original request is never replaced."""
        return f"{original or ''} {answer or ''}".strip()

    @staticmethod
    def generate_suggested_queries(query: str) -> list[str]:
        """Keyword-triggered suggestions with a generic fallback; always three entries."""
        lowered = (query or "").lower()
        for triggers, suggestions in SUGGESTION_TABLE:
            if any(trigger in lowered for trigger in triggers):
                return list(suggestions)
        return list(GENERIC_SUGGESTIONS)

    @staticmethod
    def clarification_message(questions: list[ClarificationQuestion]) -> str:
        """Lead-in text shown above the questions."""
        if not questions:
            return CLARIFICATION_MESSAGE
        return CLARIFICATION_MESSAGE + "\n\n" + "\n".join(
            f"{i}. {q.question}" for i, q in enumerate(questions, 1)
        )
