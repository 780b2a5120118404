"""LLM service: the operations request handlers call.

Each operation builds its prompt, dispatches it through the two-provider
fallback policy and, where a structured result is expected, runs the output
through the total parsers. ``AllProvidersUnavailableError`` is the only
error that escapes for a well-formed request.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional, Sequence

import structlog

from api.composer.prompts import (
    HISTORY_TURNS,
    PromptKind,
    build_system_prompt,
    build_user_message,
    document_labels,
)
from api.composer.synthesis import parse_comparison, parse_insight
from api.llm.dispatcher import Dispatcher
from api.llm.health import HealthMonitor
from api.llm.providers import build_providers
from api.schemas.analysis import (
    AnalysisContext,
    ComparisonResult,
    ConversationTurn,
    FocusedDocumentContext,
    HealthStatus,
    InsightMode,
    InsightOutcome,
    ProviderConfig,
    RawMarkdownInsight,
    StructuredInsight,
    WorkspaceContext,
)
from libs.common.settings import Settings, get_settings

logger = structlog.get_logger(__name__)


def provider_configs(settings: Settings) -> List[ProviderConfig]:
    """The two provider configurations described by ``settings``."""
    return [
        ProviderConfig(provider_id="openai", model_name=settings.openai_model, api_key=settings.openai_api_key),
        ProviderConfig(provider_id="gemini", model_name=settings.gemini_model, api_key=settings.gemini_api_key),
    ]


def _validate_turns(turns: Sequence[ConversationTurn]) -> List[ConversationTurn]:
    turns = list(turns)
    if not turns:
        raise ValueError("At least one message is required")
    if turns[-1].role != "user":
        raise ValueError("The last message must come from the user")
    return turns[-HISTORY_TURNS:]


class LLMService:
    """Facade over prompt building, dispatch and output parsing."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMService":
        providers = build_providers(provider_configs(settings), timeout=settings.request_timeout_seconds)
        monitor = HealthMonitor(
            providers,
            preferred_provider=settings.preferred_llm_provider,
            timeout=settings.health_timeout_seconds,
        )
        return cls(Dispatcher(providers, monitor))

    @property
    def preferred_provider(self) -> str:
        return self.dispatcher.preferred_provider

    async def check_health(self) -> HealthStatus:
        return await self.dispatcher.health_monitor.check_health()

    async def get_document_insights(
        self,
        context: AnalysisContext,
        question: Optional[str] = None,
        mode: InsightMode = InsightMode.MARKDOWN,
    ) -> InsightOutcome:
        """Analyse one document.

        Markdown mode returns the model's Spanish markdown analysis as-is.
        Structured mode asks for JSON and always returns a well-formed
        ``DocumentInsightResult``, falling back to defaults when the output
        does not parse.
        """
        mode = InsightMode(mode)
        kind = PromptKind.DOCUMENT_ANALYSIS if mode is InsightMode.MARKDOWN else PromptKind.DOCUMENT_INSIGHT
        system_prompt = build_system_prompt(kind, context)
        message = ConversationTurn(role="user", content=build_user_message(kind, context, question))

        logger.info(
            "Generating document insights",
            document_type=context.document_type,
            mode=mode.value,
            text_chars=len(context.extracted_text),
            has_question=bool(question),
        )
        raw = await self.dispatcher.dispatch(system_prompt, [message])

        if mode is InsightMode.MARKDOWN:
            return RawMarkdownInsight(markdown=raw)
        return StructuredInsight(insight=parse_insight(raw))

    async def get_comparison_insights(
        self,
        contexts: Sequence[AnalysisContext],
        question: Optional[str] = None,
    ) -> ComparisonResult:
        contexts = list(contexts)
        if len(contexts) < 2:
            raise ValueError("At least 2 documents are required for comparison")

        labels = document_labels(contexts)
        system_prompt = build_system_prompt(PromptKind.COMPARISON, contexts)
        message = ConversationTurn(
            role="user", content=build_user_message(PromptKind.COMPARISON, contexts, question)
        )

        logger.info("Generating comparison insights", documents=len(contexts), has_question=bool(question))
        raw = await self.dispatcher.dispatch(system_prompt, [message])
        return parse_comparison(raw, labels)

    async def chat(self, turns: Sequence[ConversationTurn], workspace_context: WorkspaceContext) -> str:
        turns = _validate_turns(turns)
        system_prompt = build_system_prompt(PromptKind.WORKSPACE_CHAT, workspace_context)
        logger.info(
            "Workspace chat",
            turns=len(turns),
            documents=len(workspace_context.documents),
            analyses=len(workspace_context.analyses),
        )
        return await self.dispatcher.dispatch(system_prompt, turns)

    async def chat_about_document(
        self,
        turns: Sequence[ConversationTurn],
        focused_context: FocusedDocumentContext,
    ) -> str:
        turns = _validate_turns(turns)
        system_prompt = build_system_prompt(PromptKind.DOCUMENT_CHAT, focused_context)
        logger.info(
            "Document chat",
            turns=len(turns),
            analysis_id=focused_context.analysis.id,
            history=len(focused_context.conversation_history),
        )
        return await self.dispatcher.dispatch(system_prompt, turns)


@lru_cache
def get_llm_service() -> LLMService:
    """Process-wide service built from environment settings."""
    return LLMService.from_settings(get_settings())
