"""
Pytest configuration and shared fixtures.

Provides:
- FakeProvider: an in-memory stand-in for a provider invoker
- Sample contexts for prompts and service tests
- A clean, offline settings environment
"""

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from api.llm.errors import ProviderError
from api.schemas.analysis import (
    AnalysisContext,
    AnalysisRecord,
    ConversationTurn,
    FocusedDocumentContext,
    RucValidation,
    WorkspaceContext,
    WorkspaceDocument,
)
from libs.common.settings import get_settings


class FakeProvider:
    """Provider double exposing the attributes the health monitor and dispatcher use."""

    def __init__(
        self,
        provider_id: str,
        model_name: str = "fake-model",
        configured: bool = True,
        healthy: bool = True,
        reply: str = "respuesta",
        error: Optional[str] = None,
    ):
        self.provider_id = provider_id
        self.model_name = model_name
        self.configured = configured
        self.healthy = healthy
        self.reply = reply
        self.error = error
        self.pings = 0
        self.calls: List[tuple] = []

    async def ping(self) -> None:
        self.pings += 1
        if not self.healthy:
            raise ProviderError(self.provider_id, "ping failed")

    async def invoke(self, system_prompt, turns) -> str:
        self.calls.append((system_prompt, list(turns)))
        if self.error:
            raise ProviderError(self.provider_id, self.error)
        return self.reply


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Run every test with no real provider credentials."""
    monkeypatch.setenv("LICITA_APP_ENV", "test")
    for name in (
        "OPENAI_API_KEY",
        "GEMINI_API_KEY",
        "PREFERRED_LLM_PROVIDER",
        "LICITA_OPENAI_API_KEY",
        "LICITA_GEMINI_API_KEY",
        "LICITA_PREFERRED_LLM_PROVIDER",
        "LICITA_SLACK_ERROR_WEBHOOK",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ruc_validation():
    return RucValidation(
        ruc="1790012345001",
        company_name="Constructora Andina S.A.",
        is_valid=True,
        can_perform_work=False,
        business_type="Sociedad anónima",
    )


@pytest.fixture
def pliego_context(ruc_validation):
    return AnalysisContext(
        document_type="pliego",
        extracted_text="Objeto: construcción de un puente peatonal. Plazo: 180 días.",
        country_name="Ecuador",
        file_name="pliego_puente.pdf",
        ruc_validation=ruc_validation,
    )


@pytest.fixture
def analysis_record(ruc_validation):
    return AnalysisRecord(
        id="an_001",
        document_name="propuesta_andina.pdf",
        document_type="propuesta",
        ai_analysis="# Análisis\nLa garantía de fiel cumplimiento es del 5%.",
        ruc_validation=ruc_validation,
        created_at=datetime(2024, 5, 2, 10, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def workspace_context(analysis_record):
    return WorkspaceContext(
        workspace_name="Obras Quito 2024",
        country_name="Ecuador",
        legal_documents={"constitution": "Constitución 2008", "regulation": "Reglamento LOSNCP"},
        documents=[
            WorkspaceDocument(
                name="contrato_base.docx",
                type="contrato",
                description="Borrador del contrato",
                extracted_text="Cláusula primera: objeto del contrato.",
                uploaded_at=datetime(2024, 4, 20, tzinfo=timezone.utc),
            )
        ],
        analyses=[analysis_record],
    )


@pytest.fixture
def focused_context(analysis_record):
    return FocusedDocumentContext(
        workspace_name="Obras Quito 2024",
        country_name="Ecuador",
        analysis=analysis_record,
        conversation_history=[
            ConversationTurn(role="user", content="¿Cuál es el plazo?"),
            ConversationTurn(role="assistant", content="El plazo es de 180 días."),
        ],
    )


@pytest.fixture
def user_turn():
    return [ConversationTurn(role="user", content="¿Qué garantías se exigen?")]


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider
