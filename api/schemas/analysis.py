"""Domain models shared by the LLM orchestration layer.

Everything here is built fresh per request by the calling code. The
orchestration core only reads these objects; persistence belongs to the
workspace/document store.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DocumentType = Literal["pliego", "propuesta", "contrato"]
ProviderId = Literal["openai", "gemini"]
RiskLevel = Literal["low", "medium", "high"]


# ==============================================================================
# PROVIDERS AND HEALTH
# ==============================================================================

class ProviderConfig(BaseModel):
    """Static configuration for one AI provider. Built once at startup."""

    model_config = ConfigDict(frozen=True)

    provider_id: ProviderId
    model_name: str
    api_key: Optional[str] = Field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class ProviderHealth(BaseModel):
    available: bool = False
    model: str
    last_check: datetime


class HealthStatus(BaseModel):
    """Availability snapshot of both providers, recomputed on every call."""

    status: Literal["healthy", "unhealthy"]
    preferred_provider: ProviderId
    providers: Dict[ProviderId, ProviderHealth]

    def available_providers(self) -> List[ProviderId]:
        return [pid for pid, health in self.providers.items() if health.available]


# ==============================================================================
# CONVERSATION
# ==============================================================================

class ConversationTurn(BaseModel):
    """A single chat message. Conversations are ordered lists of these."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None

    @field_validator("content")
    @classmethod
    def content_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("content cannot be empty or whitespace")
        return v


# ==============================================================================
# DOCUMENT AND WORKSPACE CONTEXT
# ==============================================================================

class RucValidation(BaseModel):
    """Result of checking a bidder's RUC against the taxpayer registry."""

    model_config = ConfigDict(frozen=True)

    ruc: str
    company_name: str
    is_valid: bool
    can_perform_work: bool
    business_type: str


class AnalysisContext(BaseModel):
    """Input for analysing one uploaded document."""

    model_config = ConfigDict(frozen=True)

    document_type: DocumentType
    extracted_text: str = ""
    country_name: Optional[str] = None
    file_name: str = ""
    ruc_validation: Optional[RucValidation] = None


class AnalysisRecord(BaseModel):
    """A completed analysis as stored by the workspace."""

    model_config = ConfigDict(frozen=True)

    id: str
    document_name: str
    document_type: DocumentType
    ai_analysis: str = ""
    ruc_validation: Optional[RucValidation] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


class WorkspaceDocument(BaseModel):
    """A user-uploaded document living in a workspace."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "contrato"
    description: str = ""
    extracted_text: str = ""
    uploaded_at: Optional[datetime] = None


class WorkspaceContext(BaseModel):
    """Everything the workspace-wide agent may see."""

    model_config = ConfigDict(frozen=True)

    workspace_name: Optional[str] = None
    country_name: Optional[str] = None
    legal_documents: Dict[str, str] = Field(default_factory=dict)
    documents: List[WorkspaceDocument] = Field(default_factory=list)
    analyses: List[AnalysisRecord] = Field(default_factory=list)


class FocusedDocumentContext(BaseModel):
    """Context for a chat that is scoped to a single analysed document."""

    model_config = ConfigDict(frozen=True)

    workspace_name: Optional[str] = None
    country_name: Optional[str] = None
    legal_documents: Dict[str, str] = Field(default_factory=dict)
    analysis: AnalysisRecord
    conversation_history: List[ConversationTurn] = Field(default_factory=list)


# ==============================================================================
# RESULTS
# ==============================================================================

class RiskAssessment(BaseModel):
    level: RiskLevel = "medium"
    score: int = Field(default=5, ge=1, le=10)
    factors: List[str] = Field(default_factory=list)


class DocumentInsightResult(BaseModel):
    """Structured insight for a single document."""

    summary: str
    key_findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)


class InsightMode(str, Enum):
    MARKDOWN = "markdown"
    STRUCTURED = "structured"


class StructuredInsight(BaseModel):
    kind: Literal["structured"] = "structured"
    insight: DocumentInsightResult


class RawMarkdownInsight(BaseModel):
    kind: Literal["markdown"] = "markdown"
    markdown: str


# Callers must branch on ``kind`` instead of guessing the shape.
InsightOutcome = Annotated[
    Union[StructuredInsight, RawMarkdownInsight],
    Field(discriminator="kind"),
]


class RiskScores(BaseModel):
    legal: int = Field(default=5, ge=1, le=10)
    financial: int = Field(default=5, ge=1, le=10)
    operational: int = Field(default=5, ge=1, le=10)


class Recommendation(BaseModel):
    preferred: str = ""
    reasoning: str = ""
    improvements: List[str] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Structured comparison across two or more documents."""

    summary: str
    strengths: Dict[str, List[str]] = Field(default_factory=dict)
    weaknesses: Dict[str, List[str]] = Field(default_factory=dict)
    recommendation: Recommendation = Field(default_factory=Recommendation)
    risk_matrix: Dict[str, RiskScores] = Field(default_factory=dict)
