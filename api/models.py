"""Pydantic models for the agent HTTP API.

Request bodies carry contexts that the workspace/document store has already
assembled; the API never loads workspace data itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from api.schemas.analysis import (
    AnalysisContext,
    ComparisonResult,
    ConversationTurn,
    DocumentType,
    FocusedDocumentContext,
    HealthStatus,
    InsightMode,
    InsightOutcome,
    WorkspaceContext,
)


class HealthResponse(BaseModel):
    """Liveness/readiness payload."""

    status: str = Field(description="Service status", examples=["healthy"])
    service: str = Field(description="Service name", examples=["api"])
    version: str = Field(description="Service version", examples=["0.1.0"])
    timestamp: float = Field(description="Unix timestamp of the check")


class ErrorResponse(BaseModel):
    error_code: str
    message: str


# ==============================================================================
# REQUESTS
# ==============================================================================

class _MessageRequest(BaseModel):
    message: str = Field(..., max_length=4000, description="User message", examples=["¿Cuáles son las garantías exigidas?"])
    history: List[ConversationTurn] = Field(default_factory=list, description="Previous turns, oldest first")

    @field_validator("message")
    @classmethod
    def message_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message must not be empty")
        return v

    def turns(self) -> List[ConversationTurn]:
        return [*self.history, ConversationTurn(role="user", content=self.message)]


class AgentChatRequest(_MessageRequest):
    workspace: WorkspaceContext
    conversation_id: Optional[str] = None


class DocumentChatRequest(_MessageRequest):
    document: FocusedDocumentContext


class DocumentInsightsRequest(BaseModel):
    document: AnalysisContext
    question: Optional[str] = Field(default=None, max_length=1000)
    mode: InsightMode = InsightMode.MARKDOWN


class ComparisonRequest(BaseModel):
    documents: List[AnalysisContext] = Field(..., min_length=2, description="At least two documents")
    question: Optional[str] = Field(default=None, max_length=1000)


# ==============================================================================
# RESPONSES
# ==============================================================================

class LLMHealthResponse(BaseModel):
    success: bool = True
    message: str
    health: HealthStatus


class AgentReplyContext(BaseModel):
    analyses_count: int
    workspace_name: Optional[str] = None
    country: Optional[str] = None


class AgentReply(BaseModel):
    content: str
    timestamp: datetime
    conversation_id: str
    context: AgentReplyContext


class AgentChatResponse(BaseModel):
    success: bool = True
    message: str
    response: AgentReply
    llm_provider: Literal["openai", "gemini"]


class DocumentReply(BaseModel):
    content: str
    timestamp: datetime
    document_name: str
    analysis_id: str


class DocumentChatResponse(BaseModel):
    success: bool = True
    message: str
    response: DocumentReply
    llm_provider: Literal["openai", "gemini"]


class DocumentSummary(BaseModel):
    file_name: str
    document_type: DocumentType


class DocumentInsightsResponse(BaseModel):
    success: bool = True
    message: str
    insights: InsightOutcome
    document: DocumentSummary
    llm_provider: Literal["openai", "gemini"]


class ComparisonResponse(BaseModel):
    success: bool = True
    message: str
    insights: ComparisonResult
    compared_documents: List[DocumentSummary]
    llm_provider: Literal["openai", "gemini"]
