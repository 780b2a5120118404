from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.llm.service import LLMService, get_llm_service
from api.models import (
    AgentChatRequest,
    AgentChatResponse,
    AgentReply,
    AgentReplyContext,
    ComparisonRequest,
    ComparisonResponse,
    DocumentChatRequest,
    DocumentChatResponse,
    DocumentInsightsRequest,
    DocumentInsightsResponse,
    DocumentReply,
    DocumentSummary,
    LLMHealthResponse,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


def _bad_request(request: Request, error: ValueError) -> HTTPException:
    logger.warning(
        "Rejected agent request",
        request_id=getattr(request.state, "request_id", "unknown"),
        error=str(error),
    )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get("/v1/agent/health", response_model=LLMHealthResponse, tags=["Agent"])
async def agent_health(service: LLMService = Depends(get_llm_service)) -> LLMHealthResponse:
    """Probe both AI providers and report which ones can serve requests.

    Always answers 200; an unhealthy status is reported in the body.
    """
    health = await service.check_health()
    return LLMHealthResponse(message="Estado de los proveedores de IA", health=health)


@router.post("/v1/agent/chat", response_model=AgentChatResponse, tags=["Agent"])
async def workspace_chat(
    request: Request,
    chat_request: AgentChatRequest,
    service: LLMService = Depends(get_llm_service),
) -> AgentChatResponse:
    """Answer a question about a whole workspace.

    Example:
        ```bash
        curl -X POST http://localhost:8000/api/v1/agent/chat \\
          -H "Content-Type: application/json" \\
          -d '{"message": "¿Qué documentos tienen riesgo alto?", "workspace": {"workspace_name": "Obras 2024"}}'
        ```
    """
    workspace = chat_request.workspace
    conversation_id = chat_request.conversation_id or uuid.uuid4().hex

    logger.info(
        "Processing workspace chat",
        request_id=getattr(request.state, "request_id", "unknown"),
        conversation_id=conversation_id,
        message=chat_request.message[:100],
    )

    try:
        content = await service.chat(chat_request.turns(), workspace)
    except ValueError as e:
        raise _bad_request(request, e)

    return AgentChatResponse(
        message="Respuesta del agente generada exitosamente",
        response=AgentReply(
            content=content,
            timestamp=datetime.now(timezone.utc),
            conversation_id=conversation_id,
            context=AgentReplyContext(
                analyses_count=len(workspace.analyses),
                workspace_name=workspace.workspace_name,
                country=workspace.country_name,
            ),
        ),
        llm_provider=service.preferred_provider,
    )


@router.post("/v1/agent/documents/chat", response_model=DocumentChatResponse, tags=["Agent"])
async def document_chat(
    request: Request,
    chat_request: DocumentChatRequest,
    service: LLMService = Depends(get_llm_service),
) -> DocumentChatResponse:
    """Answer a question about one analysed document."""
    document = chat_request.document

    try:
        content = await service.chat_about_document(chat_request.turns(), document)
    except ValueError as e:
        raise _bad_request(request, e)

    return DocumentChatResponse(
        message="Respuesta sobre el documento generada exitosamente",
        response=DocumentReply(
            content=content,
            timestamp=datetime.now(timezone.utc),
            document_name=document.analysis.document_name,
            analysis_id=document.analysis.id,
        ),
        llm_provider=service.preferred_provider,
    )


@router.post("/v1/agent/documents/insights", response_model=DocumentInsightsResponse, tags=["Agent"])
async def document_insights(
    request: Request,
    insights_request: DocumentInsightsRequest,
    service: LLMService = Depends(get_llm_service),
) -> DocumentInsightsResponse:
    """Analyse one document, as markdown or as a structured insight."""
    document = insights_request.document

    try:
        insights = await service.get_document_insights(
            document, insights_request.question, mode=insights_request.mode
        )
    except ValueError as e:
        raise _bad_request(request, e)

    return DocumentInsightsResponse(
        message="Análisis del documento generado exitosamente",
        insights=insights,
        document=DocumentSummary(file_name=document.file_name, document_type=document.document_type),
        llm_provider=service.preferred_provider,
    )


@router.post("/v1/agent/documents/comparison", response_model=ComparisonResponse, tags=["Agent"])
async def document_comparison(
    request: Request,
    comparison_request: ComparisonRequest,
    service: LLMService = Depends(get_llm_service),
) -> ComparisonResponse:
    """Compare two or more documents."""
    documents = comparison_request.documents

    try:
        result = await service.get_comparison_insights(documents, comparison_request.question)
    except ValueError as e:
        raise _bad_request(request, e)

    return ComparisonResponse(
        message="Comparación de documentos generada exitosamente",
        insights=result,
        compared_documents=[
            DocumentSummary(file_name=d.file_name, document_type=d.document_type) for d in documents
        ],
        llm_provider=service.preferred_provider,
    )
