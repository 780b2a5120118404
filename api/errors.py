"""Exception handlers for the FastAPI app.

``AllProvidersUnavailableError`` becomes a 503 with a user-facing Spanish
message. Anything unhandled is logged, optionally reported to a Slack
webhook, and answered with a generic 500.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import ORJSONResponse

from api.llm.errors import AllProvidersUnavailableError
from libs.common.settings import get_settings

logger = structlog.get_logger(__name__)

AI_UNAVAILABLE_MESSAGE = (
    "El servicio de IA no está disponible temporalmente. Por favor, inténtelo de nuevo más tarde."
)
INTERNAL_ERROR_MESSAGE = "Ocurrió un error inesperado. El equipo ya está trabajando para resolverlo."


async def notify_slack(webhook_url: Optional[str], error: Exception, request_id: str = "unknown") -> bool:
    """Post an error summary to Slack. Returns whether the post went through."""
    if not webhook_url:
        logger.debug("Slack webhook not configured, skipping notification")
        return False

    text = (
        "*Error en la API:*\n"
        f"- *Mensaje*: {str(error) or type(error).__name__}\n"
        f"- *Tipo*: {type(error).__name__}\n"
        f"- *Request ID*: {request_id}"
    )
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.post(webhook_url, json={"text": text})
            response.raise_for_status()
        return True
    except httpx.HTTPError as e:
        logger.warning("Slack notification failed", error=str(e))
        return False


async def all_providers_unavailable_handler(request: Request, exc: AllProvidersUnavailableError) -> ORJSONResponse:
    logger.error(
        "AI providers unavailable",
        request_id=getattr(request.state, "request_id", "unknown"),
        path=request.url.path,
        errors=exc.errors,
    )
    return ORJSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "error_code": "AI_UNAVAILABLE", "message": AI_UNAVAILABLE_MESSAGE},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        "Unhandled exception",
        request_id=request_id,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    await notify_slack(get_settings().slack_error_webhook, exc, request_id)
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error_code": "INTERNAL_ERROR", "message": INTERNAL_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AllProvidersUnavailableError, all_providers_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
