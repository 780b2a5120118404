"""Licita Agent API.

FastAPI application serving the tender-analysis agent: document insights,
comparisons and conversational Q&A backed by OpenAI with Gemini fallback.
"""

from __future__ import annotations

import logging
import time

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.errors import register_exception_handlers
from api.models import HealthResponse
from api.routers import agent as agent_router
from libs.common.settings import get_settings


def configure_logging(log_level: str) -> None:
    """Set the stdlib root level that structlog's filter_by_level checks."""
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger().setLevel(log_level)


# Configure structured logging
configure_logging(get_settings().log_level)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_VERSION = "0.1.0"
MAX_REQUEST_BYTES = 5 * 1024 * 1024  # extracted document text can be large


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Licita Agent API",
        description="Asistente de IA para análisis de documentos de contratación pública",
        version=API_VERSION,
        default_response_class=ORJSONResponse,
        debug=settings.debug,
    )

    cors_origins = ["*"] if settings.is_development else settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False if settings.is_development else True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        """Reject bodies larger than MAX_REQUEST_BYTES."""
        if request.method in ["POST", "PUT", "PATCH"]:
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit() and int(content_length) > MAX_REQUEST_BYTES:
                return ORJSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "error_code": "REQUEST_TOO_LARGE",
                        "message": f"Request body too large. Maximum size: {MAX_REQUEST_BYTES} bytes",
                    },
                )
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing and structured data."""
        start_time = time.time()
        request_id = f"req_{int(start_time * 1000000)}"
        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            user_agent=request.headers.get("user-agent"),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                request_id=request_id,
                error=str(e),
                process_time_ms=round((time.time() - start_time) * 1000, 2),
                exc_info=True,
            )
            raise

        logger.info(
            "Request completed",
            request_id=request_id,
            status_code=response.status_code,
            process_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)
    app.include_router(agent_router.router, prefix="/api", tags=["Agent"])

    @app.get("/healthz", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Liveness probe. Does not contact the AI providers."""
        return HealthResponse(status="healthy", service="api", version=API_VERSION, timestamp=time.time())

    @app.get("/readyz", response_model=HealthResponse, tags=["Health"])
    async def readiness_check() -> HealthResponse:
        """Readiness probe. Provider reachability lives at /api/v1/agent/health."""
        return HealthResponse(status="ready", service="api", version=API_VERSION, timestamp=time.time())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # For local development only
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
