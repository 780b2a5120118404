"""Dual-provider LLM orchestration: health checks, dispatch with fallback, service facade."""

from .errors import AllProvidersUnavailableError, LLMServiceError, ProviderError
from .service import LLMService, get_llm_service

__all__ = [
    "AllProvidersUnavailableError",
    "LLMService",
    "LLMServiceError",
    "ProviderError",
    "get_llm_service",
]
