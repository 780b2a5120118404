"""Exceptions raised by the LLM orchestration layer."""

from __future__ import annotations

from typing import Dict


class LLMServiceError(Exception):
    """Base class for LLM orchestration failures."""


class ProviderError(LLMServiceError):
    """A single provider failed (auth, quota, timeout, malformed response).

    The dispatcher catches this and moves on to the next candidate; it is
    never surfaced to request handlers.
    """

    def __init__(self, provider_id: str, message: str):
        self.provider_id = provider_id
        self.message = message
        super().__init__(f"{provider_id}: {message}")


class AllProvidersUnavailableError(LLMServiceError):
    """No provider could serve the request. Terminal for the caller."""

    def __init__(self, errors: Dict[str, str] | None = None):
        self.errors = dict(errors or {})
        if self.errors:
            detail = "; ".join(f"{pid}: {msg}" for pid, msg in self.errors.items())
            message = f"No AI providers are available ({detail})"
        else:
            message = "No AI providers are available"
        super().__init__(message)
