"""Two-tier provider dispatch with fallback.

The configured preferred provider is always tried first, then the other one,
but only providers that passed the health check are candidates. A failing
candidate is logged and skipped; the caller only sees an error once every
candidate has failed.
"""

from __future__ import annotations

import time
from typing import Dict, List, Mapping, Sequence

import structlog

from api.llm.errors import AllProvidersUnavailableError, ProviderError
from api.llm.health import HealthMonitor
from api.llm.providers import LLMProvider
from api.schemas.analysis import ConversationTurn, HealthStatus

logger = structlog.get_logger(__name__)


class Dispatcher:
    def __init__(self, providers: Mapping[str, LLMProvider], health_monitor: HealthMonitor):
        if len(providers) != 2:
            raise ValueError("Dispatcher requires exactly two providers")
        self.providers = dict(providers)
        self.health_monitor = health_monitor

    @property
    def preferred_provider(self) -> str:
        return self.health_monitor.preferred_provider

    def candidate_order(self, health: HealthStatus) -> List[str]:
        """Preferred first, then the other, keeping only available providers."""
        preferred = self.preferred_provider
        others = [pid for pid in self.providers if pid != preferred]
        return [
            pid
            for pid in [preferred, *others]
            if pid in health.providers and health.providers[pid].available
        ]

    async def dispatch(self, system_prompt: str, turns: Sequence[ConversationTurn]) -> str:
        health = await self.health_monitor.check_health()
        if health.status == "unhealthy":
            logger.error("No AI providers available", preferred=self.preferred_provider)
            raise AllProvidersUnavailableError()

        errors: Dict[str, str] = {}
        candidates = self.candidate_order(health)
        for position, provider_id in enumerate(candidates):
            provider = self.providers[provider_id]
            start_time = time.time()
            try:
                text = await provider.invoke(system_prompt, turns)
            except ProviderError as e:
                errors[provider_id] = e.message
                logger.warning(
                    "Provider call failed",
                    provider=provider_id,
                    error=e.message,
                    elapsed_ms=int((time.time() - start_time) * 1000),
                    has_fallback=position + 1 < len(candidates),
                )
                continue

            if position > 0:
                logger.info("Served by fallback provider", provider=provider_id, failed=list(errors))
            return text

        logger.error("All provider calls failed", errors=errors)
        raise AllProvidersUnavailableError(errors)
