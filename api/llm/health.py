"""Provider health monitor.

Health is recomputed on every call. A stale "healthy" snapshot would send
requests into a provider that has since gone away, so nothing is cached.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, Mapping

import structlog

from api.llm.providers import LLMProvider
from api.schemas.analysis import HealthStatus, ProviderHealth

logger = structlog.get_logger(__name__)


class HealthMonitor:
    """Pings each provider and reports which ones can take traffic."""

    def __init__(
        self,
        providers: Mapping[str, LLMProvider],
        preferred_provider: str,
        timeout: float = 10.0,
    ):
        if preferred_provider not in providers:
            raise ValueError(f"Unknown preferred provider: {preferred_provider}")
        self.providers = dict(providers)
        self.preferred_provider = preferred_provider
        self.timeout = timeout

    async def _is_available(self, provider: LLMProvider) -> bool:
        if not provider.configured:
            return False
        try:
            await asyncio.wait_for(provider.ping(), timeout=self.timeout)
            return True
        except Exception as e:
            logger.warning(
                "Provider health check failed",
                provider=provider.provider_id,
                model=provider.model_name,
                error=str(e) or type(e).__name__,
            )
            return False

    async def check_health(self) -> HealthStatus:
        """Never raises; any ping failure just marks that provider unavailable."""
        now = datetime.now(timezone.utc)
        results: Dict[str, ProviderHealth] = {}
        for provider_id, provider in self.providers.items():
            results[provider_id] = ProviderHealth(
                available=await self._is_available(provider),
                model=provider.model_name,
                last_check=now,
            )

        healthy = any(health.available for health in results.values())
        status = HealthStatus(
            status="healthy" if healthy else "unhealthy",
            preferred_provider=self.preferred_provider,
            providers=results,
        )
        logger.info(
            "Provider health computed",
            status=status.status,
            available=status.available_providers(),
        )
        return status
