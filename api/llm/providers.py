"""Provider invokers for the two supported text-generation APIs.

Each provider turns ``(system_prompt, turns)`` into one completion. The two
request shapes differ on purpose:

- OpenAI gets a chat message array (system message followed by the turns).
- Gemini gets a single concatenated prompt string.

Sampling parameters are fixed per provider. A provider never retries on its
own: every failure, including a timeout, surfaces as ``ProviderError`` and
the dispatcher decides whether to fall back.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

import structlog
from google import genai
from google.genai import types
from openai import AsyncOpenAI

from api.composer.prompts import TURN_LABELS
from api.llm.errors import ProviderError
from api.schemas.analysis import ConversationTurn, ProviderConfig

logger = structlog.get_logger(__name__)

NO_RESPONSE_TEXT = "No se generó respuesta"


class LLMProvider:
    """Common invoke/ping plumbing; subclasses implement the SDK calls."""

    provider_id: str = ""

    def __init__(self, config: ProviderConfig, timeout: float = 30.0, client: Any = None):
        if config.provider_id != self.provider_id:
            raise ValueError(
                f"{type(self).__name__} cannot be built from a {config.provider_id} config"
            )
        self.config = config
        self.timeout = timeout
        self.client = client if client is not None else self._create_client()

    @property
    def model_name(self) -> str:
        return self.config.model_name

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _create_client(self) -> Any:
        raise NotImplementedError

    async def _ping(self) -> None:
        raise NotImplementedError

    async def _generate(self, system_prompt: str, turns: List[ConversationTurn]) -> str:
        raise NotImplementedError

    async def ping(self) -> None:
        """Cheapest call that proves the key and model are usable. Raises on failure."""
        if self.client is None:
            raise ProviderError(self.provider_id, "API key not configured")
        await self._ping()

    async def invoke(self, system_prompt: str, turns: Sequence[ConversationTurn]) -> str:
        if not system_prompt or not system_prompt.strip():
            raise ValueError("system_prompt must not be empty")
        if self.client is None:
            raise ProviderError(self.provider_id, "API key not configured")

        start_time = time.time()
        try:
            text = await asyncio.wait_for(
                self._generate(system_prompt, list(turns)), timeout=self.timeout
            )
        except ProviderError:
            raise
        except asyncio.TimeoutError as e:
            raise ProviderError(self.provider_id, f"timed out after {self.timeout:g}s") from e
        except Exception as e:
            raise ProviderError(self.provider_id, str(e) or type(e).__name__) from e

        logger.info(
            "Provider call completed",
            provider=self.provider_id,
            model=self.model_name,
            turns=len(turns),
            prompt_chars=len(system_prompt),
            response_chars=len(text),
            elapsed_ms=int((time.time() - start_time) * 1000),
        )
        return text


class OpenAIProvider(LLMProvider):
    """Chat Completions provider."""

    provider_id = "openai"
    temperature = 0.7
    max_tokens = 2000

    def _create_client(self) -> Optional[AsyncOpenAI]:
        if not self.config.configured:
            return None
        # Retries are the dispatcher's job, not the SDK's.
        return AsyncOpenAI(api_key=self.config.api_key, timeout=self.timeout, max_retries=0)

    async def _ping(self) -> None:
        await self.client.models.list()

    @staticmethod
    def build_messages(system_prompt: str, turns: Sequence[ConversationTurn]) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in turns)
        return messages

    async def _generate(self, system_prompt: str, turns: List[ConversationTurn]) -> str:
        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=self.build_messages(system_prompt, turns),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not response.choices:
            raise ProviderError(self.provider_id, "response contained no choices")
        content = response.choices[0].message.content
        return content or NO_RESPONSE_TEXT


class GeminiProvider(LLMProvider):
    """Gemini provider driven by one concatenated prompt string."""

    provider_id = "gemini"
    temperature = 0.7
    max_output_tokens = 2048

    def _create_client(self) -> Optional[genai.Client]:
        if not self.config.configured:
            return None
        return genai.Client(api_key=self.config.api_key)

    async def _ping(self) -> None:
        await self.client.aio.models.get(model=self.model_name)

    @staticmethod
    def build_prompt(system_prompt: str, turns: Sequence[ConversationTurn]) -> str:
        parts = [system_prompt]
        for turn in turns:
            parts.append(f"{TURN_LABELS[turn.role]}: {turn.content}")
        return "\n\n".join(parts)

    async def _generate(self, system_prompt: str, turns: List[ConversationTurn]) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=self.build_prompt(system_prompt, turns),
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            ),
        )
        return response.text or NO_RESPONSE_TEXT


PROVIDER_CLASSES = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}


def build_providers(configs: Sequence[ProviderConfig], timeout: float = 30.0) -> Dict[str, LLMProvider]:
    """Instantiate one provider per config, keyed by provider id."""
    providers: Dict[str, LLMProvider] = {}
    for config in configs:
        provider_cls = PROVIDER_CLASSES[config.provider_id]
        providers[config.provider_id] = provider_cls(config, timeout=timeout)
        logger.info(
            "Provider initialised",
            provider=config.provider_id,
            model=config.model_name,
            configured=config.configured,
        )
    return providers
