"""Tests for the OpenAI and Gemini provider invokers.

The SDK clients are replaced with mocks; no network calls are made.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.composer.prompts import format_history
from api.llm.errors import ProviderError
from api.llm.providers import (
    NO_RESPONSE_TEXT,
    GeminiProvider,
    OpenAIProvider,
    build_providers,
)
from api.schemas.analysis import ConversationTurn, ProviderConfig

OPENAI_CONFIG = ProviderConfig(provider_id="openai", model_name="gpt-4o", api_key="sk-test")
GEMINI_CONFIG = ProviderConfig(provider_id="gemini", model_name="gemini-2.5-flash", api_key="gm-test")

TURNS = [
    ConversationTurn(role="user", content="¿Cuál es el plazo?"),
    ConversationTurn(role="assistant", content="180 días."),
    ConversationTurn(role="user", content="¿Y la garantía?"),
]


def openai_client(content="Respuesta", choices=True):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))] if choices else []
    client.chat.completions.create = AsyncMock(return_value=response)
    client.models.list = AsyncMock(return_value=[])
    return client


def gemini_client(text="Respuesta"):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=text))
    client.aio.models.get = AsyncMock(return_value=MagicMock())
    return client


class TestOpenAIProvider:
    def test_build_messages_puts_system_first(self):
        messages = OpenAIProvider.build_messages("Sistema", TURNS)

        assert messages[0] == {"role": "system", "content": "Sistema"}
        assert messages[1:] == [
            {"role": "user", "content": "¿Cuál es el plazo?"},
            {"role": "assistant", "content": "180 días."},
            {"role": "user", "content": "¿Y la garantía?"},
        ]

    @pytest.mark.asyncio
    async def test_invoke_sends_fixed_sampling_parameters(self):
        # Arrange
        client = openai_client("Garantía del 5%")
        provider = OpenAIProvider(OPENAI_CONFIG, client=client)

        # Act
        result = await provider.invoke("Sistema", TURNS)

        # Assert
        assert result == "Garantía del 5%"
        client.chat.completions.create.assert_awaited_once()
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000
        assert len(kwargs["messages"]) == 4

    @pytest.mark.asyncio
    async def test_empty_content_becomes_placeholder(self):
        provider = OpenAIProvider(OPENAI_CONFIG, client=openai_client(content=None))

        assert await provider.invoke("Sistema", TURNS) == NO_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_no_choices_is_provider_error(self):
        provider = OpenAIProvider(OPENAI_CONFIG, client=openai_client(choices=False))

        with pytest.raises(ProviderError) as exc_info:
            await provider.invoke("Sistema", TURNS)

        assert exc_info.value.provider_id == "openai"

    @pytest.mark.asyncio
    async def test_sdk_exception_is_wrapped(self):
        client = openai_client()
        client.chat.completions.create.side_effect = RuntimeError("401 invalid api key")
        provider = OpenAIProvider(OPENAI_CONFIG, client=client)

        with pytest.raises(ProviderError) as exc_info:
            await provider.invoke("Sistema", TURNS)

        assert exc_info.value.message == "401 invalid api key"

    @pytest.mark.asyncio
    async def test_slow_call_times_out(self):
        client = openai_client()

        async def slow_create(**kwargs):
            await asyncio.sleep(5)

        client.chat.completions.create = slow_create
        provider = OpenAIProvider(OPENAI_CONFIG, timeout=0.01, client=client)

        with pytest.raises(ProviderError) as exc_info:
            await provider.invoke("Sistema", TURNS)

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_blank_system_prompt_rejected(self):
        provider = OpenAIProvider(OPENAI_CONFIG, client=openai_client())

        with pytest.raises(ValueError):
            await provider.invoke("   ", TURNS)

    @pytest.mark.asyncio
    async def test_ping_lists_models(self):
        client = openai_client()
        provider = OpenAIProvider(OPENAI_CONFIG, client=client)

        await provider.ping()

        client.models.list.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_key_means_unconfigured(self):
        provider = OpenAIProvider(ProviderConfig(provider_id="openai", model_name="gpt-4o"))

        assert provider.configured is False
        with pytest.raises(ProviderError):
            await provider.ping()
        with pytest.raises(ProviderError):
            await provider.invoke("Sistema", TURNS)

    def test_rejects_other_provider_config(self):
        with pytest.raises(ValueError):
            OpenAIProvider(GEMINI_CONFIG, client=openai_client())


class TestGeminiProvider:
    def test_build_prompt_concatenates_labelled_turns(self):
        prompt = GeminiProvider.build_prompt("Sistema", TURNS)

        assert prompt == (
            "Sistema\n\n"
            "Usuario: ¿Cuál es el plazo?\n\n"
            "Asistente: 180 días.\n\n"
            "Usuario: ¿Y la garantía?"
        )

    @pytest.mark.asyncio
    async def test_invoke_sends_single_prompt(self):
        # Arrange
        client = gemini_client("Respuesta de Gemini")
        provider = GeminiProvider(GEMINI_CONFIG, client=client)

        # Act
        result = await provider.invoke("Sistema", TURNS)

        # Assert
        assert result == "Respuesta de Gemini"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert kwargs["contents"] == GeminiProvider.build_prompt("Sistema", TURNS)
        assert kwargs["config"].temperature == 0.7
        assert kwargs["config"].max_output_tokens == 2048

    @pytest.mark.asyncio
    async def test_empty_text_becomes_placeholder(self):
        provider = GeminiProvider(GEMINI_CONFIG, client=gemini_client(text=None))

        assert await provider.invoke("Sistema", TURNS) == NO_RESPONSE_TEXT

    @pytest.mark.asyncio
    async def test_ping_fetches_model(self):
        client = gemini_client()
        provider = GeminiProvider(GEMINI_CONFIG, client=client)

        await provider.ping()

        client.aio.models.get.assert_awaited_once_with(model="gemini-2.5-flash")

    @pytest.mark.asyncio
    async def test_ping_failure_propagates(self):
        client = gemini_client()
        client.aio.models.get.side_effect = RuntimeError("model not found")
        provider = GeminiProvider(GEMINI_CONFIG, client=client)

        with pytest.raises(RuntimeError):
            await provider.ping()


def test_gemini_prompt_shares_history_labels():
    prompt = GeminiProvider.build_prompt("Sistema", TURNS)
    history = format_history(TURNS)

    assert prompt.endswith(history.replace("\n", "\n\n"))


def test_build_providers_keys_by_id():
    providers = build_providers(
        [
            ProviderConfig(provider_id="openai", model_name="gpt-4o"),
            ProviderConfig(provider_id="gemini", model_name="gemini-2.5-flash"),
        ],
        timeout=12.0,
    )

    assert isinstance(providers["openai"], OpenAIProvider)
    assert isinstance(providers["gemini"], GeminiProvider)
    assert providers["openai"].timeout == 12.0
    assert not providers["openai"].configured
    assert not providers["gemini"].configured
