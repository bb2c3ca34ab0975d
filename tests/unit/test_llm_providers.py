"""Unit tests for the OpenAI chat-completion provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.utils.errors import ConfigurationError, LLMError

_PATCH_TARGET = "src.providers.llm.openai_provider.openai.AsyncOpenAI"
_MESSAGES = [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Hi"}]


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_chat_model": "gpt-4o-mini",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _provider_with(mock_client: AsyncMock) -> OpenAILLMProvider:
    with patch(_PATCH_TARGET, return_value=mock_client):
        return OpenAILLMProvider(_settings())


def _completion(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=42)
    return response


def _stream_chunk(content: str | None) -> MagicMock:
    return MagicMock(choices=[MagicMock(delta=MagicMock(content=content))])


class _FakeStream:
    """Async-iterable stand-in for the SDK's streamed response."""

    def __init__(self, chunks: list, error: Exception | None = None) -> None:
        self._chunks = chunks
        self._error = error

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class TestConstruction:
    def test_missing_key_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            OpenAILLMProvider(_settings(openai_api_key=""))

    def test_metadata(self) -> None:
        provider = _provider_with(AsyncMock())
        assert provider.get_provider_name() == "openai"
        assert provider.is_available() is True

    def test_custom_base_url(self) -> None:
        with patch(_PATCH_TARGET, return_value=AsyncMock()):
            provider = OpenAILLMProvider(_settings(openai_base_url="http://localhost:9000/v1"))
        assert provider.get_provider_name() == "openai-compatible"


class TestComplete:
    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion("Hello there"))
        provider = _provider_with(mock_client)

        result = await provider.complete(_MESSAGES, temperature=0.2, max_tokens=50)

        assert result == "Hello there"
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == _MESSAGES
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_empty_content_raises(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_completion(None))
        provider = _provider_with(mock_client)

        with pytest.raises(LLMError, match="empty response"):
            await provider.complete(_MESSAGES)

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=_request())
        )
        provider = _provider_with(mock_client)

        with pytest.raises(LLMError, match="timed out"):
            await provider.complete(_MESSAGES)

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=_request())
        )
        provider = _provider_with(mock_client)

        with pytest.raises(LLMError):
            await provider.complete(_MESSAGES)


class TestStream:
    @pytest.mark.asyncio
    async def test_stream_yields_non_empty_fragments(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_FakeStream(
                [_stream_chunk("Hel"), _stream_chunk(None), _stream_chunk("lo"), _stream_chunk("")]
            )
        )
        provider = _provider_with(mock_client)

        fragments = [fragment async for fragment in provider.stream(_MESSAGES)]

        assert fragments == ["Hel", "lo"]
        assert mock_client.chat.completions.create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_chunks_without_choices_are_skipped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_FakeStream([MagicMock(choices=[]), _stream_chunk("ok")])
        )
        provider = _provider_with(mock_client)

        assert [f async for f in provider.stream(_MESSAGES)] == ["ok"]

    @pytest.mark.asyncio
    async def test_mid_stream_error_is_wrapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_FakeStream(
                [_stream_chunk("partial")],
                error=openai.APIConnectionError(request=_request()),
            )
        )
        provider = _provider_with(mock_client)

        received: list[str] = []
        with pytest.raises(LLMError, match="streaming error"):
            async for fragment in provider.stream(_MESSAGES):
                received.append(fragment)
        assert received == ["partial"]
