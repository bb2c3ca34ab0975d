"""OpenAI-compatible chat-completion provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider` for
both single-shot and streamed completions.  When ``openai_base_url`` is
configured the client points at that OpenAI-compatible endpoint instead.

The rest of the application never imports ``openai`` for chat: SDK
exceptions are wrapped in :class:`LLMError` here.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import ConfigurationError, LLMError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o-mini`` by default (``OPENAI_CHAT_MODEL`` overrides it).
    Raises :class:`ConfigurationError` on construction when no API key is
    configured.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"
        if not self._api_key:
            raise ConfigurationError(
                message="OPENAI_API_KEY is not configured",
                provider_name=self._provider_label,
            )

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(60.0, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_chat_model

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a full completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> AsyncIterator[str]:
        """Yield non-empty content deltas from a streamed completion."""
        fragments = 0
        try:
            response_stream = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
            async for chunk in response_stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    fragments += 1
                    yield content
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} streaming error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_completion_stream",
            model=self._model,
            provider=self._provider_label,
            fragments=fragments,
        )

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
