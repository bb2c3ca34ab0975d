"""Abstract base class for chat-completion providers.

Defines the contract the chat orchestrator uses to generate assistant
replies, either in one piece or as a stream of text fragments.  Messages
use the OpenAI chat shape: ``{"role": "system" | "user" | "assistant",
"content": str}``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


# Concrete implementations: OpenAILLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the chat orchestrator."""

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a full text completion for a conversation.

        Parameters
        ----------
        messages:
            Ordered conversation, system message first.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def stream(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> AsyncIterator[str]:
        """Yield the response as incremental, non-empty text fragments.

        Implementations are async generators.  Errors raised mid-stream
        surface as :class:`~src.utils.errors.LLMError` from the iterator.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""
