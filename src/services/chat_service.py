"""Chat orchestrator: retrieval-grounded replies from the assistant.

Each turn:

  1. RETRIEVE -- ask :class:`RetrievalService` for reference context.  This
                 finishes before any generation starts; an empty string
                 simply means no grounding.
  2. PROMPT   -- system prompt + context, then the last N history turns
                 (``user`` / ``assistant`` only), then the new message.
  3. GENERATE -- one-shot completion (:meth:`ChatService.chat`) or a
                 fragment stream (:meth:`ChatService.stream`).

Generation failures never surface as exceptions: ``chat`` returns the
configured apology with ``success=False`` and ``stream`` ends with an
error event.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.chat import ChatMessage, ChatReply
from src.services.retrieval_service import CONTEXT_SEPARATOR, RetrievalService
from src.utils.errors import ProviderError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

_ALLOWED_HISTORY_ROLES = frozenset({"user", "assistant"})

_DEFAULT_SYSTEM_PROMPT = (
    "You are DEC Assistant, the assistant of the DEC Learning platform. "
    "Answer questions about accounting ethics, the DEC diploma and the use "
    "of the platform."
)
_DEFAULT_FALLBACK = (
    "Sorry, I am having technical difficulties right now. "
    "Please try again in a few moments."
)
_DEFAULT_STREAM_ERROR = "An error occurred while generating the response."


class ChatService:
    """Builds grounded prompts and calls the LLM provider.

    Parameters
    ----------
    llm:
        Chat-completion provider.
    retrieval_service:
        Optional; without it the assistant answers ungrounded.
    chat_config:
        The ``chat`` section of config.yaml (temperature, max_tokens,
        history_window, system_prompt, fallback_message,
        stream_error_message).
    context_limit:
        Number of chunks requested from retrieval per turn.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        retrieval_service: RetrievalService | None = None,
        chat_config: dict | None = None,
        context_limit: int = 3,
    ) -> None:
        config = chat_config or {}
        self._llm = llm
        self._retrieval = retrieval_service
        self._context_limit = context_limit
        self._temperature = float(config.get("temperature", 0.7))
        self._max_tokens = int(config.get("max_tokens", 1000))
        self._history_window = int(config.get("history_window", 10))
        self._system_prompt = (config.get("system_prompt") or _DEFAULT_SYSTEM_PROMPT).strip()
        self._fallback_message = config.get("fallback_message") or _DEFAULT_FALLBACK
        self._stream_error_message = config.get("stream_error_message") or _DEFAULT_STREAM_ERROR

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def chat(self, message: str, history: list[ChatMessage] | None = None) -> ChatReply:
        """Return the full assistant reply for *message*."""
        context = await self._get_context(message)
        messages = self.build_messages(message, history, context)
        try:
            response = await self._llm.complete(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except ProviderError as exc:
            logger.error("chat_completion_failed", error=exc.message, provider=exc.provider_name)
            return ChatReply(response=self._fallback_message, success=False)

        return ChatReply(response=response, success=True, sources_used=_count_sources(context))

    async def stream(
        self, message: str, history: list[ChatMessage] | None = None
    ) -> AsyncIterator[str]:
        """Yield Server-Sent Event frames for the assistant reply.

        Frames: ``{"content": ...}`` per fragment, then ``{"done": true}``;
        on provider failure a single ``{"error": ...}`` frame ends the stream.
        """
        context = await self._get_context(message)
        messages = self.build_messages(message, history, context)
        fragments = 0
        try:
            async for fragment in self._llm.stream(
                messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            ):
                fragments += 1
                yield _sse({"content": fragment})
        except ProviderError as exc:
            logger.error(
                "chat_stream_failed",
                error=exc.message,
                provider=exc.provider_name,
                fragments=fragments,
            )
            yield _sse({"error": self._stream_error_message})
            return

        yield _sse({"done": True})

    def build_messages(
        self,
        message: str,
        history: list[ChatMessage] | None,
        context: str = "",
    ) -> list[dict[str, str]]:
        """Assemble the provider message list for one turn."""
        messages = [{"role": "system", "content": self._system_prompt + context}]
        if history:
            recent = history[-self._history_window:] if self._history_window > 0 else []
            messages.extend(
                {"role": turn.role, "content": turn.content}
                for turn in recent
                if turn.role in _ALLOWED_HISTORY_ROLES
            )
        messages.append({"role": "user", "content": message})
        return messages

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_context(self, message: str) -> str:
        if self._retrieval is None:
            return ""
        context = await self._retrieval.get_context(message, self._context_limit)
        logger.info(
            "chat_context_retrieved",
            grounded=bool(context),
            sources=_count_sources(context),
        )
        return context


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def _count_sources(context: str) -> int:
    if not context:
        return 0
    return context.count(CONTEXT_SEPARATOR) + 1
