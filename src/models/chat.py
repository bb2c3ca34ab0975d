"""Chat orchestrator models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One turn of conversation history supplied by the client.

    Roles other than ``user`` and ``assistant`` are accepted here but
    dropped when the prompt is assembled.
    """

    model_config = ConfigDict(frozen=True)

    role: str
    content: str


class ChatReply(BaseModel):
    """Non-streaming chat response."""

    model_config = ConfigDict(frozen=True)

    response: str
    success: bool
    sources_used: int = Field(
        default=0,
        ge=0,
        description="Number of reference chunks injected into the system prompt.",
    )
