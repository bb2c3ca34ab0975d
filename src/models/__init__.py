"""Domain models -- re-exports all public model classes.

The models are organized across three submodules by domain concern:
    - document.py -- Uploaded document metadata, status, and collection stats
    - rag.py      -- Chunks, embedded chunks, search results, processing results
    - chat.py     -- Conversation history turns and chat replies
"""

from __future__ import annotations

from src.models.chat import ChatMessage, ChatReply
from src.models.document import Document, DocumentStats, DocumentStatus
from src.models.rag import (
    ChunkDraft,
    ChunkSearchResult,
    DocumentChunk,
    EmbeddedChunk,
    ProcessingResult,
)

__all__ = [
    "ChatMessage",
    "ChatReply",
    "ChunkDraft",
    "ChunkSearchResult",
    "Document",
    "DocumentChunk",
    "DocumentStats",
    "DocumentStatus",
    "EmbeddedChunk",
    "ProcessingResult",
]
