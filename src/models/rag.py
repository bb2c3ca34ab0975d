"""RAG pipeline data models for the document knowledge base.

Defines Pydantic v2 models for chunk drafts produced by the chunker,
persisted chunks, chunks joined with their document's attribution fields,
search results, and ingestion results.  All models use frozen config.

Lifecycle of a chunk:

    1. CHUNKING: :class:`ChunkDraft` instances come out of
       ``TextChunker.chunk()`` with text, ordinal and word counts.
    2. STORAGE: the document store turns drafts into :class:`DocumentChunk`
       rows (embedding still ``None``).
    3. EMBEDDING: vectors are written back onto the rows in ordinal order.
    4. RETRIEVAL: :class:`EmbeddedChunk` carries a chunk plus the document
       title/filename so ranked results can be attributed without a second
       lookup; :class:`ChunkSearchResult` is the scored, public shape.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChunkDraft(BaseModel):
    """A chunk produced by the chunker, before persistence."""

    model_config = ConfigDict(frozen=True)

    text: str
    chunk_index: int = Field(ge=0)
    word_count: int = Field(default=0, ge=0)
    overlap_word_count: int = Field(
        default=0,
        ge=0,
        description="Number of leading words carried over from the previous chunk.",
    )


class DocumentChunk(BaseModel):
    """A persisted chunk of a document's text."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for this chunk.")
    document_id: str = Field(description="Identifier of the owning document.")
    chunk_index: int = Field(ge=0, description="0-based reading-order position within the document.")
    content: str
    # Always None from the sentence chunker: page boundaries are lost once
    # sentences are re-joined across pages.
    page_number: int | None = None
    embedding: list[float] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class EmbeddedChunk(BaseModel):
    """A chunk with a non-null embedding and its document's attribution fields."""

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk
    document_title: str | None = None
    document_filename: str

    @property
    def embedding(self) -> list[float]:
        return self.chunk.embedding or []


class ChunkSearchResult(BaseModel):
    """A ranked retrieval hit with similarity score and source attribution."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    document_id: str
    content: str
    chunk_index: int
    page_number: int | None = None
    score: float = Field(description="Cosine similarity between query and chunk, in [-1, 1].")
    document_title: str | None = None
    document_filename: str

    @property
    def source_label(self) -> str:
        """Title-or-filename used when citing this result."""
        return self.document_title or self.document_filename


class ProcessingResult(BaseModel):
    """Outcome of one ingestion pipeline run for a document."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    success: bool
    chunks_created: int = 0
    total_pages: int | None = None
    error: str | None = None
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
