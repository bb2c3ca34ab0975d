"""Pydantic request/response schemas for the document service API.

Defines the public contract for the document-management, search, chat and
health endpoints.

Convention: request schemas end with "Request", response schemas end with
"Response".  Response bodies never include chunk embeddings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.chat import ChatMessage
from src.models.document import Document, DocumentStats
from src.models.rag import ChunkSearchResult, DocumentChunk, ProcessingResult


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentResponse(BaseModel):
    """Summary fields of one document (no chunk text)."""

    id: str
    filename: str
    title: str | None = None
    description: str | None = None
    file_size: int
    content_type: str
    status: str
    is_processed: bool
    processed_at: datetime | None = None
    total_pages: int | None = None
    total_chunks: int = 0
    processing_error: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            filename=document.filename,
            title=document.title,
            description=document.description,
            file_size=document.file_size,
            content_type=document.content_type,
            status=document.status.value,
            is_processed=document.is_processed,
            processed_at=document.processed_at,
            total_pages=document.total_pages,
            total_chunks=document.total_chunks,
            processing_error=document.processing_error,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class ChunkResponse(BaseModel):
    """One chunk in a document detail view."""

    id: str
    chunk_index: int
    content: str
    page_number: int | None = None
    has_embedding: bool
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk) -> ChunkResponse:
        return cls(
            id=chunk.id,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            page_number=chunk.page_number,
            has_embedding=chunk.embedding is not None,
            metadata=chunk.metadata,
        )


class DocumentDetailResponse(DocumentResponse):
    """A document with its chunks ordered by ``chunk_index``."""

    chunks: list[ChunkResponse] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """Returned immediately after upload; processing continues in the background."""

    document: DocumentResponse
    message: str


class UpdateDocumentRequest(BaseModel):
    """Patch body: only title and description are editable."""

    title: str | None = Field(default=None, max_length=500)
    description: str | None = Field(default=None, max_length=5000)


class DeleteResponse(BaseModel):
    id: str
    deleted: bool = True


class ProcessingResultResponse(BaseModel):
    """Outcome of a synchronous reprocess."""

    document_id: str
    success: bool
    chunks_created: int
    total_pages: int | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: ProcessingResult) -> ProcessingResultResponse:
        return cls(
            document_id=result.document_id,
            success=result.success,
            chunks_created=result.chunks_created,
            total_pages=result.total_pages,
            error=result.error,
        )


class StatsResponse(BaseModel):
    """Aggregate counts across all documents."""

    total_documents: int
    processed_documents: int
    pending_documents: int
    failed_documents: int
    total_chunks: int
    total_size_bytes: int
    total_size_mb: str = Field(description="Total storage in MB with two decimals, e.g. '1.25'.")

    @classmethod
    def from_stats(cls, stats: DocumentStats) -> StatsResponse:
        return cls(
            total_documents=stats.total_documents,
            processed_documents=stats.processed_documents,
            pending_documents=stats.pending_documents,
            failed_documents=stats.failed_documents,
            total_chunks=stats.total_chunks,
            total_size_bytes=stats.total_size_bytes,
            total_size_mb=stats.total_size_mb,
        )


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class SearchResultResponse(BaseModel):
    """A ranked chunk with similarity score and attribution."""

    chunk_id: str
    document_id: str
    content: str
    chunk_index: int
    page_number: int | None = None
    score: float
    document_title: str | None = None
    document_filename: str
    source: str

    @classmethod
    def from_result(cls, result: ChunkSearchResult) -> SearchResultResponse:
        return cls(
            chunk_id=result.chunk_id,
            document_id=result.document_id,
            content=result.content,
            chunk_index=result.chunk_index,
            page_number=result.page_number,
            score=result.score,
            document_title=result.document_title,
            document_filename=result.document_filename,
            source=result.source_label,
        )


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultResponse]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    """A user message with optional prior conversation turns."""

    message: str = Field(..., min_length=1, max_length=4000)
    conversation_history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    success: bool


# ---------------------------------------------------------------------------
# Health / errors
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    components: dict[str, bool]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
