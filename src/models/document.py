"""Document models for uploaded reference PDFs.

A :class:`Document` is the metadata record for one uploaded file.  Its
chunks live in :mod:`src.models.rag`.  All models are frozen; state changes
go through the document store, which returns fresh instances.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class DocumentStatus(str, Enum):  # noqa: UP042
    """Processing state of a document.

    ``uploaded -> processing -> processed`` on success and
    ``uploaded -> processing -> failed`` on error.  FAILED is not terminal:
    reprocessing moves the document back to PROCESSING.
    """

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class Document(BaseModel):
    """Metadata for one uploaded reference document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier (UUID) for the document.")
    filename: str = Field(description="Original filename as uploaded.")
    filepath: str = Field(description="Path of the stored file on disk.")
    title: str | None = Field(default=None, description="Optional display title.")
    description: str | None = Field(default=None, description="Optional free-text description.")
    file_size: int = Field(ge=0, description="Size of the stored file in bytes.")
    content_type: str = Field(default="application/pdf", description="MIME type reported on upload.")
    status: DocumentStatus = DocumentStatus.UPLOADED
    is_processed: bool = False
    processed_at: datetime | None = None
    total_pages: int | None = Field(default=None, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    processing_error: str | None = Field(
        default=None,
        description="Error message from the last failed processing run.",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def display_name(self) -> str:
        """Title when set, otherwise the original filename."""
        return self.title or self.filename


class DocumentStats(BaseModel):
    """Aggregate counts across the document collection."""

    model_config = ConfigDict(frozen=True)

    total_documents: int = 0
    processed_documents: int = 0
    pending_documents: int = 0
    failed_documents: int = 0
    total_chunks: int = 0
    total_size_bytes: int = 0

    @property
    def total_size_mb(self) -> str:
        """Total storage in megabytes, formatted with two decimals."""
        return f"{self.total_size_bytes / (1024 * 1024):.2f}"
