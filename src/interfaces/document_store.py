"""Abstract base class for document and chunk persistence.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# IDocumentStore hides the relational store behind async methods.  The
# concrete implementation is SQLiteDocumentStore
# (src/providers/document_store/sqlite_document_store.py).
#
# Write methods that touch chunks or processing state re-check that the
# document still exists inside the same transaction and raise
# NotFoundError otherwise, so a document deleted mid-ingestion is never
# resurrected and never gains orphan chunks.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

from src.models.document import Document, DocumentStats, DocumentStatus
from src.models.rag import ChunkDraft, DocumentChunk, EmbeddedChunk

EDITABLE_FIELDS = ("title", "description")


# Concrete implementation: SQLiteDocumentStore (src/providers/document_store/)
class IDocumentStore(ABC):
    """Contract for document metadata, chunk text, and chunk vector storage."""

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    # ── Documents ──────────────────────────────────────────────────────

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert a new document row and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """Return all documents ordered by ``created_at`` descending."""

    @abstractmethod
    async def update_document(
        self,
        document_id: str,
        changes: Mapping[str, str | None],
    ) -> Document | None:
        """Patch the fields named in *changes*, keyed by ``EDITABLE_FIELDS``.

        Absent keys leave a field unchanged; a ``None`` value clears it.
        Returns the updated document, or ``None`` if it does not exist.

        Raises
        ------
        src.utils.errors.ValidationError
            If *changes* names a field outside ``EDITABLE_FIELDS``.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete the document and (by cascade) its chunks.

        Returns ``True`` if a row was deleted.
        """

    # ── Processing state ───────────────────────────────────────────────

    @abstractmethod
    async def set_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error: str | None = None,
    ) -> None:
        """Move the document to *status*.

        FAILED records *error* and clears ``is_processed``; PROCESSING clears
        the previous error.

        Raises
        ------
        src.utils.errors.NotFoundError
            If the document no longer exists.
        """

    @abstractmethod
    async def mark_processed(
        self,
        document_id: str,
        *,
        total_pages: int,
        total_chunks: int,
    ) -> Document:
        """Set ``is_processed`` with page/chunk counts and a timestamp.

        Raises
        ------
        src.utils.errors.NotFoundError
            If the document no longer exists.
        """

    # ── Chunks ─────────────────────────────────────────────────────────

    @abstractmethod
    async def replace_chunks(
        self,
        document_id: str,
        drafts: list[ChunkDraft],
        embeddings: list[list[float]],
    ) -> list[DocumentChunk]:
        """Atomically replace the document's entire embedded chunk set.

        Deletes existing chunks and inserts *drafts* with their vectors
        (matched by position) in one transaction, so concurrent readers see
        either the old embedded set or the new one, never an empty or mixed
        set.

        Raises
        ------
        src.utils.errors.NotFoundError
            If the document no longer exists.
        src.utils.errors.ValidationError
            If the number of vectors differs from the number of drafts.
        """

    @abstractmethod
    async def get_chunks(self, document_id: str) -> list[DocumentChunk]:
        """Return the document's chunks ordered by ``chunk_index``."""

    @abstractmethod
    async def list_embedded_chunks(self) -> list[EmbeddedChunk]:
        """Return every chunk with a non-null embedding, across all documents.

        Ordered by document creation then ``chunk_index`` so ranking ties
        resolve deterministically.
        """

    # ── Aggregates ─────────────────────────────────────────────────────

    @abstractmethod
    async def get_stats(self) -> DocumentStats:
        """Return collection-wide counts and total stored bytes."""
