"""Document management: listing, detail, metadata edits, deletion, stats.

Thin service over :class:`IDocumentStore` and :class:`IFileStorage` that
turns "missing" lookups into :class:`NotFoundError` for the API layer.
"""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from src.interfaces.document_store import IDocumentStore
from src.interfaces.file_storage import IFileStorage
from src.models.document import Document, DocumentStats
from src.models.rag import DocumentChunk
from src.utils.errors import NotFoundError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class DocumentService:
    """CRUD-style operations on uploaded documents."""

    def __init__(self, document_store: IDocumentStore, file_storage: IFileStorage) -> None:
        self._store = document_store
        self._file_storage = file_storage

    async def list_documents(self) -> list[Document]:
        """All documents, newest first."""
        return await self._store.list_documents()

    async def get_document(self, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None:
            raise NotFoundError(message=f"Document not found: {document_id}")
        return document

    async def get_document_with_chunks(
        self, document_id: str
    ) -> tuple[Document, list[DocumentChunk]]:
        """Return the document and its chunks ordered by ``chunk_index``."""
        document = await self.get_document(document_id)
        chunks = await self._store.get_chunks(document_id)
        return document, chunks

    async def update_document(
        self,
        document_id: str,
        changes: Mapping[str, str | None],
    ) -> Document:
        """Patch title and/or description; other fields are not editable.

        Only keys present in *changes* are written, so ``{"title": None}``
        clears the title and leaves the description alone.
        """
        document = await self._store.update_document(document_id, changes)
        if document is None:
            raise NotFoundError(message=f"Document not found: {document_id}")
        logger.info("document_updated", document_id=document_id, fields=sorted(changes))
        return document

    async def delete_document(self, document_id: str) -> Document:
        """Delete the backing file, then the row (chunks cascade).

        Returns the document as it was before deletion.
        """
        document = await self.get_document(document_id)
        await self._file_storage.delete(document.filepath)
        deleted = await self._store.delete_document(document_id)
        if not deleted:
            # Lost a race with another delete between lookup and delete.
            raise NotFoundError(message=f"Document not found: {document_id}")
        logger.info("document_deleted", document_id=document_id, filename=document.filename)
        return document

    async def get_stats(self) -> DocumentStats:
        return await self._store.get_stats()
