"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **store file -> extract -> clean -> chunk -> embed ->
replace chunks with their vectors -> mark processed**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the PDF processor, chunker, embedding provider, document store
and file storage without any of them knowing about each other.  All
collaborators are injected, so tests can swap any of them.

Document state machine::

    uploaded -> processing -> processed
                           -> failed -> processing (reprocess)

``process_document`` never raises past its boundary: every failure is
returned as ``ProcessingResult(success=False)`` and recorded on the
document as FAILED with the error message.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog

from src.models.document import Document, DocumentStatus
from src.models.rag import ProcessingResult
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.pdf_processor import PDFProcessor
from src.utils.errors import DecLearningError, NotFoundError, ProviderError, ValidationError
from src.utils.text_normalizer import clean_extracted_text

if TYPE_CHECKING:
    from src.interfaces.document_store import IDocumentStore
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.file_storage import IFileStorage

logger = structlog.get_logger(logger_name=__name__)

PDF_CONTENT_TYPE = "application/pdf"
_DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB

_DELETED_DURING_PROCESSING = "Document deleted during processing"


class IngestionService:
    """Runs uploaded PDFs through extraction, chunking, and embedding.

    Parameters
    ----------
    chunker:
        Splits cleaned text into overlapping sentence-aligned chunks.
    pdf_processor:
        Extracts raw text and page count from PDF bytes.
    embedding_provider:
        Generates one vector per chunk.
    document_store:
        Persists documents, chunks and vectors.
    file_storage:
        Holds the uploaded PDF bytes.
    max_file_size:
        Upper bound on accepted upload size in bytes.
    """

    def __init__(
        self,
        chunker: TextChunker,
        pdf_processor: PDFProcessor,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        file_storage: IFileStorage,
        max_file_size: int = _DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self._chunker = chunker
        self._pdf_processor = pdf_processor
        self._embedding_provider = embedding_provider
        self._store = document_store
        self._file_storage = file_storage
        self._max_file_size = max_file_size

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload_document(
        self,
        filename: str,
        content_type: str | None,
        data: bytes,
        title: str | None = None,
        description: str | None = None,
    ) -> Document:
        """Validate and store an uploaded PDF, creating an unprocessed document.

        Processing is not started here; callers schedule
        :meth:`run_in_background` (API) or call :meth:`process_document`
        directly (CLI).

        Raises
        ------
        ValidationError
            If the content type is not PDF, the file is empty, or it exceeds
            the size limit.  Nothing is written in that case.
        """
        normalized_type = (content_type or "").split(";")[0].strip().lower()
        if normalized_type != PDF_CONTENT_TYPE:
            raise ValidationError(
                message=f"Only PDF files are accepted (got {content_type or 'unknown'})"
            )
        if not data:
            raise ValidationError(message="Uploaded file is empty")
        if len(data) > self._max_file_size:
            raise ValidationError(
                message=(
                    f"File too large: {len(data)} bytes. "
                    f"Maximum: {self._max_file_size} bytes."
                )
            )

        filepath = await self._file_storage.save(data, filename)
        document = Document(
            id=str(uuid.uuid4()),
            filename=filename,
            filepath=filepath,
            title=title or None,
            description=description or None,
            file_size=len(data),
            content_type=PDF_CONTENT_TYPE,
        )
        try:
            await self._store.create_document(document)
        except Exception:
            # No row means nobody will ever clean the file up.
            await self._file_storage.delete(filepath)
            raise

        logger.info(
            "document_uploaded",
            document_id=document.id,
            filename=filename,
            file_size=document.file_size,
        )
        return document

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process_document(self, document_id: str) -> ProcessingResult:
        """Run the full pipeline for one document.

        Returns
        -------
        ProcessingResult
            ``success=True`` with chunk and page counts, or ``success=False``
            with an error description.  Never raises for pipeline failures.
        """
        start = time.monotonic()

        document = await self._store.get_document(document_id)
        if document is None:
            logger.warning("ingestion_document_missing", document_id=document_id)
            return ProcessingResult(
                document_id=document_id,
                success=False,
                error=f"Document not found: {document_id}",
            )

        try:
            return await self._run_pipeline(document, start)
        except DecLearningError as exc:
            error = exc.message
        except Exception as exc:  # noqa: BLE001 -- recorded on the document below
            logger.exception("ingestion_unexpected_error", document_id=document_id)
            error = f"Unexpected processing error: {exc}"

        return await self.mark_failed(document_id, error, started=start)

    async def reprocess_document(self, document_id: str) -> ProcessingResult:
        """Re-run the pipeline synchronously for an existing document.

        Raises
        ------
        NotFoundError
            If the document does not exist.
        """
        document = await self._store.get_document(document_id)
        if document is None:
            raise NotFoundError(message=f"Document not found: {document_id}")
        logger.info("document_reprocess_requested", document_id=document_id)
        return await self.process_document(document_id)

    async def run_in_background(self, document_id: str) -> None:
        """Supervised entry point for fire-and-forget processing.

        Scheduled through FastAPI ``BackgroundTasks`` after the upload
        response is sent.  Any failure ends up in the document's state via
        :meth:`process_document`; this wrapper only guards against the
        failure-recording step itself breaking.
        """
        try:
            result = await self.process_document(document_id)
        except Exception as exc:  # noqa: BLE001 -- background task has no caller
            logger.exception("background_ingestion_crashed", document_id=document_id)
            try:
                await self._store.set_status(
                    document_id, DocumentStatus.FAILED, error=f"Processing crashed: {exc}"
                )
            except Exception:  # noqa: BLE001
                logger.exception("background_failure_not_recorded", document_id=document_id)
            return

        logger.info(
            "background_ingestion_finished",
            document_id=document_id,
            success=result.success,
            chunks=result.chunks_created,
            error=result.error,
        )

    async def mark_failed(
        self,
        document_id: str,
        error: str,
        *,
        started: float | None = None,
    ) -> ProcessingResult:
        """Record *error* on the document and return the failed result.

        A document deleted mid-run cannot be marked; the result then reports
        the deletion instead of the original error.
        """
        try:
            await self._store.set_status(document_id, DocumentStatus.FAILED, error=error)
        except NotFoundError:
            logger.warning("ingestion_document_deleted", document_id=document_id, error=error)
            error = _DELETED_DURING_PROCESSING

        elapsed = round(time.monotonic() - started, 3) if started is not None else 0.0
        logger.error(
            "ingestion_failed",
            document_id=document_id,
            error=error,
            ingestion_time=elapsed,
        )
        return ProcessingResult(
            document_id=document_id,
            success=False,
            error=error,
            ingestion_time=elapsed,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_pipeline(self, document: Document, start: float) -> ProcessingResult:
        await self._store.set_status(document.id, DocumentStatus.PROCESSING)
        logger.info("ingestion_started", document_id=document.id, filename=document.filename)

        # Step 1: extract.
        data = await self._file_storage.read(document.filepath)
        extracted = await self._pdf_processor.extract(data)

        # Step 2: clean + chunk.
        text = clean_extracted_text(extracted.text)
        drafts = self._chunker.chunk(text)
        if not drafts:
            raise ValidationError(message="PDF contains no extractable text")

        # Step 3: embed in ordinal order.  Nothing is written yet, so a
        # provider failure leaves the previous embedded set searchable.
        embeddings = await self._embedding_provider.embed([draft.text for draft in drafts])
        if len(embeddings) != len(drafts):
            raise ProviderError(
                message=(
                    f"Embedding provider returned {len(embeddings)} vectors "
                    f"for {len(drafts)} chunks"
                ),
                provider_name=self._embedding_provider.get_provider_name(),
            )

        # Step 4: swap in the new chunks and their vectors in one transaction.
        chunks = await self._store.replace_chunks(document.id, drafts, embeddings)

        # Step 5: mark processed.
        await self._store.mark_processed(
            document.id,
            total_pages=extracted.page_count,
            total_chunks=len(chunks),
        )

        elapsed = round(time.monotonic() - start, 3)
        logger.info(
            "ingestion_complete",
            document_id=document.id,
            pages=extracted.page_count,
            chunks=len(chunks),
            ingestion_time=elapsed,
        )
        return ProcessingResult(
            document_id=document.id,
            success=True,
            chunks_created=len(chunks),
            total_pages=extracted.page_count,
            ingestion_time=elapsed,
        )
