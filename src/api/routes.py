"""FastAPI API routes for document management, search, and chat.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                              Method  Gate   Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/documents/upload              POST    admin  Upload PDF, process in background
# /api/v1/documents                     GET     admin  List documents (summaries)
# /api/v1/documents/stats               GET     admin  Aggregate counts and storage
# /api/v1/documents/search              GET     admin  Semantic search over chunks
# /api/v1/documents/{id}                GET     admin  Document detail with chunks
# /api/v1/documents/{id}                PATCH   admin  Edit title / description
# /api/v1/documents/{id}                DELETE  admin  Delete file, row and chunks
# /api/v1/documents/{id}/reprocess      POST    admin  Re-run ingestion synchronously
# /api/v1/chatbot/chat                  POST    user   Grounded assistant reply
# /api/v1/chatbot/stream                POST    user   Same, as Server-Sent Events
# /api/v1/health                        GET     -      Health check
#
# Services built without credentials are stored as None on app.state;
# their dependency helpers answer 503 so the other routes keep working.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import StreamingResponse

from src.api.auth import AdminDep, UserDep
from src.api.schemas import (
    ChatRequest,
    ChatResponse,
    ChunkResponse,
    DeleteResponse,
    DocumentDetailResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    ProcessingResultResponse,
    SearchResponse,
    SearchResultResponse,
    StatsResponse,
    UpdateDocumentRequest,
    UploadResponse,
)
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.services.ingestion.ingestion_service import PDF_CONTENT_TYPE, IngestionService
from src.services.retrieval_service import MAX_SEARCH_LIMIT, RetrievalService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_APP_VERSION = "0.1.0"

# Read uploads in 64 KB increments so an oversized file is rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024
_DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB

_UPLOAD_MESSAGE = "Document uploaded successfully. Processing started in background."


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_document_service(request: Request) -> DocumentService:
    """Return the document service from application state."""
    return request.app.state.document_service


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion service, or 503 if embeddings are not configured."""
    service = getattr(request.app.state, "ingestion_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ingestion service not available")
    return service


def _get_retrieval_service(request: Request) -> RetrievalService:
    """Return the retrieval service, or 503 if embeddings are not configured."""
    service = getattr(request.app.state, "retrieval_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Search service not available")
    return service


def _get_chat_service(request: Request) -> ChatService:
    """Return the chat service, or 503 if the LLM is not configured."""
    service = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Chat service not available")
    return service


DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
RetrievalServiceDep = Annotated[RetrievalService, Depends(_get_retrieval_service)]
ChatServiceDep = Annotated[ChatService, Depends(_get_chat_service)]


# ---------------------------------------------------------------------------
# Document endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    status_code=201,
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
    },
    summary="Upload a reference PDF",
)
async def upload_document(
    request: Request,
    file: UploadFile,
    background_tasks: BackgroundTasks,
    ingestion: IngestionServiceDep,
    _admin: AdminDep,
    title: Annotated[str | None, Form()] = None,
    description: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    """Store the PDF and return its metadata; processing runs after the response."""
    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type != PDF_CONTENT_TYPE:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {file.content_type}. Allowed: {PDF_CONTENT_TYPE}",
        )

    max_file_size = getattr(request.app.state, "max_upload_size", _DEFAULT_MAX_FILE_SIZE)
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_file_size:
            raise HTTPException(
                status_code=413,
                detail=(
                    f"File too large: >{max_file_size // (1024 * 1024)} MB. "
                    f"Maximum: {max_file_size} bytes."
                ),
            )
        chunks.append(chunk)
    data = b"".join(chunks)
    del chunks

    document = await ingestion.upload_document(
        filename=file.filename or "document.pdf",
        content_type=content_type,
        data=data,
        title=title,
        description=description,
    )

    # Runs after the response is sent; failures land in the document state.
    background_tasks.add_task(ingestion.run_in_background, document.id)

    return UploadResponse(
        document=DocumentResponse.from_document(document),
        message=_UPLOAD_MESSAGE,
    )


@router.get(
    "/documents",
    response_model=list[DocumentResponse],
    summary="List all documents",
)
async def list_documents(
    documents: DocumentServiceDep,
    _admin: AdminDep,
) -> list[DocumentResponse]:
    """Return every document, newest first, without chunk text."""
    return [DocumentResponse.from_document(doc) for doc in await documents.list_documents()]


@router.get(
    "/documents/stats",
    response_model=StatsResponse,
    summary="Document collection statistics",
)
async def document_stats(
    documents: DocumentServiceDep,
    _admin: AdminDep,
) -> StatsResponse:
    return StatsResponse.from_stats(await documents.get_stats())


@router.get(
    "/documents/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Semantic search over document chunks",
)
async def search_documents(
    retrieval: RetrievalServiceDep,
    _admin: AdminDep,
    query: Annotated[str, Query(min_length=1, max_length=1000)],
    limit: Annotated[int | None, Query(ge=1, le=MAX_SEARCH_LIMIT)] = None,
) -> SearchResponse:
    """Rank stored chunks by cosine similarity to *query*."""
    results = await retrieval.search(query, limit)
    return SearchResponse(
        query=query,
        results=[SearchResultResponse.from_result(result) for result in results],
    )


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Document detail with ordered chunks",
)
async def get_document(
    document_id: str,
    documents: DocumentServiceDep,
    _admin: AdminDep,
) -> DocumentDetailResponse:
    document, chunks = await documents.get_document_with_chunks(document_id)
    summary = DocumentResponse.from_document(document)
    return DocumentDetailResponse(
        **summary.model_dump(),
        chunks=[ChunkResponse.from_chunk(chunk) for chunk in chunks],
    )


@router.patch(
    "/documents/{document_id}",
    response_model=DocumentResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Edit document title / description",
)
async def update_document(
    document_id: str,
    body: UpdateDocumentRequest,
    documents: DocumentServiceDep,
    _admin: AdminDep,
) -> DocumentResponse:
    # Fields omitted from the body stay untouched; explicit nulls clear.
    document = await documents.update_document(
        document_id, body.model_dump(include=body.model_fields_set)
    )
    return DocumentResponse.from_document(document)


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a document, its chunks and its file",
)
async def delete_document(
    document_id: str,
    documents: DocumentServiceDep,
    _admin: AdminDep,
) -> DeleteResponse:
    await documents.delete_document(document_id)
    return DeleteResponse(id=document_id)


@router.post(
    "/documents/{document_id}/reprocess",
    response_model=ProcessingResultResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Re-run ingestion for a document",
)
async def reprocess_document(
    document_id: str,
    ingestion: IngestionServiceDep,
    _admin: AdminDep,
) -> ProcessingResultResponse:
    """Run the pipeline synchronously and return its result.

    Pipeline failures are reported in the body (``success: false``), not as
    an error status.
    """
    result = await ingestion.reprocess_document(document_id)
    return ProcessingResultResponse.from_result(result)


# ---------------------------------------------------------------------------
# Chat endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/chatbot/chat",
    response_model=ChatResponse,
    summary="Ask the assistant (grounded on reference documents)",
)
async def chat(
    body: ChatRequest,
    chat_service: ChatServiceDep,
    _user: UserDep,
) -> ChatResponse:
    reply = await chat_service.chat(body.message, body.conversation_history)
    return ChatResponse(response=reply.response, success=reply.success)


@router.post(
    "/chatbot/stream",
    summary="Ask the assistant, streamed as Server-Sent Events",
    response_class=StreamingResponse,
)
async def chat_stream(
    body: ChatRequest,
    chat_service: ChatServiceDep,
    _user: UserDep,
) -> StreamingResponse:
    return StreamingResponse(
        chat_service.stream(body.message, body.conversation_history),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request) -> HealthResponse:
    state = request.app.state
    components = {
        "document_store": getattr(state, "document_service", None) is not None,
        "ingestion": getattr(state, "ingestion_service", None) is not None,
        "retrieval": getattr(state, "retrieval_service", None) is not None,
        "chat": getattr(state, "chat_service", None) is not None,
    }
    return HealthResponse(
        status="ok" if components["document_store"] else "degraded",
        version=_APP_VERSION,
        components=components,
    )
