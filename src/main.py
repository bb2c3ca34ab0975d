"""DEC Learning document service FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

Services that need OpenAI credentials (ingestion, search, chat) are stored
as ``None`` when no key is configured; their routes answer 503 while the
document listing and management routes stay available.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.auth import StaticTokenAuthorizationGate
from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.storage.local_file_storage import LocalFileStorage
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.pdf_processor import PDFProcessor
from src.services.retrieval_service import RetrievalService
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=config["logging"]["level"],
    json_output=(config["app"]["env"] == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

_APP_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    chunking_cfg = app_config.get("chunking", {})
    embedding_cfg = app_config.get("embedding", {})
    retrieval_cfg = app_config.get("retrieval", {})
    chat_cfg = app_config.get("chat", {})

    # -- Storage (always available) --
    document_store = SQLiteDocumentStore(db_path=app_settings.database_path)
    file_storage = LocalFileStorage(upload_dir=app_settings.upload_dir)
    document_service = DocumentService(document_store=document_store, file_storage=file_storage)

    chunker = TextChunker(
        chunk_size=chunking_cfg.get("chunk_size", 1000),
        chunk_overlap=chunking_cfg.get("chunk_overlap", 200),
    )

    # -- Embeddings: ingestion + search --
    ingestion_service = None
    retrieval_service = None
    try:
        embedding_provider = OpenAIEmbeddingProvider(
            settings=app_settings,
            max_input_chars=embedding_cfg.get("max_input_chars", 8000),
            batch_size=embedding_cfg.get("batch_size", 100),
        )
    except ConfigurationError as exc:
        _logger.warning("embedding_provider_unavailable", error=exc.message)
    else:
        ingestion_service = IngestionService(
            chunker=chunker,
            pdf_processor=PDFProcessor(),
            embedding_provider=embedding_provider,
            document_store=document_store,
            file_storage=file_storage,
            max_file_size=app_settings.max_upload_size_bytes,
        )
        retrieval_service = RetrievalService(
            embedding_provider=embedding_provider,
            document_store=document_store,
            default_limit=retrieval_cfg.get("default_search_limit", 5),
            relevance_floor=retrieval_cfg.get("relevance_floor", 0.3),
            max_search_limit=retrieval_cfg.get("max_search_limit", 20),
        )

    # -- Chat --
    chat_service = None
    try:
        llm = OpenAILLMProvider(settings=app_settings)
    except ConfigurationError as exc:
        _logger.warning("llm_provider_unavailable", error=exc.message)
    else:
        # Without retrieval the assistant answers ungrounded.
        chat_service = ChatService(
            llm=llm,
            retrieval_service=retrieval_service,
            chat_config=chat_cfg,
            context_limit=retrieval_cfg.get("context_limit", 3),
        )

    return {
        "document_store": document_store,
        "document_service": document_service,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "chat_service": chat_service,
        "auth_gate": StaticTokenAuthorizationGate(
            admin_token=app_settings.admin_api_token,
            user_token=app_settings.user_api_token,
        ),
        "max_upload_size": app_settings.max_upload_size_bytes,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


def _make_lifespan(
    app_settings: Settings,
    components: dict[str, Any] | None,
) -> Callable[[FastAPI], Any]:
    """Return the lifespan handler; prebuilt *components* skip ``_build_all``."""

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        built = components if components is not None else _build_all(app_settings, config)

        for key, value in built.items():
            setattr(application.state, key, value)

        await built["document_store"].initialize()

        _logger.info(
            "app_startup",
            version=_APP_VERSION,
            environment=app_settings.app_env,
            ingestion=built.get("ingestion_service") is not None,
            chat=built.get("chat_service") is not None,
        )

        yield

        _logger.info("app_shutdown")

    return _lifespan


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    components: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title="DEC Learning Documents API",
        version=_APP_VERSION,
        description=(
            "Upload reference PDFs, extract and chunk their text, embed the "
            "chunks, and ground the DEC Assistant's answers in the most "
            "relevant passages."
        ),
        lifespan=_make_lifespan(app_settings, components),
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.cors_origins)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=config["app"]["host"],
        port=config["app"]["port"],
        reload=(config["app"]["env"] == "development"),
    )
