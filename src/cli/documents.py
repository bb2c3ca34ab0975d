"""Standalone CLI for managing the reference-document collection.

Usage::

    python -m src.cli ingest handbook.pdf --title "Code de deontologie"
    python -m src.cli list
    python -m src.cli search "secret professionnel" --limit 3
    python -m src.cli reprocess <document-id>
    python -m src.cli stats

Commands share the database and upload directory configured for the API
(``DATABASE_PATH``, ``UPLOAD_DIR``), so documents ingested here are
immediately visible to the running service.  ``ingest`` processes
synchronously and prints the result instead of scheduling background work.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.loader import load_config
from src.config.settings import Settings
from src.utils.errors import DecLearningError
from src.utils.logging import configure_logging


def _build_services(app_settings: Settings, *, needs_embeddings: bool) -> dict[str, Any]:
    """Construct the store and, when asked, the embedding-backed services.

    Imports are deferred so ``list`` and ``stats`` do not load the OpenAI SDK.
    """
    from src.providers.document_store.sqlite_document_store import SQLiteDocumentStore
    from src.providers.storage.local_file_storage import LocalFileStorage
    from src.services.document_service import DocumentService

    app_config = load_config(settings=app_settings)
    store = SQLiteDocumentStore(db_path=app_settings.database_path)
    file_storage = LocalFileStorage(upload_dir=app_settings.upload_dir)
    services: dict[str, Any] = {
        "store": store,
        "documents": DocumentService(document_store=store, file_storage=file_storage),
    }
    if not needs_embeddings:
        return services

    from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
    from src.services.ingestion.chunker import TextChunker
    from src.services.ingestion.ingestion_service import IngestionService
    from src.services.ingestion.pdf_processor import PDFProcessor
    from src.services.retrieval_service import RetrievalService

    chunking_cfg = app_config.get("chunking", {})
    embedding_cfg = app_config.get("embedding", {})
    retrieval_cfg = app_config.get("retrieval", {})

    # Raises ConfigurationError without OPENAI_API_KEY; reported by main().
    embedding_provider = OpenAIEmbeddingProvider(
        settings=app_settings,
        max_input_chars=embedding_cfg.get("max_input_chars", 8000),
        batch_size=embedding_cfg.get("batch_size", 100),
    )
    services["ingestion"] = IngestionService(
        chunker=TextChunker(
            chunk_size=chunking_cfg.get("chunk_size", 1000),
            chunk_overlap=chunking_cfg.get("chunk_overlap", 200),
        ),
        pdf_processor=PDFProcessor(),
        embedding_provider=embedding_provider,
        document_store=store,
        file_storage=file_storage,
        max_file_size=app_settings.max_upload_size_bytes,
    )
    services["retrieval"] = RetrievalService(
        embedding_provider=embedding_provider,
        document_store=store,
        default_limit=retrieval_cfg.get("default_search_limit", 5),
        relevance_floor=retrieval_cfg.get("relevance_floor", 0.3),
        max_search_limit=retrieval_cfg.get("max_search_limit", 20),
    )
    return services


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _print_result(result) -> int:  # noqa: ANN001
    if result.success:
        print("\nProcessing complete:")
        print(f"  Document ID:    {result.document_id}")
        print(f"  Pages:          {result.total_pages}")
        print(f"  Chunks created: {result.chunks_created}")
        print(f"  Time:           {result.ingestion_time:.2f}s")
        return 0
    print(f"\nProcessing failed: {result.error}", file=sys.stderr)
    print(f"  Document ID: {result.document_id}", file=sys.stderr)
    return 1


async def _handle_ingest(args: argparse.Namespace, services: dict[str, Any]) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    print(f"Ingesting PDF: {path.name}")
    ingestion = services["ingestion"]
    document = await ingestion.upload_document(
        filename=path.name,
        content_type="application/pdf",
        data=path.read_bytes(),
        title=args.title,
        description=args.description,
    )
    result = await ingestion.process_document(document.id)
    return _print_result(result)


async def _handle_reprocess(args: argparse.Namespace, services: dict[str, Any]) -> int:
    print(f"Reprocessing document: {args.document_id}")
    result = await services["ingestion"].reprocess_document(args.document_id)
    return _print_result(result)


async def _handle_search(args: argparse.Namespace, services: dict[str, Any]) -> int:
    results = await services["retrieval"].search(args.query, args.limit)
    if not results:
        print("No matching chunks.")
        return 0

    for rank, result in enumerate(results, start=1):
        preview = result.content[:200].replace("\n", " ")
        print(f"{rank:>2}. [{result.score:.4f}] {result.source_label} (chunk {result.chunk_index})")
        print(f"    {preview}")
    return 0


async def _handle_list(services: dict[str, Any]) -> int:
    documents = await services["documents"].list_documents()
    if not documents:
        print("No documents.")
        return 0

    print(f"{'ID':<38} {'STATUS':<11} {'CHUNKS':>6}  NAME")
    for doc in documents:
        print(f"{doc.id:<38} {doc.status.value:<11} {doc.total_chunks:>6}  {doc.display_name}")
    return 0


async def _handle_stats(services: dict[str, Any]) -> int:
    stats = await services["documents"].get_stats()
    print("Document Statistics")
    print("=" * 40)
    print(f"  Total documents:  {stats.total_documents}")
    print(f"  Processed:        {stats.processed_documents}")
    print(f"  Pending:          {stats.pending_documents}")
    print(f"  Failed:           {stats.failed_documents}")
    print(f"  Total chunks:     {stats.total_chunks}")
    print(f"  Storage:          {stats.total_size_mb} MB")
    return 0


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    needs_embeddings = args.command in ("ingest", "reprocess", "search")
    services = _build_services(app_settings, needs_embeddings=needs_embeddings)
    await services["store"].initialize()

    if args.command == "ingest":
        return await _handle_ingest(args, services)
    if args.command == "reprocess":
        return await _handle_reprocess(args, services)
    if args.command == "search":
        return await _handle_search(args, services)
    if args.command == "list":
        return await _handle_list(services)
    return await _handle_stats(services)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the document CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Manage the DEC Learning reference-document collection.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Document commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Upload and process a PDF")
    ingest_parser.add_argument("file", help="Path to the PDF file")
    ingest_parser.add_argument("--title", default=None, help="Display title")
    ingest_parser.add_argument("--description", default=None, help="Free-text description")

    # -- reprocess --
    reprocess_parser = subparsers.add_parser("reprocess", help="Re-run processing for a document")
    reprocess_parser.add_argument("document_id", help="Document ID")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Semantic search over chunks")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument(
        "--limit", type=int, default=None, help="Results to show (1-20, default from config)"
    )

    # -- list / stats --
    subparsers.add_parser("list", help="List documents")
    subparsers.add_parser("stats", help="Show collection statistics")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse the subcommand and dispatch to its handler."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(log_level=app_settings.log_level)

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except DecLearningError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
