"""SQLite-backed document, chunk, and vector store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IDocumentStore).
#
# Database: ``data/documents.db`` with two tables:
#   documents        -- one row per uploaded PDF
#   document_chunks  -- ordered chunks, FK -> documents ON DELETE CASCADE
#
# Embeddings are stored as JSON arrays in a TEXT column.  Similarity is
# computed in Python (src/services/similarity.py), so the store only has
# to hand back every embedded chunk.
#
# Uses ``aiosqlite`` for async I/O, ``PRAGMA journal_mode=WAL`` so readers
# see the last committed chunk set while a writer is replacing it, and
# ``PRAGMA foreign_keys=ON`` on every connection for the cascade.
#
# Multi-statement writes run inside ``BEGIN IMMEDIATE`` and start by
# re-checking that the document row exists.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.document_store import EDITABLE_FIELDS, IDocumentStore
from src.models.document import Document, DocumentStats, DocumentStatus
from src.models.rag import ChunkDraft, DocumentChunk, EmbeddedChunk
from src.utils.errors import NotFoundError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_DOCUMENTS_TABLE = """\
CREATE TABLE IF NOT EXISTS documents (
    id               TEXT    PRIMARY KEY,
    filename         TEXT    NOT NULL,
    filepath         TEXT    NOT NULL,
    title            TEXT,
    description      TEXT,
    file_size        INTEGER NOT NULL DEFAULT 0,
    content_type     TEXT    NOT NULL,
    status           TEXT    NOT NULL DEFAULT 'uploaded',
    is_processed     INTEGER NOT NULL DEFAULT 0,
    processed_at     TEXT,
    total_pages      INTEGER,
    total_chunks     INTEGER NOT NULL DEFAULT 0,
    processing_error TEXT,
    created_at       TEXT    NOT NULL,
    updated_at       TEXT    NOT NULL
);
"""

_CREATE_CHUNKS_TABLE = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    page_number  INTEGER,
    embedding    TEXT,
    metadata     TEXT    NOT NULL DEFAULT '{}',
    created_at   TEXT    NOT NULL,
    UNIQUE(document_id, chunk_index)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id, chunk_index);",
]

# ── DML ───────────────────────────────────────────────────────────────

_DOCUMENT_COLUMNS = (
    "id, filename, filepath, title, description, file_size, content_type, status, "
    "is_processed, processed_at, total_pages, total_chunks, processing_error, "
    "created_at, updated_at"
)

_INSERT_DOCUMENT = f"""\
INSERT INTO documents ({_DOCUMENT_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_DOCUMENT = f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?;"

_SELECT_DOCUMENT_EXISTS = "SELECT 1 FROM documents WHERE id = ?;"

_LIST_DOCUMENTS = f"SELECT {_DOCUMENT_COLUMNS} FROM documents ORDER BY created_at DESC, rowid DESC;"

_UPDATE_STATUS = """\
UPDATE documents
SET status = ?, is_processed = 0, processing_error = ?, updated_at = ?
WHERE id = ?;
"""

_MARK_PROCESSED = """\
UPDATE documents
SET status = 'processed', is_processed = 1, processed_at = ?, total_pages = ?,
    total_chunks = ?, processing_error = NULL, updated_at = ?
WHERE id = ?;
"""

_DELETE_DOCUMENT = "DELETE FROM documents WHERE id = ?;"

_DELETE_CHUNKS = "DELETE FROM document_chunks WHERE document_id = ?;"

_INSERT_CHUNK = """\
INSERT INTO document_chunks (id, document_id, chunk_index, content, page_number, embedding, metadata, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_CHUNKS = """\
SELECT id, document_id, chunk_index, content, page_number, embedding, metadata, created_at
FROM document_chunks
WHERE document_id = ?
ORDER BY chunk_index ASC;
"""

_SELECT_EMBEDDED_CHUNKS = """\
SELECT c.id, c.document_id, c.chunk_index, c.content, c.page_number, c.embedding,
       c.metadata, c.created_at, d.title AS document_title, d.filename AS document_filename
FROM document_chunks c
JOIN documents d ON d.id = c.document_id
WHERE c.embedding IS NOT NULL
ORDER BY d.created_at ASC, d.rowid ASC, c.chunk_index ASC;
"""

_SELECT_STATS = """\
SELECT COUNT(*)                                             AS total_documents,
       COALESCE(SUM(is_processed), 0)                       AS processed_documents,
       COALESCE(SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END), 0) AS failed_documents,
       COALESCE(SUM(file_size), 0)                          AS total_size_bytes
FROM documents;
"""

_SELECT_TOTAL_CHUNKS = "SELECT COUNT(*) FROM document_chunks;"


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed persistence for documents, chunks, and chunk vectors."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_DOCUMENTS_TABLE)
            await db.execute(_CREATE_CHUNKS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_documents"

    # ── Connection helpers ─────────────────────────────────────────────

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        # isolation_level=None: transactions are opened explicitly with
        # BEGIN IMMEDIATE in _transaction(), never implicitly.
        async with aiosqlite.connect(str(self._db_path), isolation_level=None) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys=ON;")
            yield db

    @asynccontextmanager
    async def _transaction(self, document_id: str) -> AsyncIterator[aiosqlite.Connection]:
        """Open a write transaction that fails if *document_id* is gone."""
        async with self._connect() as db:
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_SELECT_DOCUMENT_EXISTS, (document_id,))
                if await cursor.fetchone() is None:
                    raise NotFoundError(
                        message=f"Document not found: {document_id}",
                        provider_name=self.get_provider_name(),
                    )
                yield db
            except BaseException:
                await db.execute("ROLLBACK;")
                raise
            else:
                await db.execute("COMMIT;")

    # ── Documents ──────────────────────────────────────────────────────

    async def create_document(self, document: Document) -> Document:
        async with self._connect() as db:
            await db.execute(_INSERT_DOCUMENT, (
                document.id,
                document.filename,
                document.filepath,
                document.title,
                document.description,
                document.file_size,
                document.content_type,
                document.status.value,
                int(document.is_processed),
                document.processed_at.isoformat() if document.processed_at else None,
                document.total_pages,
                document.total_chunks,
                document.processing_error,
                document.created_at.isoformat(),
                document.updated_at.isoformat(),
            ))
        logger.info("document_row_created", document_id=document.id, filename=document.filename)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_DOCUMENT, (document_id,))
            row = await cursor.fetchone()
        return self._row_to_document(dict(row)) if row is not None else None

    async def list_documents(self) -> list[Document]:
        async with self._connect() as db:
            cursor = await db.execute(_LIST_DOCUMENTS)
            rows = await cursor.fetchall()
        return [self._row_to_document(dict(row)) for row in rows]

    async def update_document(
        self,
        document_id: str,
        changes: Mapping[str, str | None],
    ) -> Document | None:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(message=f"Fields are not editable: {', '.join(sorted(unknown))}")
        # Column names come from EDITABLE_FIELDS only; values stay bound.
        fields = [name for name in EDITABLE_FIELDS if name in changes]
        assignments = "".join(f"{name} = ?, " for name in fields)
        sql = f"UPDATE documents SET {assignments}updated_at = ? WHERE id = ?;"
        params = [changes[name] for name in fields] + [_now_iso(), document_id]
        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            if cursor.rowcount == 0:
                return None
        return await self.get_document(document_id)

    async def delete_document(self, document_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_DELETE_DOCUMENT, (document_id,))
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("document_row_deleted", document_id=document_id)
        return deleted

    # ── Processing state ───────────────────────────────────────────────

    async def set_status(
        self,
        document_id: str,
        status: DocumentStatus,
        error: str | None = None,
    ) -> None:
        if status == DocumentStatus.PROCESSED:
            raise ValidationError(message="Use mark_processed() to complete processing")
        stored_error = error if status == DocumentStatus.FAILED else None
        async with self._transaction(document_id) as db:
            await db.execute(
                _UPDATE_STATUS, (status.value, stored_error, _now_iso(), document_id)
            )

    async def mark_processed(
        self,
        document_id: str,
        *,
        total_pages: int,
        total_chunks: int,
    ) -> Document:
        now = _now_iso()
        async with self._transaction(document_id) as db:
            await db.execute(
                _MARK_PROCESSED, (now, total_pages, total_chunks, now, document_id)
            )
        document = await self.get_document(document_id)
        if document is None:
            raise NotFoundError(
                message=f"Document not found: {document_id}",
                provider_name=self.get_provider_name(),
            )
        return document

    # ── Chunks ─────────────────────────────────────────────────────────

    async def replace_chunks(
        self,
        document_id: str,
        drafts: list[ChunkDraft],
        embeddings: list[list[float]],
    ) -> list[DocumentChunk]:
        if len(embeddings) != len(drafts):
            raise ValidationError(
                message=(
                    f"Embedding count {len(embeddings)} does not match "
                    f"chunk count {len(drafts)} for document {document_id}"
                ),
                provider_name=self.get_provider_name(),
            )

        now = datetime.now(tz=timezone.utc)  # noqa: UP017
        chunks = [
            DocumentChunk(
                id=str(uuid.uuid4()),
                document_id=document_id,
                chunk_index=draft.chunk_index,
                content=draft.text,
                page_number=None,
                embedding=vector,
                metadata={
                    "word_count": draft.word_count,
                    "overlap_word_count": draft.overlap_word_count,
                },
                created_at=now,
            )
            for draft, vector in zip(drafts, embeddings)
        ]
        # Delete, insert and vectors commit together: readers see the old
        # embedded set or the new one.
        async with self._transaction(document_id) as db:
            await db.execute(_DELETE_CHUNKS, (document_id,))
            await db.executemany(_INSERT_CHUNK, [
                (
                    chunk.id,
                    chunk.document_id,
                    chunk.chunk_index,
                    chunk.content,
                    chunk.page_number,
                    json.dumps(chunk.embedding),
                    json.dumps(chunk.metadata),
                    chunk.created_at.isoformat(),
                )
                for chunk in chunks
            ])
        logger.info("chunks_replaced", document_id=document_id, chunks=len(chunks))
        return chunks

    async def get_chunks(self, document_id: str) -> list[DocumentChunk]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CHUNKS, (document_id,))
            rows = await cursor.fetchall()
        return [self._row_to_chunk(dict(row)) for row in rows]

    async def list_embedded_chunks(self) -> list[EmbeddedChunk]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_EMBEDDED_CHUNKS)
            rows = await cursor.fetchall()
        results: list[EmbeddedChunk] = []
        for row in rows:
            row_dict = dict(row)
            results.append(
                EmbeddedChunk(
                    chunk=self._row_to_chunk(row_dict),
                    document_title=row_dict["document_title"],
                    document_filename=row_dict["document_filename"],
                )
            )
        return results

    # ── Aggregates ─────────────────────────────────────────────────────

    async def get_stats(self) -> DocumentStats:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_STATS)
            row = dict(await cursor.fetchone())
            cursor = await db.execute(_SELECT_TOTAL_CHUNKS)
            (total_chunks,) = await cursor.fetchone()
        return DocumentStats(
            total_documents=row["total_documents"],
            processed_documents=row["processed_documents"],
            pending_documents=row["total_documents"] - row["processed_documents"],
            failed_documents=row["failed_documents"],
            total_chunks=total_chunks,
            total_size_bytes=row["total_size_bytes"],
        )

    # ── Row mapping ────────────────────────────────────────────────────

    @staticmethod
    def _row_to_document(row: dict[str, Any]) -> Document:
        return Document(
            id=row["id"],
            filename=row["filename"],
            filepath=row["filepath"],
            title=row["title"],
            description=row["description"],
            file_size=row["file_size"],
            content_type=row["content_type"],
            status=DocumentStatus(row["status"]),
            is_processed=bool(row["is_processed"]),
            processed_at=datetime.fromisoformat(row["processed_at"]) if row["processed_at"] else None,
            total_pages=row["total_pages"],
            total_chunks=row["total_chunks"],
            processing_error=row["processing_error"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_chunk(row: dict[str, Any]) -> DocumentChunk:
        return DocumentChunk(
            id=row["id"],
            document_id=row["document_id"],
            chunk_index=row["chunk_index"],
            content=row["content"],
            page_number=row["page_number"],
            embedding=json.loads(row["embedding"]) if row["embedding"] else None,
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            created_at=datetime.fromisoformat(row["created_at"]),
        )
