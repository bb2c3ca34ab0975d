"""Semantic search over document chunks and chat-context formatting.

Data flow::

    query -> IEmbeddingProvider.embed_single
          -> IDocumentStore.list_embedded_chunks   (every embedded chunk)
          -> ISimilarityIndex.rank                 (cosine, descending)
          -> ChunkSearchResult list

:meth:`RetrievalService.get_context` builds on :meth:`search` for the chat
orchestrator: weak matches below the relevance floor are dropped and the
survivors are rendered as an attributed reference block.  Grounding is
best-effort, so provider failures there degrade to an empty string.
"""

from __future__ import annotations

import structlog

from src.interfaces.document_store import IDocumentStore
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.similarity_index import ISimilarityIndex
from src.models.rag import ChunkSearchResult
from src.services.similarity import BruteForceSimilarityIndex
from src.utils.errors import ProviderError, ValidationError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 5
MAX_SEARCH_LIMIT = 20
DEFAULT_CONTEXT_LIMIT = 3
RELEVANCE_FLOOR = 0.3

CONTEXT_HEADER = "\n\n--- INFORMATION FROM REFERENCE DOCUMENTS ---\n\n"
CONTEXT_SEPARATOR = "\n\n---\n\n"


class RetrievalService:
    """Ranks stored chunks against a query and formats chat context.

    Parameters
    ----------
    embedding_provider:
        Embeds the query text; must be the provider that embedded the chunks.
    document_store:
        Source of candidate chunks.
    similarity_index:
        Ranking strategy.  Defaults to :class:`BruteForceSimilarityIndex`.
    default_limit:
        Result count used by :meth:`search` when no ``limit`` is given.
    relevance_floor:
        :meth:`get_context` keeps only results scoring strictly above this.
    max_search_limit:
        Upper bound accepted for ``limit`` in :meth:`search`.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        document_store: IDocumentStore,
        similarity_index: ISimilarityIndex | None = None,
        default_limit: int = DEFAULT_SEARCH_LIMIT,
        relevance_floor: float = RELEVANCE_FLOOR,
        max_search_limit: int = MAX_SEARCH_LIMIT,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._store = document_store
        self._index = similarity_index or BruteForceSimilarityIndex()
        self._default_limit = default_limit
        self._relevance_floor = relevance_floor
        self._max_search_limit = max_search_limit

    async def search(self, query: str, limit: int | None = None) -> list[ChunkSearchResult]:
        """Return up to *limit* chunks ranked by cosine similarity to *query*.

        Raises
        ------
        ValidationError
            If *query* is blank or *limit* is outside ``1..max_search_limit``.
        ProviderError
            If the query cannot be embedded.
        """
        if not query or not query.strip():
            raise ValidationError(message="Search query must not be empty")
        if limit is None:
            limit = self._default_limit
        if not 1 <= limit <= self._max_search_limit:
            raise ValidationError(
                message=f"limit must be between 1 and {self._max_search_limit}, got {limit}"
            )

        query_vector = await self._embedding_provider.embed_single(query)
        candidates = await self._store.list_embedded_chunks()
        ranked = self._index.rank(query_vector, candidates, limit)

        results = [
            ChunkSearchResult(
                chunk_id=item.candidate.chunk.id,
                document_id=item.candidate.chunk.document_id,
                content=item.candidate.chunk.content,
                chunk_index=item.candidate.chunk.chunk_index,
                page_number=item.candidate.chunk.page_number,
                score=item.score,
                document_title=item.candidate.document_title,
                document_filename=item.candidate.document_filename,
            )
            for item in ranked
        ]

        logger.info(
            "document_search",
            query_length=len(query),
            candidates=len(candidates),
            results=len(results),
            top_score=round(results[0].score, 4) if results else None,
            index=self._index.get_index_name(),
        )
        return results

    async def get_context(self, query: str, limit: int = DEFAULT_CONTEXT_LIMIT) -> str:
        """Return an attributed reference block for *query*, or ``""``.

        An empty string means "no grounding available"; it is also returned
        when the embedding provider fails.
        """
        if not query or not query.strip():
            return ""
        try:
            results = await self.search(query, limit)
        except ProviderError as exc:
            logger.warning(
                "retrieval_context_failed",
                error=exc.message,
                provider=exc.provider_name,
            )
            return ""

        relevant = [result for result in results if result.score > self._relevance_floor]
        if not relevant:
            logger.debug("retrieval_context_empty", results=len(results))
            return ""

        return format_context(relevant)


def format_context(results: list[ChunkSearchResult]) -> str:
    """Render results as numbered sources under the reference header."""
    parts: list[str] = []
    for number, result in enumerate(results, start=1):
        label = result.source_label
        if result.page_number is not None:
            label = f"{label} (page {result.page_number})"
        parts.append(f"[Source {number}: {label}]\n{result.content}")
    return CONTEXT_HEADER + CONTEXT_SEPARATOR.join(parts)
