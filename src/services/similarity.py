"""Cosine similarity and brute-force ranking of embedded chunks.

``BruteForceSimilarityIndex`` scores every candidate on every query.  That
is the scaling boundary of the retrieval layer: it is comfortable for a
few thousand 1536-dimension chunks and grows linearly after that.  Larger
collections should provide another :class:`ISimilarityIndex` (an
approximate nearest-neighbour index) instead of changing this one.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import structlog

from src.interfaces.similarity_index import ISimilarityIndex, ScoredChunk
from src.models.rag import EmbeddedChunk
from src.utils.errors import DimensionMismatchError

logger = structlog.get_logger(logger_name=__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Returns ``0.0`` when either vector has zero magnitude.

    Raises
    ------
    DimensionMismatchError
        If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            message=f"Cannot compare vectors of length {len(a)} and {len(b)}"
        )

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    score = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Clamp rounding drift so identical vectors score exactly within [-1, 1].
    return max(-1.0, min(1.0, score))


class BruteForceSimilarityIndex(ISimilarityIndex):
    """Exact ranking by full scan, stable-sorted by descending score."""

    def rank(
        self,
        query: list[float],
        candidates: list[EmbeddedChunk],
        limit: int,
    ) -> list[ScoredChunk]:
        if limit <= 0:
            return []

        scored: list[ScoredChunk] = []
        skipped = 0
        for candidate in candidates:
            try:
                score = cosine_similarity(query, candidate.embedding)
            except DimensionMismatchError as exc:
                skipped += 1
                logger.error(
                    "similarity_dimension_mismatch",
                    chunk_id=candidate.chunk.id,
                    document_id=candidate.chunk.document_id,
                    error=exc.message,
                )
                continue
            scored.append(ScoredChunk(candidate=candidate, score=score))

        # list.sort is stable: equal scores keep store order.
        scored.sort(key=lambda item: item.score, reverse=True)

        logger.debug(
            "similarity_ranked",
            candidates=len(candidates),
            skipped=skipped,
            returned=min(limit, len(scored)),
        )
        return scored[:limit]

    def get_index_name(self) -> str:
        return "brute_force"
