"""Abstract base class for similarity ranking over embedded chunks.

The retrieval service ranks through this interface so an approximate
nearest-neighbour index can replace the default brute-force scan without
changing the retrieval contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.models.rag import EmbeddedChunk


@dataclass(frozen=True)
class ScoredChunk:
    """An embedded chunk paired with its similarity score for one query."""

    candidate: EmbeddedChunk
    score: float


# Concrete implementations: BruteForceSimilarityIndex
# Located in: src/services/similarity.py
class ISimilarityIndex(ABC):
    """Contract for ranking candidate chunks against a query vector."""

    @abstractmethod
    def rank(
        self,
        query: list[float],
        candidates: list[EmbeddedChunk],
        limit: int,
    ) -> list[ScoredChunk]:
        """Return at most *limit* candidates ordered by descending score.

        Parameters
        ----------
        query:
            The query embedding.
        candidates:
            Chunks with non-null embeddings, in store order.
        limit:
            Maximum number of results; ``0`` or less yields an empty list.

        Returns
        -------
        list[ScoredChunk]
            Sorted descending by score.  Equal scores keep candidate order.
            Candidates whose dimension differs from *query* are excluded.
        """

    @abstractmethod
    def get_index_name(self) -> str:
        """Return a short identifier used in logs (e.g. ``"brute_force"``)."""
