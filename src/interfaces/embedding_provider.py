"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  The
ingestion pipeline and the retrieval service both receive an instance of
this interface at construction; neither looks one up globally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-3-small (requires API key)
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the RAG pipeline.

    Implementations validate provider payloads at this boundary: callers
    only ever receive ``list[float]`` vectors of length :meth:`get_dimension`.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            provider batch limits internally.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*, across
            internal batch boundaries.  Each inner list has length equal to
            :meth:`get_dimension`.

        Raises
        ------
        src.utils.errors.ProviderError
            If the provider is unreachable or returns malformed data.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Convenience wrapper around :meth:`embed` used for search queries.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the fixed dimensionality of the embedding vectors.

        Example value: ``1536`` (OpenAI ``text-embedding-3-small``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations check credentials without generating an embedding.
        """
