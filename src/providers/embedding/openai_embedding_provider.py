"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible endpoints via a custom
``base_url``.  Every response is validated here, so downstream code never
inspects SDK payloads.
"""

from __future__ import annotations

import math

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import ConfigurationError, ProviderError

logger = structlog.get_logger(logger_name=__name__)

# Provider request limits.
_MAX_INPUT_CHARS = 8000
_BATCH_SIZE = 100


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  Inputs longer
    than 8000 characters are truncated (best-effort representation) and
    requests are split into batches of 100 texts.

    Raises :class:`ConfigurationError` on construction when no API key is
    configured.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        max_input_chars: int = _MAX_INPUT_CHARS,
        batch_size: int = _BATCH_SIZE,
    ) -> None:
        self._api_key = settings.openai_api_key
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )
        if not self._api_key:
            raise ConfigurationError(
                message="OPENAI_API_KEY is not configured",
                provider_name=self._provider_label,
            )

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model
        self._dimension = settings.openai_embedding_dimension
        self._max_input_chars = max_input_chars
        self._batch_size = batch_size

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Splits the input into provider-sized batches and concatenates the
        results in input order.
        """
        if not texts:
            return []

        truncated = [text[: self._max_input_chars] for text in texts]

        all_embeddings: list[list[float]] = []
        try:
            for start in range(0, len(truncated), self._batch_size):
                batch = truncated[start : start + self._batch_size]
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                )
                all_embeddings.extend(self._parse_response(response, expected=len(batch)))
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_start=start,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
        except openai.APIError as exc:
            raise ProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Response validation
    # ------------------------------------------------------------------

    def _parse_response(self, response: object, expected: int) -> list[list[float]]:
        """Turn an SDK response into validated vectors, in input order.

        The API returns one item per input carrying an ``index``; items are
        re-sorted by it when present.
        """
        data = getattr(response, "data", None)
        if not isinstance(data, list) or len(data) != expected:
            got = len(data) if isinstance(data, list) else None
            raise ProviderError(
                message=f"Malformed embedding response: expected {expected} vectors, got {got}",
                provider_name=self.get_provider_name(),
            )

        if all(isinstance(getattr(item, "index", None), int) for item in data):
            data = sorted(data, key=lambda item: item.index)

        return [self._validate_vector(getattr(item, "embedding", None)) for item in data]

    def _validate_vector(self, vector: object) -> list[float]:
        if not isinstance(vector, list) or len(vector) != self._dimension:
            length = len(vector) if isinstance(vector, list) else None
            raise ProviderError(
                message=(
                    f"Malformed embedding vector: expected {self._dimension} floats, "
                    f"got length {length}"
                ),
                provider_name=self.get_provider_name(),
            )
        values: list[float] = []
        for value in vector:
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ProviderError(
                    message="Malformed embedding vector: non-numeric component",
                    provider_name=self.get_provider_name(),
                )
            values.append(float(value))
        return values
