"""Custom exception hierarchy for the DEC Learning document service.

All application exceptions inherit from :class:`DecLearningError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai_embedding", "sqlite") caused the failure.

The hierarchy is organized by the layer that raises it:

    DecLearningError  (base -- catch-all for any application error)
    +-- ValidationError          (bad input: file type, limits, empty query)
    +-- NotFoundError            (missing document or backing file)
    +-- ProviderError            (embedding / generation provider failure)
    |   +-- LLMError             (chat completion failure)
    +-- ConfigurationError       (missing credential / invalid config)
    +-- DimensionMismatchError   (vector length disagreement)

``HTTP_STATUS_BY_ERROR`` maps each class to the status code the API
middleware returns for it.
"""


class DecLearningError(Exception):
    """Base exception for all DEC Learning document service errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------

class ValidationError(DecLearningError):
    """Raised for wrong file types, missing fields, or out-of-range parameters."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DecLearningError):
    """Raised when a document, chunk, or backing file does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class ProviderError(DecLearningError):
    """Raised when an embedding or generation provider is unreachable,
    rate-limited, or returns malformed data.
    """

    def __init__(
        self,
        message: str = "External provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(ProviderError):
    """Raised when a chat completion call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / invariant errors
# ---------------------------------------------------------------------------

class ConfigurationError(DecLearningError):
    """Raised when a provider credential or config value is missing at construction."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DimensionMismatchError(DecLearningError):
    """Raised when two vectors compared for similarity differ in length.

    Indicates corrupted or mixed-model embedding data.
    """

    def __init__(
        self,
        message: str = "Vector dimensions do not match",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# Most specific classes first; the middleware walks this in order.
HTTP_STATUS_BY_ERROR: list[tuple[type[DecLearningError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ProviderError, 502),
    (ConfigurationError, 503),
    (DimensionMismatchError, 500),
]


def http_status_for(exc: DecLearningError) -> int:
    """Return the HTTP status code for an application error (500 by default)."""
    for error_cls, status_code in HTTP_STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return 500
