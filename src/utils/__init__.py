"""Utility modules for the DEC Learning document service.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at
  DecLearningError, plus the error-to-HTTP-status mapping used by the API
  middleware.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **text_normalizer** -- Cleaning of PDF extraction output before chunking,
  and word counting for chunk metadata.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    DecLearningError,
    DimensionMismatchError,
    LLMError,
    NotFoundError,
    ProviderError,
    ValidationError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Text normalization (PDF extraction cleanup) ---------------------------
from src.utils.text_normalizer import clean_extracted_text, count_words

__all__ = [
    "ConfigurationError",
    "DecLearningError",
    "DimensionMismatchError",
    "LLMError",
    "NotFoundError",
    "ProviderError",
    "ValidationError",
    "clean_extracted_text",
    "configure_logging",
    "count_words",
    "get_logger",
]
