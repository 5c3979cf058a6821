"""Utility modules for docrag.

- **errors** -- exception hierarchy rooted at :class:`DocRagError`; each
  failure kind of the ingestion/retrieval core has its own subclass.
- **logging** -- structlog setup: coloured console output in development,
  JSON in production.
- **concurrency** -- ``throttled_gather``, an order-preserving bounded
  ``asyncio.gather`` used for parallel embedding.
"""

from docrag.utils.errors import (
    BackendUnavailableError,
    ConcurrencyConflictError,
    ConfigurationError,
    DocRagError,
    ExtractionError,
    IngestionCancelledError,
    InvalidInputError,
    LLMError,
    NotFoundError,
    UnsupportedFormatError,
)
from docrag.utils.logging import configure_logging, get_logger

__all__ = [
    "BackendUnavailableError",
    "ConcurrencyConflictError",
    "ConfigurationError",
    "DocRagError",
    "ExtractionError",
    "IngestionCancelledError",
    "InvalidInputError",
    "LLMError",
    "NotFoundError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
]
