"""docrag data models."""

from __future__ import annotations

from docrag.models.document import Document, DocumentChunk, DocumentStatus
from docrag.models.rag import (
    AskResponse,
    IngestionResult,
    ReconciliationReport,
    SearchChunk,
    SearchResponse,
    SearchResult,
    VectorPoint,
)

__all__ = [
    "AskResponse",
    "Document",
    "DocumentChunk",
    "DocumentStatus",
    "IngestionResult",
    "ReconciliationReport",
    "SearchChunk",
    "SearchResponse",
    "SearchResult",
    "VectorPoint",
]
