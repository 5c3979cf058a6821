"""Vector-index projections and retrieval results.

``VectorPoint`` and ``SearchResult`` are the wire shapes exchanged with the
vector index; their payload is a flat ``str -> str`` mapping so every hit is
self-describing without a join back to the document store.  The remaining
models are the results returned by the ingestion and retrieval services.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, Field

from docrag.models.document import DocumentStatus

# Payload keys written for every chunk vector.
PAYLOAD_TEXT = "text"
PAYLOAD_DOCUMENT_ID = "documentId"
PAYLOAD_FILE_NAME = "fileName"
PAYLOAD_CHUNK_INDEX = "chunkIndex"


class VectorPoint(BaseModel):
    """A chunk embedding plus its payload, keyed by the chunk id."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    vector: list[float]
    payload: dict[str, str] = Field(default_factory=dict)


class SearchResult(BaseModel):
    """One nearest-neighbour hit from the vector index."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    score: float = Field(description="Cosine similarity; higher is more relevant.")
    payload: dict[str, str] = Field(default_factory=dict)


class SearchChunk(BaseModel):
    """A retrieved chunk as exposed to callers."""

    model_config = ConfigDict(frozen=True)

    chunk_id: uuid.UUID
    document_id: uuid.UUID
    text: str
    score: float


class SearchResponse(BaseModel):
    """Ranked chunks plus their texts joined into one context string."""

    model_config = ConfigDict(frozen=True)

    chunks: list[SearchChunk] = Field(default_factory=list)
    combined_context: str = ""


class AskResponse(BaseModel):
    """Generated answer with the question echoed and the ranked sources."""

    model_config = ConfigDict(frozen=True)

    answer: str
    question: str
    sources: list[SearchChunk] = Field(default_factory=list)


class IngestionResult(BaseModel):
    """Outcome of one successful ingestion run."""

    model_config = ConfigDict(frozen=True)

    document_id: uuid.UUID
    file_name: str
    chunk_count: int = Field(ge=0)
    status: DocumentStatus
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")


class ReconciliationReport(BaseModel):
    """What the repair operation did for one document id."""

    model_config = ConfigDict(frozen=True)

    document_id: uuid.UUID
    status: DocumentStatus | None = Field(
        default=None, description="Document status, or None when no record exists."
    )
    vectors_deleted: int = Field(default=0, ge=0)
    action: str
