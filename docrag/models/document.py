"""Document and chunk records owned by the ingestion pipeline.

Both models are frozen: a pipeline stage never mutates a document in
place, it derives a new value with ``model_copy(update=...)`` and writes
it back through the document store, which checks the ``version`` token
to detect concurrent writers.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStatus(str, Enum):
    """Lifecycle of an uploaded document.

    ``PENDING`` is the construction default.  The ingestion service creates
    documents directly in ``PROCESSING``, so ``PENDING`` is never persisted
    by the current flow.
    """

    PENDING = "Pending"
    PROCESSING = "Processing"
    INDEXED = "Indexed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.INDEXED, DocumentStatus.FAILED)


# Allowed forward moves; terminal states have none.
_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.PROCESSING}),
    DocumentStatus.PROCESSING: frozenset({DocumentStatus.INDEXED, DocumentStatus.FAILED}),
    DocumentStatus.INDEXED: frozenset(),
    DocumentStatus.FAILED: frozenset(),
}


class Document(BaseModel):
    """One uploaded source file."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, description="Immutable document id.")
    file_name: str = Field(description="Original file name as uploaded.")
    content_type: str = Field(description="Declared MIME type of the upload.")
    file_size_bytes: int = Field(default=0, ge=0, description="Upload size in bytes.")
    chunk_count: int = Field(default=0, ge=0, description="Number of indexed chunks.")
    created_at: datetime = Field(default_factory=_utcnow)
    processed_at: datetime | None = Field(default=None, description="Set when indexing succeeds.")
    status: DocumentStatus = DocumentStatus.PENDING
    version: int = Field(default=0, ge=0, description="Optimistic-concurrency token.")

    def transition(self, status: DocumentStatus, **changes: object) -> Document:
        """Return a copy moved to *status* with any extra field *changes*.

        Raises
        ------
        ValueError
            If the move is not a forward lifecycle transition.
        """
        if status not in _TRANSITIONS[self.status]:
            raise ValueError(f"Illegal status transition {self.status.value} -> {status.value}")
        return self.model_copy(update={"status": status, **changes})


class DocumentChunk(BaseModel):
    """One retrievable text segment of a document.

    ``id`` is shared with the vector index point so both stores can be
    cross-referenced.
    """

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    document_id: uuid.UUID
    text: str
    chunk_index: int = Field(ge=0, description="Zero-based position in emission order.")
    created_at: datetime = Field(default_factory=_utcnow)
