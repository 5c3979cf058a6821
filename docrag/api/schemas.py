"""Pydantic request/response schemas for the docrag API.

Defines the public contract for the REST endpoints: upload, document
listing and detail, deletion, reconciliation, search, ask and health.
Search and ask reuse :class:`~docrag.models.rag.SearchResponse` and
:class:`~docrag.models.rag.AskResponse` directly.

Convention: request schemas end with "Request", response schemas with
"Response".
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from docrag.models.document import Document, DocumentChunk, DocumentStatus
from docrag.models.rag import IngestionResult, ReconciliationReport


class UploadDocumentResponse(BaseModel):
    """Returned after a document has been ingested."""

    document_id: uuid.UUID
    file_name: str
    chunk_count: int
    status: DocumentStatus
    ingestion_time: float = Field(description="Wall-clock seconds spent ingesting.")
    message: str = "Document processed successfully."

    @classmethod
    def from_result(cls, result: IngestionResult) -> UploadDocumentResponse:
        return cls(
            document_id=result.document_id,
            file_name=result.file_name,
            chunk_count=result.chunk_count,
            status=result.status,
            ingestion_time=result.ingestion_time,
        )


class DocumentResponse(BaseModel):
    """Document metadata without chunk bodies."""

    id: uuid.UUID
    file_name: str
    content_type: str
    file_size_bytes: int
    chunk_count: int
    status: DocumentStatus
    created_at: datetime
    processed_at: datetime | None = None

    @classmethod
    def from_document(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            file_name=document.file_name,
            content_type=document.content_type,
            file_size_bytes=document.file_size_bytes,
            chunk_count=document.chunk_count,
            status=document.status,
            created_at=document.created_at,
            processed_at=document.processed_at,
        )


class ChunkResponse(BaseModel):
    """One stored chunk of a document."""

    id: uuid.UUID
    chunk_index: int
    text: str

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk) -> ChunkResponse:
        return cls(id=chunk.id, chunk_index=chunk.chunk_index, text=chunk.text)


class DocumentDetailResponse(DocumentResponse):
    """Document metadata plus its chunks in order."""

    chunks: list[ChunkResponse] = Field(default_factory=list)


class DocumentListResponse(BaseModel):
    """All documents, newest first."""

    documents: list[DocumentResponse] = Field(default_factory=list)
    total: int = 0


class DeleteDocumentResponse(BaseModel):
    """Outcome of a document deletion."""

    document_id: uuid.UUID
    deleted: bool = True
    vectors_deleted: int = 0


class ReconcileResponse(BaseModel):
    """What the repair operation did for one document id."""

    document_id: uuid.UUID
    status: DocumentStatus | None = None
    vectors_deleted: int = 0
    action: str

    @classmethod
    def from_report(cls, report: ReconciliationReport) -> ReconcileResponse:
        return cls(
            document_id=report.document_id,
            status=report.status,
            vectors_deleted=report.vectors_deleted,
            action=report.action,
        )


class SearchRequest(BaseModel):
    """Semantic search over indexed chunks."""

    query: str = Field(default="", max_length=4000)
    top_k: int | None = Field(default=None, ge=1, le=50)


class AskRequest(BaseModel):
    """Question answered from retrieved chunks."""

    question: str = Field(default="", max_length=4000)
    top_k: int | None = Field(default=None, ge=1, le=50)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    timestamp: datetime
    providers: dict[str, Any] = Field(default_factory=dict)


class VectorHealthResponse(BaseModel):
    """Vector index reachability."""

    status: str
    service: str
    timestamp: datetime


class EmbedTestRequest(BaseModel):
    """Text embedded by the diagnostic endpoint."""

    text: str = Field(default="", max_length=4000)


class EmbedTestResponse(BaseModel):
    """Vector length produced by the configured embedding backend."""

    vector_length: int
    provider: str


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
