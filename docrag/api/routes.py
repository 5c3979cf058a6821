"""FastAPI API routes for docrag.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  Application errors raised by
the services are converted to JSON responses by
:class:`~docrag.api.middleware.ErrorHandlingMiddleware`.

Endpoint                                Method  Description
------------------------------------------------------------------------
/api/v1/documents/upload                POST    Upload and ingest a document
/api/v1/documents                       GET     List documents, newest first
/api/v1/documents/{id}                  GET     Document detail with chunks
/api/v1/documents/{id}                  DELETE  Delete vectors and record
/api/v1/documents/{id}/reconcile        POST    Remove orphaned vectors
/api/v1/documents/search                POST    Semantic search
/api/v1/documents/ask                   POST    Question answering (RAG)
/api/v1/health                          GET     Liveness + provider names
/api/v1/health/vector                   GET     Vector index reachability
/api/v1/test/embed                       POST    Embed text, report vector length
"""

from __future__ import annotations

import io
import uuid
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from docrag import __version__
from docrag.api.schemas import (
    AskRequest,
    ChunkResponse,
    DeleteDocumentResponse,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentResponse,
    EmbedTestRequest,
    EmbedTestResponse,
    ErrorResponse,
    HealthResponse,
    ReconcileResponse,
    SearchRequest,
    UploadDocumentResponse,
    VectorHealthResponse,
)
from docrag.models.rag import AskResponse, SearchResponse
from docrag.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

# --- Upload validation constants ---
_ALLOWED_CONTENT_TYPES = ("application/pdf", "text/plain", "text/markdown")
_ALLOWED_EXTENSIONS = frozenset({".pdf", ".txt", ".md"})
_DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024

# Uploads are read in 64 KB increments so oversized files are rejected
# without buffering the whole payload.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> Any:
    """Return the ingestion service from application state, or ``None``."""
    return getattr(request.app.state, "ingestion_service", None)


def _get_retrieval_service(request: Request) -> Any:
    """Return the retrieval service from application state, or ``None``."""
    return getattr(request.app.state, "retrieval_service", None)


def _get_vector_store(request: Request) -> Any:
    """Return the vector store from application state, or ``None``."""
    return getattr(request.app.state, "vector_store", None)


def _get_embedding_provider(request: Request) -> Any:
    """Return the embedding provider from application state, or ``None``."""
    return getattr(request.app.state, "embedding_provider", None)


def _get_max_upload_bytes(request: Request) -> int:
    settings = getattr(request.app.state, "settings", None)
    return settings.max_upload_bytes if settings is not None else _DEFAULT_MAX_UPLOAD_BYTES


IngestionServiceDep = Annotated[Any, Depends(_get_ingestion_service)]
RetrievalServiceDep = Annotated[Any, Depends(_get_retrieval_service)]
VectorStoreDep = Annotated[Any, Depends(_get_vector_store)]
EmbeddingProviderDep = Annotated[Any, Depends(_get_embedding_provider)]
MaxUploadBytesDep = Annotated[int, Depends(_get_max_upload_bytes)]


def _require(service: Any, name: str) -> Any:
    if service is None:
        raise HTTPException(status_code=503, detail=f"{name} not available")
    return service


def _is_supported_upload(content_type: str, file_name: str) -> bool:
    content_type = content_type.lower()
    if any(content_type.startswith(t) for t in _ALLOWED_CONTENT_TYPES):
        return True
    # Browsers often send application/octet-stream; fall back to the extension.
    return PurePath(file_name).suffix.lower() in _ALLOWED_EXTENSIONS


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=UploadDocumentResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Upload a PDF, text or Markdown document for indexing",
)
async def upload_document(
    file: UploadFile,
    ingestion_service: IngestionServiceDep,
    max_upload_bytes: MaxUploadBytesDep,
) -> UploadDocumentResponse:
    """Accept a document, extract, chunk, embed and index it."""
    service = _require(ingestion_service, "Ingestion service")
    file_name = file.filename or ""
    content_type = file.content_type or ""

    if not file_name:
        raise HTTPException(status_code=400, detail="No file provided.")
    if not _is_supported_upload(content_type, file_name):
        raise HTTPException(
            status_code=415,
            detail=(
                f"Unsupported file type: {content_type or 'unknown'}. "
                f"Allowed: {', '.join(_ALLOWED_CONTENT_TYPES)}"
            ),
        )

    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=(
                    f"File too large: >{max_upload_bytes // (1024 * 1024)} MB. "
                    f"Maximum: {max_upload_bytes} bytes."
                ),
            )
        chunks.append(chunk)

    if total_size == 0:
        raise HTTPException(status_code=400, detail="No file provided.")

    data = b"".join(chunks)
    del chunks

    _logger.info("document_upload_received", file_name=file_name, size=total_size)
    result = await service.ingest(
        io.BytesIO(data),
        file_name=file_name,
        content_type=content_type,
        file_size=total_size,
    )
    return UploadDocumentResponse.from_result(result)


@router.get(
    "/documents",
    response_model=DocumentListResponse,
    summary="List documents, newest first",
)
async def list_documents(ingestion_service: IngestionServiceDep) -> DocumentListResponse:
    service = _require(ingestion_service, "Ingestion service")
    documents = await service.list_documents()
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d) for d in documents],
        total=len(documents),
    )


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Document metadata with its chunks",
)
async def get_document(
    document_id: uuid.UUID,
    ingestion_service: IngestionServiceDep,
) -> DocumentDetailResponse:
    service = _require(ingestion_service, "Ingestion service")
    document = await service.get_document(document_id)
    chunks = await service.get_chunks(document_id)
    base = DocumentResponse.from_document(document)
    return DocumentDetailResponse(
        **base.model_dump(),
        chunks=[ChunkResponse.from_chunk(c) for c in chunks],
    )


@router.delete(
    "/documents/{document_id}",
    response_model=DeleteDocumentResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Delete a document, its chunks and its vectors",
)
async def delete_document(
    document_id: uuid.UUID,
    ingestion_service: IngestionServiceDep,
) -> DeleteDocumentResponse:
    service = _require(ingestion_service, "Ingestion service")
    removed = await service.delete_document(document_id)
    return DeleteDocumentResponse(document_id=document_id, vectors_deleted=removed)


@router.post(
    "/documents/{document_id}/reconcile",
    response_model=ReconcileResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Remove vectors left behind by a failed or deleted document",
)
async def reconcile_document(
    document_id: uuid.UUID,
    ingestion_service: IngestionServiceDep,
) -> ReconcileResponse:
    service = _require(ingestion_service, "Ingestion service")
    report = await service.reconcile(document_id)
    return ReconcileResponse.from_report(report)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


@router.post(
    "/documents/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Semantic search over indexed chunks",
)
async def search_documents(
    body: SearchRequest,
    retrieval_service: RetrievalServiceDep,
) -> SearchResponse:
    service = _require(retrieval_service, "Retrieval service")
    if not body.query.strip():
        raise HTTPException(status_code=400, detail="Query cannot be empty.")
    return await service.search(body.query, top_k=body.top_k)


@router.post(
    "/documents/ask",
    response_model=AskResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Answer a question from the indexed documents",
)
async def ask_question(
    body: AskRequest,
    retrieval_service: RetrievalServiceDep,
) -> AskResponse:
    service = _require(retrieval_service, "Retrieval service")
    if not body.question.strip():
        raise HTTPException(status_code=400, detail="Question cannot be empty.")
    return await service.ask(body.question, top_k=body.top_k)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return liveness, version and the configured provider names."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        providers=providers,
    )


@router.get(
    "/health/vector",
    response_model=VectorHealthResponse,
    responses={503: {"model": VectorHealthResponse}},
    summary="Vector index reachability",
)
async def vector_health(vector_store: VectorStoreDep) -> Any:
    """Return 200 when the vector index answers, 503 otherwise."""
    healthy = vector_store is not None and await vector_store.is_healthy()
    body = VectorHealthResponse(
        status="healthy" if healthy else "unhealthy",
        service=vector_store.get_provider_name() if vector_store is not None else "unknown",
        timestamp=datetime.now(timezone.utc),
    )
    if healthy:
        return body
    return JSONResponse(status_code=503, content=body.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


@router.post(
    "/test/embed",
    response_model=EmbedTestResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Embed a text and report the vector length",
)
async def embed_check(
    body: EmbedTestRequest,
    embedding_provider: EmbeddingProviderDep,
) -> EmbedTestResponse:
    """Round-trip one embedding call against the configured backend."""
    provider = _require(embedding_provider, "Embedding provider")
    if not body.text.strip():
        raise HTTPException(status_code=400, detail="Text cannot be empty.")

    vector = await provider.generate_embedding(body.text)
    _logger.info("embed_check", provider=provider.get_provider_name(), dims=len(vector))
    return EmbedTestResponse(
        vector_length=len(vector),
        provider=provider.get_provider_name(),
    )
