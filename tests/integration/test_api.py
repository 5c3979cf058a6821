"""Integration tests for FastAPI API endpoints using TestClient.

The app is assembled the way ``create_app`` does it (router plus error and
request-logging middleware) but without the lifespan, so services are
placed on ``app.state`` directly.  Ingestion and retrieval are the real
services running on the in-memory doubles from ``conftest.py``.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from docrag import __version__
from docrag.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from docrag.api.routes import router as api_router
from docrag.config.settings import Settings
from docrag.services.answer_generator import AnswerGenerator
from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.retrieval_service import NO_DOCUMENTS_ANSWER, RetrievalService
from docrag.utils.errors import BackendUnavailableError, LLMError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_app(**state) -> FastAPI:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)
    for key, value in state.items():
        setattr(app.state, key, value)
    return app


@pytest.fixture()
def app_state(
    dispatcher, mock_embedding_provider, mock_vector_store, mock_document_store,
    mock_llm_provider,
) -> dict:
    ingestion = IngestionService(
        dispatcher=dispatcher,
        chunker=TextChunker(chunk_size=200, overlap=40),
        embedding_provider=mock_embedding_provider,
        vector_store=mock_vector_store,
        document_store=mock_document_store,
    )
    retrieval = RetrievalService(
        embedding_provider=mock_embedding_provider,
        vector_store=mock_vector_store,
        answer_generator=AnswerGenerator(mock_llm_provider),
    )
    return {
        "ingestion_service": ingestion,
        "retrieval_service": retrieval,
        "embedding_provider": mock_embedding_provider,
        "vector_store": mock_vector_store,
        "settings": Settings(max_upload_bytes=10_000),
        "provider_registry": {
            "embedding": "mock-embedding",
            "llm": "mock-llm",
            "vector_store": "mock-vector-store",
            "document_store": "mock-document-store",
        },
    }


@pytest.fixture()
def client(app_state: dict) -> TestClient:
    return TestClient(_create_app(**app_state))


def _upload(client: TestClient, name: str, data: bytes, content_type: str = "text/plain"):
    return client.post("/api/v1/documents/upload", files={"file": (name, data, content_type)})


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_upload_text(self, client: TestClient, sample_text: str) -> None:
        resp = _upload(client, "history.txt", sample_text.encode("utf-8"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["file_name"] == "history.txt"
        assert body["status"] == "Indexed"
        assert body["chunk_count"] > 1
        assert body["message"] == "Document processed successfully."
        uuid.UUID(body["document_id"])

    def test_upload_pdf(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        resp = _upload(client, "history.pdf", sample_pdf_bytes, "application/pdf")
        assert resp.status_code == 200
        assert resp.json()["chunk_count"] > 0

    def test_octet_stream_accepted_by_extension(self, client: TestClient) -> None:
        resp = _upload(client, "notes.md", b"# Title\n\nBody text.", "application/octet-stream")
        assert resp.status_code == 200

    def test_unsupported_type(self, client: TestClient) -> None:
        resp = _upload(client, "photo.png", b"\x89PNG\r\n", "image/png")
        assert resp.status_code == 415

    def test_empty_file(self, client: TestClient) -> None:
        resp = _upload(client, "empty.txt", b"")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No file provided."

    def test_too_large(self, client: TestClient) -> None:
        resp = _upload(client, "big.txt", b"a" * 10_001)
        assert resp.status_code == 413

    def test_missing_file_field(self, client: TestClient) -> None:
        resp = client.post("/api/v1/documents/upload")
        assert resp.status_code == 422

    def test_undecodable_text_is_422(
        self, client: TestClient, mock_document_store
    ) -> None:
        resp = _upload(client, "bad.txt", b"\xff\xfe\xfa")

        assert resp.status_code == 422
        assert resp.json()["error"] == "ExtractionError"
        [document] = mock_document_store.documents.values()
        assert document.status.value == "Failed"

    def test_embedding_outage_is_503(
        self, client: TestClient, mock_embedding_provider, sample_text: str
    ) -> None:
        mock_embedding_provider.generate_embedding = AsyncMock(
            side_effect=BackendUnavailableError("connection refused", provider_name="ollama")
        )

        resp = _upload(client, "history.txt", sample_text.encode("utf-8"))

        assert resp.status_code == 503
        assert resp.json() == {
            "error": "BackendUnavailableError",
            "detail": "connection refused",
        }

    def test_service_missing_is_503(self) -> None:
        client = TestClient(_create_app())
        resp = _upload(client, "a.txt", b"hello")
        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# Document management
# ---------------------------------------------------------------------------


class TestDocuments:
    def test_list_and_detail(self, client: TestClient, sample_text: str) -> None:
        doc_id = _upload(client, "history.txt", sample_text.encode("utf-8")).json()["document_id"]

        listing = client.get("/api/v1/documents").json()
        assert listing["total"] == 1
        assert listing["documents"][0]["id"] == doc_id
        assert listing["documents"][0]["content_type"] == "text/plain"

        detail = client.get(f"/api/v1/documents/{doc_id}").json()
        assert detail["status"] == "Indexed"
        assert [c["chunk_index"] for c in detail["chunks"]] == list(
            range(detail["chunk_count"])
        )

    def test_unknown_document_404(self, client: TestClient) -> None:
        resp = client.get(f"/api/v1/documents/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFoundError"

    def test_malformed_id_422(self, client: TestClient) -> None:
        assert client.get("/api/v1/documents/not-a-uuid").status_code == 422

    def test_delete(self, client: TestClient, sample_text: str, mock_vector_store) -> None:
        body = _upload(client, "history.txt", sample_text.encode("utf-8")).json()

        resp = client.delete(f"/api/v1/documents/{body['document_id']}")

        assert resp.status_code == 200
        assert resp.json()["vectors_deleted"] == body["chunk_count"]
        assert mock_vector_store.count("documents") == 0
        assert client.get(f"/api/v1/documents/{body['document_id']}").status_code == 404

    def test_delete_unknown_404(self, client: TestClient) -> None:
        assert client.delete(f"/api/v1/documents/{uuid.uuid4()}").status_code == 404

    def test_reconcile_indexed_document(self, client: TestClient) -> None:
        doc_id = _upload(client, "a.txt", b"Some text.").json()["document_id"]

        resp = client.post(f"/api/v1/documents/{doc_id}/reconcile")

        assert resp.status_code == 200
        assert resp.json()["action"] == "skipped"
        assert resp.json()["status"] == "Indexed"

    def test_reconcile_unknown_id(self, client: TestClient) -> None:
        resp = client.post(f"/api/v1/documents/{uuid.uuid4()}/reconcile")
        assert resp.status_code == 200
        assert resp.json()["status"] is None
        assert resp.json()["action"] == "clean"


# ---------------------------------------------------------------------------
# Search and ask
# ---------------------------------------------------------------------------


class TestRetrieval:
    def test_search_finds_uploaded_chunk(self, client: TestClient) -> None:
        text = "The licence was renewed in 1990."
        doc_id = _upload(client, "notes.txt", text.encode("utf-8")).json()["document_id"]

        resp = client.post("/api/v1/documents/search", json={"query": text, "top_k": 3})

        assert resp.status_code == 200
        body = resp.json()
        assert body["chunks"][0]["document_id"] == doc_id
        assert body["chunks"][0]["text"] == text
        assert body["combined_context"] == text

    def test_search_blank_query_400(self, client: TestClient) -> None:
        resp = client.post("/api/v1/documents/search", json={"query": "   "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Query cannot be empty."

    def test_search_top_k_out_of_range(self, client: TestClient) -> None:
        resp = client.post("/api/v1/documents/search", json={"query": "x", "top_k": 0})
        assert resp.status_code == 422

    def test_omitted_top_k_uses_configured_default(
        self, app_state: dict, mock_embedding_provider, mock_vector_store, mock_llm_provider
    ) -> None:
        app_state["retrieval_service"] = RetrievalService(
            embedding_provider=mock_embedding_provider,
            vector_store=mock_vector_store,
            answer_generator=AnswerGenerator(mock_llm_provider),
            default_top_k=1,
        )
        client = TestClient(_create_app(**app_state))
        _upload(client, "a.txt", b"First note.")
        _upload(client, "b.txt", b"Second note.")

        search = client.post("/api/v1/documents/search", json={"query": "note"})
        ask = client.post("/api/v1/documents/ask", json={"question": "note?"})

        assert len(search.json()["chunks"]) == 1
        assert len(ask.json()["sources"]) == 1

    def test_ask(self, client: TestClient, sample_text: str) -> None:
        _upload(client, "history.txt", sample_text.encode("utf-8"))

        resp = client.post("/api/v1/documents/ask", json={"question": "When?", "top_k": 2})

        assert resp.status_code == 200
        body = resp.json()
        assert body["answer"] == "The answer is 42."
        assert body["question"] == "When?"
        assert len(body["sources"]) == 2

    def test_ask_empty_index(self, client: TestClient) -> None:
        resp = client.post("/api/v1/documents/ask", json={"question": "Anything?"})
        assert resp.json()["answer"] == NO_DOCUMENTS_ANSWER

    def test_ask_blank_question_400(self, client: TestClient) -> None:
        resp = client.post("/api/v1/documents/ask", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Question cannot be empty."

    def test_llm_failure_503(self, client: TestClient, mock_llm_provider) -> None:
        _upload(client, "a.txt", b"Some text.")
        mock_llm_provider.complete.side_effect = LLMError("model not loaded", provider_name="ollama")

        resp = client.post("/api/v1/documents/ask", json={"question": "What?"})

        assert resp.status_code == 503
        assert resp.json()["error"] == "LLMError"


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        body = client.get("/api/v1/health").json()
        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["providers"]["vector_store"] == "mock-vector-store"

    def test_vector_health_ok(self, client: TestClient) -> None:
        resp = client.get("/api/v1/health/vector")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert resp.json()["service"] == "mock-vector-store"

    def test_vector_health_down(self, app_state: dict) -> None:
        store = MagicMock()
        store.is_healthy = AsyncMock(return_value=False)
        store.get_provider_name.return_value = "qdrant"
        client = TestClient(_create_app(**{**app_state, "vector_store": store}))

        resp = client.get("/api/v1/health/vector")

        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"
        assert resp.json()["service"] == "qdrant"


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class TestEmbedCheck:
    def test_reports_vector_length(self, client: TestClient, mock_embedding_provider) -> None:
        resp = client.post("/api/v1/test/embed", json={"text": "hello"})

        assert resp.status_code == 200
        assert resp.json() == {"vector_length": 128, "provider": "mock-embedding"}
        assert mock_embedding_provider.calls == ["hello"]

    def test_blank_text_400(self, client: TestClient) -> None:
        resp = client.post("/api/v1/test/embed", json={"text": "  "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Text cannot be empty."

    def test_backend_down_503(self, client: TestClient, mock_embedding_provider) -> None:
        mock_embedding_provider.generate_embedding = AsyncMock(
            side_effect=BackendUnavailableError("connection refused", provider_name="ollama")
        )

        resp = client.post("/api/v1/test/embed", json={"text": "hello"})

        assert resp.status_code == 503

    def test_provider_missing_503(self, app_state: dict) -> None:
        state = {k: v for k, v in app_state.items() if k != "embedding_provider"}
        resp = TestClient(_create_app(**state)).post("/api/v1/test/embed", json={"text": "x"})
        assert resp.status_code == 503
