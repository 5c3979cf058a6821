"""Shared pytest fixtures for the docrag test suite."""

from __future__ import annotations

import hashlib
import struct
import uuid
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docrag.interfaces.document_store import IDocumentStore
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.llm_provider import ILLMProvider
from docrag.interfaces.vector_store_provider import IVectorStoreProvider
from docrag.models.document import Document, DocumentChunk
from docrag.models.rag import PAYLOAD_DOCUMENT_ID, SearchResult, VectorPoint
from docrag.providers.extractor.pdf_extractor import PdfTextExtractor
from docrag.providers.extractor.plain_text_extractor import PlainTextExtractor
from docrag.services.ingestion.extraction_dispatcher import ExtractionDispatcher
from docrag.utils.errors import ConcurrencyConflictError, NotFoundError

# ---------------------------------------------------------------------------
# Embedding / vector store doubles
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 128


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic unit-length vector by hashing *text*.

    Same text always produces the same vector, so a query identical to a
    stored chunk scores 1.0 against it.
    """
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    raw = digest
    while len(raw) < dim * 4:
        raw += hashlib.sha256(raw).digest()
    raw = raw[: dim * 4]
    # Unsigned ints keep every component finite (raw float bytes can be NaN).
    values = [v / 2**32 - 0.5 for v in struct.unpack(f"<{dim}I", raw)]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = sum(x * x for x in a) ** 0.5
    norm_b = sum(y * y for y in b) ** 0.5
    return dot / max(norm_a * norm_b, 1e-10)


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self, dim: int = _EMBEDDING_DIM) -> None:
        self._dim = dim
        self.calls: list[str] = []

    async def generate_embedding(self, text: str) -> list[float]:
        self.calls.append(text)
        return _hash_to_vector(text, self._dim)

    @property
    def vector_size(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class MockVectorStore(IVectorStoreProvider):
    """In-memory vector store keyed by collection name.

    ``search`` ranks every stored point by cosine similarity.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[uuid.UUID, VectorPoint]] = {}
        self.dimensions: dict[str, int] = {}
        self.ensure_calls = 0

    async def ensure_collection(self, name: str, vector_size: int) -> None:
        self.ensure_calls += 1
        self.collections.setdefault(name, {})
        self.dimensions.setdefault(name, vector_size)

    async def upsert(self, collection_name: str, points: list[VectorPoint]) -> int:
        store = self.collections.setdefault(collection_name, {})
        for point in points:
            store[point.id] = point
        return len(points)

    async def search(
        self,
        collection_name: str,
        query_vector: list[float],
        top_k: int = 3,
    ) -> list[SearchResult]:
        store = self.collections.get(collection_name, {})
        hits = [
            SearchResult(id=p.id, score=_cosine(query_vector, p.vector), payload=p.payload)
            for p in store.values()
        ]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:top_k]

    async def delete_by_document_id(self, collection_name: str, document_id: uuid.UUID) -> int:
        store = self.collections.get(collection_name, {})
        doomed = [
            pid for pid, p in store.items()
            if p.payload.get(PAYLOAD_DOCUMENT_ID) == str(document_id)
        ]
        for pid in doomed:
            del store[pid]
        return len(doomed)

    async def is_healthy(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "mock-vector-store"

    def count(self, collection_name: str = "documents") -> int:
        return len(self.collections.get(collection_name, {}))


class MockDocumentStore(IDocumentStore):
    """In-memory document store with the same version semantics as SQLite."""

    def __init__(self) -> None:
        self.documents: dict[uuid.UUID, Document] = {}
        self.chunks: dict[uuid.UUID, list[DocumentChunk]] = {}

    async def initialize(self) -> None:
        return None

    async def create(self, document: Document) -> Document:
        stored = document.model_copy(update={"version": 1})
        self.documents[stored.id] = stored
        return stored

    async def get_by_id(self, document_id: uuid.UUID) -> Document | None:
        return self.documents.get(document_id)

    async def get_all(self) -> list[Document]:
        return sorted(self.documents.values(), key=lambda d: d.created_at, reverse=True)

    async def update(self, document: Document) -> Document:
        current = self.documents.get(document.id)
        if current is None:
            raise NotFoundError(message=f"Document {document.id} no longer exists")
        if current.version != document.version:
            raise ConcurrencyConflictError()
        stored = document.model_copy(update={"version": document.version + 1})
        self.documents[stored.id] = stored
        return stored

    async def delete(self, document_id: uuid.UUID) -> bool:
        self.chunks.pop(document_id, None)
        return self.documents.pop(document_id, None) is not None

    async def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        for chunk in chunks:
            self.chunks.setdefault(chunk.document_id, []).append(chunk)

    async def get_chunks(self, document_id: uuid.UUID) -> list[DocumentChunk]:
        return sorted(self.chunks.get(document_id, []), key=lambda c: c.chunk_index)

    def get_provider_name(self) -> str:
        return "mock-document-store"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def mock_vector_store() -> MockVectorStore:
    return MockVectorStore()


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose ``complete`` returns a fixed answer.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``side_effect`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value="The answer is 42.")
    return mock


@pytest.fixture
def dispatcher() -> ExtractionDispatcher:
    return ExtractionDispatcher([PdfTextExtractor(), PlainTextExtractor()])


@pytest.fixture
def sample_text() -> str:
    """Multi-paragraph prose long enough to produce several 600-char chunks."""
    return (
        "The warehouse opened its doors in the spring of 1988. Nobody expected the "
        "crowd that arrived on the first night.\n\n"
        "By midnight the queue stretched around the block! The organisers had "
        "printed two hundred tickets and sold them all within an hour. Security "
        "staff were hired from a local firm and briefed on the door policy.\n\n"
        "Inside, the sound system filled the main room. Engineers had tuned it "
        "during the afternoon, moving speaker stacks until the bass was even "
        "across the floor. Lighting was minimal: a strobe, two lasers and a "
        "handful of coloured lamps.\n\n"
        "Did the neighbours complain? Surprisingly few did. The building sat on "
        "an industrial estate and the nearest houses were half a mile away. "
        "The council later granted a licence for monthly events.\n\n"
        "Over the following year the parties grew. Guest performers travelled "
        "from other cities, and the organisers began keeping records of every "
        "event, including attendance figures, running costs and feedback from "
        "regulars. Those records form the basis of this document."
    )


@pytest.fixture
def sample_pdf_bytes(sample_text: str) -> bytes:
    """A two-page PDF built with PyMuPDF."""
    import fitz

    doc = fitz.open()
    paragraphs = sample_text.split("\n\n")
    for part in (paragraphs[:2], paragraphs[2:]):
        page = doc.new_page()
        page.insert_textbox(fitz.Rect(50, 50, 550, 800), "\n".join(part), fontsize=10)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def docs_dir(tmp_path: Path, sample_text: str) -> Path:
    """Directory with one supported file of each kind plus an ignored one."""
    root = tmp_path / "docs"
    root.mkdir()
    (root / "history.txt").write_text(sample_text, encoding="utf-8")
    (root / "notes.md").write_text("# Notes\n\nThe licence was renewed in 1990.", encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    return root


@pytest.fixture
def mock_document_store() -> MockDocumentStore:
    return MockDocumentStore()
