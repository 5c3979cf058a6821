"""Unit tests for SQLiteDocumentStore -- documents, chunks and version checks."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from docrag.models.document import Document, DocumentChunk, DocumentStatus
from docrag.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from docrag.utils.errors import ConcurrencyConflictError, NotFoundError


def _document(**overrides) -> Document:
    defaults = {
        "file_name": "report.pdf",
        "content_type": "application/pdf",
        "file_size_bytes": 2048,
        "status": DocumentStatus.PROCESSING,
    }
    defaults.update(overrides)
    return Document(**defaults)


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteDocumentStore:
    store = SQLiteDocumentStore(db_path=tmp_path / "nested" / "documents.db")
    await store.initialize()
    return store


class TestInitialize:
    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "a" / "b" / "docs.db"
        await SQLiteDocumentStore(db_path=db_path).initialize()
        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_initialize_twice_is_safe(self, tmp_path: Path) -> None:
        store = SQLiteDocumentStore(db_path=tmp_path / "docs.db")
        await store.initialize()
        await store.initialize()

    def test_provider_name(self, tmp_path: Path) -> None:
        assert SQLiteDocumentStore(db_path=tmp_path / "docs.db").get_provider_name() == "sqlite"


class TestDocuments:
    @pytest.mark.asyncio
    async def test_create_assigns_version_one(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())
        assert created.version == 1

    @pytest.mark.asyncio
    async def test_get_by_id_round_trip(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())

        fetched = await store.get_by_id(created.id)

        assert fetched == created
        assert fetched.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_get_by_id_unknown(self, store: SQLiteDocumentStore) -> None:
        assert await store.get_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_get_all_newest_first(self, store: SQLiteDocumentStore) -> None:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        oldest = await store.create(_document(file_name="a.txt", created_at=base))
        newest = await store.create(
            _document(file_name="c.txt", created_at=base + timedelta(days=2))
        )
        middle = await store.create(
            _document(file_name="b.txt", created_at=base + timedelta(days=1))
        )

        listed = await store.get_all()

        assert [d.id for d in listed] == [newest.id, middle.id, oldest.id]

    @pytest.mark.asyncio
    async def test_get_all_empty(self, store: SQLiteDocumentStore) -> None:
        assert await store.get_all() == []

    @pytest.mark.asyncio
    async def test_update_increments_version(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())
        processed_at = datetime.now(timezone.utc)

        updated = await store.update(
            created.transition(DocumentStatus.INDEXED, chunk_count=7, processed_at=processed_at)
        )

        assert updated.version == 2
        fetched = await store.get_by_id(created.id)
        assert fetched.status == DocumentStatus.INDEXED
        assert fetched.chunk_count == 7
        assert fetched.processed_at == processed_at
        assert fetched.version == 2

    @pytest.mark.asyncio
    async def test_stale_update_conflicts(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())
        await store.update(created.transition(DocumentStatus.INDEXED, chunk_count=3))

        with pytest.raises(ConcurrencyConflictError):
            await store.update(created.transition(DocumentStatus.FAILED))

        fetched = await store.get_by_id(created.id)
        assert fetched.status == DocumentStatus.INDEXED

    @pytest.mark.asyncio
    async def test_update_deleted_document(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())
        await store.delete(created.id)

        with pytest.raises(NotFoundError):
            await store.update(created.transition(DocumentStatus.FAILED))

    @pytest.mark.asyncio
    async def test_delete(self, store: SQLiteDocumentStore) -> None:
        created = await store.create(_document())

        assert await store.delete(created.id) is True
        assert await store.delete(created.id) is False
        assert await store.get_by_id(created.id) is None


class TestChunks:
    @pytest.mark.asyncio
    async def test_chunks_returned_in_index_order(self, store: SQLiteDocumentStore) -> None:
        doc = await store.create(_document())
        chunks = [
            DocumentChunk(document_id=doc.id, text=f"chunk {i}", chunk_index=i)
            for i in (2, 0, 1)
        ]

        await store.add_chunks(chunks)
        fetched = await store.get_chunks(doc.id)

        assert [c.chunk_index for c in fetched] == [0, 1, 2]
        assert [c.text for c in fetched] == ["chunk 0", "chunk 1", "chunk 2"]
        assert {c.id for c in fetched} == {c.id for c in chunks}

    @pytest.mark.asyncio
    async def test_add_no_chunks(self, store: SQLiteDocumentStore) -> None:
        await store.add_chunks([])

    @pytest.mark.asyncio
    async def test_chunks_of_unknown_document(self, store: SQLiteDocumentStore) -> None:
        assert await store.get_chunks(uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_delete_cascades_to_chunks(self, store: SQLiteDocumentStore) -> None:
        doc = await store.create(_document())
        other = await store.create(_document(file_name="other.txt"))
        await store.add_chunks(
            [
                DocumentChunk(document_id=doc.id, text="a", chunk_index=0),
                DocumentChunk(document_id=other.id, text="b", chunk_index=0),
            ]
        )

        await store.delete(doc.id)

        assert await store.get_chunks(doc.id) == []
        assert len(await store.get_chunks(other.id)) == 1
