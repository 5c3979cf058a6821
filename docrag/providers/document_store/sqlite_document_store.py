"""SQLite-backed document store.

Persists document and chunk records to a local SQLite database at
``data/documents.db``.  Uses ``aiosqlite`` for async I/O and opens one
connection per operation.  Foreign keys are enabled on every connection so
deleting a document cascades to its chunks.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from docrag.interfaces.document_store import IDocumentStore
from docrag.models.document import Document, DocumentChunk, DocumentStatus
from docrag.utils.errors import ConcurrencyConflictError, NotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")

_CREATE_DOCUMENTS_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id               TEXT    PRIMARY KEY,
    file_name        TEXT    NOT NULL,
    content_type     TEXT    NOT NULL,
    file_size_bytes  INTEGER NOT NULL DEFAULT 0,
    chunk_count      INTEGER NOT NULL DEFAULT 0,
    created_at       TEXT    NOT NULL,
    processed_at     TEXT,
    status           TEXT    NOT NULL,
    version          INTEGER NOT NULL DEFAULT 1
);
"""

_CREATE_CHUNKS_SQL = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           TEXT    PRIMARY KEY,
    document_id  TEXT    NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    text         TEXT    NOT NULL,
    chunk_index  INTEGER NOT NULL,
    created_at   TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
]

_INSERT_DOCUMENT_SQL = """\
INSERT INTO documents
    (id, file_name, content_type, file_size_bytes, chunk_count,
     created_at, processed_at, status, version)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_DOCUMENT_SQL = """\
UPDATE documents
SET file_name = ?, content_type = ?, file_size_bytes = ?, chunk_count = ?,
    processed_at = ?, status = ?, version = version + 1
WHERE id = ? AND version = ?;
"""

_SELECT_DOCUMENT_COLUMNS = (
    "SELECT id, file_name, content_type, file_size_bytes, chunk_count, "
    "created_at, processed_at, status, version FROM documents"
)

_INSERT_CHUNK_SQL = """\
INSERT INTO document_chunks (id, document_id, text, chunk_index, created_at)
VALUES (?, ?, ?, ?, ?);
"""


def _row_to_document(row: aiosqlite.Row) -> Document:
    processed_at = row["processed_at"]
    return Document(
        id=uuid.UUID(row["id"]),
        file_name=row["file_name"],
        content_type=row["content_type"],
        file_size_bytes=row["file_size_bytes"],
        chunk_count=row["chunk_count"],
        created_at=datetime.fromisoformat(row["created_at"]),
        processed_at=datetime.fromisoformat(processed_at) if processed_at else None,
        status=DocumentStatus(row["status"]),
        version=row["version"],
    )


def _row_to_chunk(row: aiosqlite.Row) -> DocumentChunk:
    return DocumentChunk(
        id=uuid.UUID(row["id"]),
        document_id=uuid.UUID(row["document_id"]),
        text=row["text"],
        chunk_index=row["chunk_index"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document and chunk persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON;")
            yield db

    async def initialize(self) -> None:
        """Create the documents and chunks tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_DOCUMENTS_SQL)
            await db.execute(_CREATE_CHUNKS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    async def create(self, document: Document) -> Document:
        stored = document.model_copy(update={"version": 1})
        async with self._connect() as db:
            await db.execute(
                _INSERT_DOCUMENT_SQL,
                (
                    str(stored.id),
                    stored.file_name,
                    stored.content_type,
                    stored.file_size_bytes,
                    stored.chunk_count,
                    stored.created_at.isoformat(),
                    stored.processed_at.isoformat() if stored.processed_at else None,
                    stored.status.value,
                    stored.version,
                ),
            )
            await db.commit()
        logger.debug("document_created", document_id=str(stored.id), status=stored.status.value)
        return stored

    async def get_by_id(self, document_id: uuid.UUID) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"{_SELECT_DOCUMENT_COLUMNS} WHERE id = ?", (str(document_id),)
            )
            row = await cursor.fetchone()
        return _row_to_document(row) if row else None

    async def get_all(self) -> list[Document]:
        """Return all documents, newest first."""
        async with self._connect() as db:
            cursor = await db.execute(
                f"{_SELECT_DOCUMENT_COLUMNS} ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def update(self, document: Document) -> Document:
        async with self._connect() as db:
            cursor = await db.execute(
                _UPDATE_DOCUMENT_SQL,
                (
                    document.file_name,
                    document.content_type,
                    document.file_size_bytes,
                    document.chunk_count,
                    document.processed_at.isoformat() if document.processed_at else None,
                    document.status.value,
                    str(document.id),
                    document.version,
                ),
            )
            updated = cursor.rowcount
            await db.commit()

            if updated == 0:
                cursor = await db.execute(
                    "SELECT version FROM documents WHERE id = ?", (str(document.id),)
                )
                row = await cursor.fetchone()
                if row is None:
                    raise NotFoundError(
                        message=f"Document {document.id} no longer exists",
                        provider_name=self.get_provider_name(),
                    )
                raise ConcurrencyConflictError(
                    message=(
                        f"Document {document.id} is at version {row['version']}, "
                        f"update carried version {document.version}"
                    ),
                    provider_name=self.get_provider_name(),
                )

        logger.debug(
            "document_updated",
            document_id=str(document.id),
            status=document.status.value,
            version=document.version + 1,
        )
        return document.model_copy(update={"version": document.version + 1})

    async def delete(self, document_id: uuid.UUID) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (str(document_id),))
            deleted = cursor.rowcount > 0
            await db.commit()
        logger.info("document_deleted", document_id=str(document_id), deleted=deleted)
        return deleted

    async def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        if not chunks:
            return
        async with self._connect() as db:
            await db.executemany(
                _INSERT_CHUNK_SQL,
                [
                    (
                        str(c.id),
                        str(c.document_id),
                        c.text,
                        c.chunk_index,
                        c.created_at.isoformat(),
                    )
                    for c in chunks
                ],
            )
            await db.commit()
        logger.debug("chunks_persisted", document_id=str(chunks[0].document_id), count=len(chunks))

    async def get_chunks(self, document_id: uuid.UUID) -> list[DocumentChunk]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, document_id, text, chunk_index, created_at "
                "FROM document_chunks WHERE document_id = ? ORDER BY chunk_index",
                (str(document_id),),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite"
