"""Abstract base class for the document metadata store.

Persists document records and their chunk records.  Vectors are not
stored here; they live in the vector index under the same chunk ids.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from docrag.models.document import Document, DocumentChunk


# Concrete implementation: SQLiteDocumentStore
# (docrag/providers/document_store/).
class IDocumentStore(ABC):
    """Contract for document and chunk persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def create(self, document: Document) -> Document:
        """Insert *document* and return the stored value (version 1)."""

    @abstractmethod
    async def get_by_id(self, document_id: uuid.UUID) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def get_all(self) -> list[Document]:
        """Return every document, newest first."""

    @abstractmethod
    async def update(self, document: Document) -> Document:
        """Persist *document* if its ``version`` matches the stored one.

        Returns
        -------
        Document
            The stored value with ``version`` incremented.

        Raises
        ------
        ConcurrencyConflictError
            If another writer updated the record first.
        NotFoundError
            If the record no longer exists.
        """

    @abstractmethod
    async def delete(self, document_id: uuid.UUID) -> bool:
        """Delete the document and, by cascade, its chunks.

        Returns ``True`` if a record was removed.
        """

    @abstractmethod
    async def add_chunks(self, chunks: list[DocumentChunk]) -> None:
        """Insert chunk records for an existing document."""

    @abstractmethod
    async def get_chunks(self, document_id: uuid.UUID) -> list[DocumentChunk]:
        """Return the chunks of a document ordered by ``chunk_index``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
