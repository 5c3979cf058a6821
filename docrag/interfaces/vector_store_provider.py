"""Abstract base class for vector index providers.

A vector index stores chunk embeddings with a flat string payload in a
named collection and answers k-nearest-neighbour queries ranked by cosine
similarity.  One collection holds the chunks of every document.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from docrag.models.rag import SearchResult, VectorPoint


# Concrete implementations: ChromaDBProvider (local, persistent) and
# QdrantProvider (remote) in docrag/providers/vector_store/.
class IVectorStoreProvider(ABC):
    """Contract for vector storage and similarity search.

    Every method except :meth:`is_healthy` and :meth:`get_provider_name`
    raises :class:`~docrag.utils.errors.BackendUnavailableError` when the
    backend fails.
    """

    @abstractmethod
    async def ensure_collection(self, name: str, vector_size: int) -> None:
        """Create collection *name* sized for *vector_size* if it does not exist.

        Idempotent.  Raises ``ConfigurationError`` when the collection exists
        with a different vector size.
        """

    @abstractmethod
    async def upsert(self, collection_name: str, points: list[VectorPoint]) -> int:
        """Insert or replace *points*; return the number written."""

    @abstractmethod
    async def search(
        self,
        collection_name: str,
        query_vector: list[float],
        top_k: int = 3,
    ) -> list[SearchResult]:
        """Return up to *top_k* hits ordered by descending similarity.

        A collection that does not exist yet yields an empty list.
        """

    @abstractmethod
    async def delete_by_document_id(self, collection_name: str, document_id: uuid.UUID) -> int:
        """Delete every point whose payload ``documentId`` equals *document_id*.

        Idempotent; returns the number of points removed when the backend
        reports it, otherwise ``0``.
        """

    @abstractmethod
    async def is_healthy(self) -> bool:
        """Return ``True`` if the backend answers a cheap request."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
