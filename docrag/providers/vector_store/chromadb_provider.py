"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search and stores everything under a
local directory, so no external service is required.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from typing import Any

# Disable ChromaDB telemetry before importing chromadb.  A version mismatch
# between ChromaDB's bundled PostHog client and the installed one raises
# "capture() takes 1 positional argument but 3 were given" on every call.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from docrag.interfaces.vector_store_provider import IVectorStoreProvider
from docrag.models.rag import PAYLOAD_DOCUMENT_ID, PAYLOAD_TEXT, SearchResult, VectorPoint
from docrag.utils.errors import BackendUnavailableError, ConfigurationError, DocRagError

logger = structlog.get_logger(logger_name=__name__)

# Collection metadata key recording the vector size the collection was built for.
_DIMENSION_KEY = "dimension"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that keeps ChromaDB from loading its default model.

    Vectors always arrive pre-computed, so ChromaDB's built-in ONNX model
    (~80 MB) would never be used.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docrag uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    ChromaDB's client is synchronous; every call runs in a worker thread
    via :func:`asyncio.to_thread` so the event loop stays responsive.

    Parameters
    ----------
    persist_directory:
        Directory holding the ChromaDB database files.
    """

    def __init__(self, persist_directory: str = "./data/chromadb") -> None:
        self._persist_directory = persist_directory
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )

    # ------------------------------------------------------------------
    # Collection helpers
    # ------------------------------------------------------------------

    def _collection_names(self) -> set[str]:
        # Older chromadb returns Collection objects, newer returns names.
        return {
            c if isinstance(c, str) else c.name for c in self._client.list_collections()
        }

    def _open_collection(self, name: str, metadata: dict[str, Any] | None = None):  # noqa: ANN202
        return self._client.get_or_create_collection(
            name=name,
            metadata=metadata,
            embedding_function=_NoopEmbeddingFunction(),
        )

    def _ensure_collection_sync(self, name: str, vector_size: int) -> None:
        if name not in self._collection_names():
            self._open_collection(
                name, metadata={"hnsw:space": "cosine", _DIMENSION_KEY: vector_size}
            )
            logger.info("chromadb_collection_created", collection=name, dimension=vector_size)
            return

        collection = self._open_collection(name)
        existing = (collection.metadata or {}).get(_DIMENSION_KEY)
        if existing is not None and int(existing) != vector_size:
            raise ConfigurationError(
                message=(
                    f"Collection '{name}' holds {existing}-dim vectors but the "
                    f"embedding provider produces {vector_size}-dim vectors"
                ),
                provider_name=self.get_provider_name(),
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_collection(self, name: str, vector_size: int) -> None:
        try:
            await asyncio.to_thread(self._ensure_collection_sync, name, vector_size)
        except DocRagError:
            raise
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"ChromaDB ensure_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _upsert_sync(self, collection_name: str, points: list[VectorPoint]) -> int:
        collection = self._open_collection(collection_name)
        collection.upsert(
            ids=[str(p.id) for p in points],
            embeddings=[p.vector for p in points],
            documents=[p.payload.get(PAYLOAD_TEXT, "") for p in points],
            metadatas=[dict(p.payload) for p in points],
        )
        return len(points)

    async def upsert(self, collection_name: str, points: list[VectorPoint]) -> int:
        if not points:
            return 0
        try:
            count = await asyncio.to_thread(self._upsert_sync, collection_name, points)
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_upsert", collection=collection_name, count=count)
        return count

    def _search_sync(
        self, collection_name: str, query_vector: list[float], top_k: int
    ) -> list[SearchResult]:
        if collection_name not in self._collection_names():
            return []
        collection = self._open_collection(collection_name)
        total = collection.count()
        if total == 0:
            return []

        results = collection.query(
            query_embeddings=[query_vector],
            n_results=min(top_k, total),
            include=["metadatas", "distances"],
        )
        ids = results["ids"][0] if results["ids"] else []
        metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(ids)
        distances = results["distances"][0] if results["distances"] else [0.0] * len(ids)

        hits = [
            SearchResult(
                id=uuid.UUID(point_id),
                score=1.0 - distance,
                payload={k: str(v) for k, v in (meta or {}).items()},
            )
            for point_id, meta, distance in zip(ids, metadatas, distances, strict=True)
        ]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    async def search(
        self,
        collection_name: str,
        query_vector: list[float],
        top_k: int = 3,
    ) -> list[SearchResult]:
        try:
            hits = await asyncio.to_thread(
                self._search_sync, collection_name, query_vector, top_k
            )
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "chromadb_query",
            collection=collection_name,
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits

    def _delete_sync(self, collection_name: str, document_id: uuid.UUID) -> int:
        if collection_name not in self._collection_names():
            return 0
        collection = self._open_collection(collection_name)
        where = {PAYLOAD_DOCUMENT_ID: str(document_id)}
        existing = collection.get(where=where, include=[])
        count = len(existing["ids"]) if existing["ids"] else 0
        if count > 0:
            collection.delete(where=where)
        return count

    async def delete_by_document_id(self, collection_name: str, document_id: uuid.UUID) -> int:
        try:
            count = await asyncio.to_thread(self._delete_sync, collection_name, document_id)
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "chromadb_delete_by_document",
            collection=collection_name,
            document_id=str(document_id),
            deleted_count=count,
        )
        return count

    async def is_healthy(self) -> bool:
        """Return ``True`` if the ChromaDB client answers a heartbeat."""
        try:
            await asyncio.to_thread(self._client.heartbeat)
            return True
        except Exception as exc:
            logger.warning("chromadb_unhealthy", error=str(exc))
            return False

    def get_provider_name(self) -> str:
        return "chromadb"
