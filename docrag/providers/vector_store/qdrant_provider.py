"""Qdrant vector store provider adapter.

Wraps ``qdrant_client.AsyncQdrantClient`` to implement
:class:`IVectorStoreProvider` against a remote Qdrant server.  Collections
use a single unnamed dense vector with cosine distance.
"""

from __future__ import annotations

import uuid

import structlog
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointStruct,
    VectorParams,
)

from docrag.interfaces.vector_store_provider import IVectorStoreProvider
from docrag.models.rag import PAYLOAD_DOCUMENT_ID, SearchResult, VectorPoint
from docrag.utils.errors import BackendUnavailableError, ConfigurationError, DocRagError

logger = structlog.get_logger(logger_name=__name__)


def _document_filter(document_id: uuid.UUID) -> Filter:
    return Filter(
        must=[FieldCondition(key=PAYLOAD_DOCUMENT_ID, match=MatchValue(value=str(document_id)))]
    )


class QdrantProvider(IVectorStoreProvider):
    """Vector store provider backed by a Qdrant server.

    Parameters
    ----------
    url:
        Qdrant HTTP endpoint, e.g. ``http://localhost:6333``.
    api_key:
        Optional API key for managed deployments.
    timeout:
        Request timeout in seconds.
    client:
        Pre-built client; tests inject a mock here.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: str = "",
        timeout: float = 60.0,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        self._url = url
        self._client = client or AsyncQdrantClient(
            url=url,
            api_key=api_key or None,
            timeout=int(timeout),
        )

    async def _collection_names(self) -> set[str]:
        collections = await self._client.get_collections()
        return {col.name for col in collections.collections}

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_collection(self, name: str, vector_size: int) -> None:
        try:
            if name not in await self._collection_names():
                await self._client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
                )
                logger.info("qdrant_collection_created", collection=name, dimension=vector_size)
                return

            info = await self._client.get_collection(name)
            current_size = info.config.params.vectors.size  # type: ignore[union-attr]
        except DocRagError:
            raise
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"Qdrant ensure_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if current_size != vector_size:
            raise ConfigurationError(
                message=(
                    f"Collection '{name}' holds {current_size}-dim vectors but the "
                    f"embedding provider produces {vector_size}-dim vectors"
                ),
                provider_name=self.get_provider_name(),
            )

    async def upsert(self, collection_name: str, points: list[VectorPoint]) -> int:
        if not points:
            return 0
        structs = [
            PointStruct(id=str(p.id), vector=p.vector, payload=dict(p.payload)) for p in points
        ]
        try:
            await self._client.upsert(collection_name=collection_name, points=structs, wait=True)
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"Qdrant upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("qdrant_upsert", collection=collection_name, count=len(structs))
        return len(structs)

    async def search(
        self,
        collection_name: str,
        query_vector: list[float],
        top_k: int = 3,
    ) -> list[SearchResult]:
        try:
            if collection_name not in await self._collection_names():
                return []
            response = await self._client.query_points(
                collection_name=collection_name,
                query=query_vector,
                limit=top_k,
                with_payload=True,
            )
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"Qdrant search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        hits = [
            SearchResult(
                id=uuid.UUID(str(point.id)),
                score=point.score,
                payload={k: str(v) for k, v in (point.payload or {}).items()},
            )
            for point in response.points
        ]
        logger.info(
            "qdrant_query",
            collection=collection_name,
            results_count=len(hits),
            top_score=hits[0].score if hits else 0.0,
        )
        return hits

    async def delete_by_document_id(self, collection_name: str, document_id: uuid.UUID) -> int:
        selector = _document_filter(document_id)
        try:
            if collection_name not in await self._collection_names():
                return 0
            counted = await self._client.count(
                collection_name=collection_name, count_filter=selector, exact=True
            )
            if counted.count:
                await self._client.delete(
                    collection_name=collection_name,
                    points_selector=FilterSelector(filter=selector),
                    wait=True,
                )
        except Exception as exc:
            raise BackendUnavailableError(
                message=f"Qdrant delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "qdrant_delete_by_document",
            collection=collection_name,
            document_id=str(document_id),
            deleted_count=counted.count,
        )
        return counted.count

    async def is_healthy(self) -> bool:
        """Return ``True`` if the server lists its collections."""
        try:
            await self._client.get_collections()
            return True
        except Exception as exc:
            logger.warning("qdrant_unhealthy", url=self._url, error=str(exc))
            return False

    def get_provider_name(self) -> str:
        return "qdrant"
