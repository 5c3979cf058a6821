"""Retrieval orchestrator: semantic search and question answering.

``search`` embeds the query, asks the vector store for the nearest chunks
and joins their texts into one context string.  ``ask`` runs the same
retrieval and hands the context to the :class:`AnswerGenerator`.  Results
are returned in the order the vector store ranks them; there is no
re-ranking, deduplication or score threshold.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog

from docrag.models.rag import (
    PAYLOAD_DOCUMENT_ID,
    PAYLOAD_TEXT,
    AskResponse,
    SearchChunk,
    SearchResponse,
    SearchResult,
)
from docrag.utils.errors import InvalidInputError

if TYPE_CHECKING:
    from docrag.interfaces.embedding_provider import IEmbeddingProvider
    from docrag.interfaces.vector_store_provider import IVectorStoreProvider
    from docrag.services.answer_generator import AnswerGenerator

logger = structlog.get_logger(logger_name=__name__)

# Joins chunk texts in both the search response and the ask prompt.
CONTEXT_SEPARATOR = "\n\n---\n\n"
NO_DOCUMENTS_ANSWER = "No relevant documents found to answer your question."

# Stand-in for hits whose payload lacks a usable documentId.
_NIL_UUID = uuid.UUID(int=0)


def _parse_document_id(raw: str | None) -> uuid.UUID:
    if not raw:
        return _NIL_UUID
    try:
        return uuid.UUID(raw)
    except ValueError:
        return _NIL_UUID


def _to_search_chunk(hit: SearchResult) -> SearchChunk:
    return SearchChunk(
        chunk_id=hit.id,
        document_id=_parse_document_id(hit.payload.get(PAYLOAD_DOCUMENT_ID)),
        text=hit.payload.get(PAYLOAD_TEXT, ""),
        score=hit.score,
    )


class RetrievalService:
    """Answers search and ask requests against the indexed corpus.

    Parameters
    ----------
    embedding_provider:
        Embeds queries with the same model used at ingestion.
    vector_store:
        Similarity search backend.
    answer_generator:
        Produces context-grounded answers for :meth:`ask`.
    collection_name:
        Collection searched.
    default_top_k:
        Result count used when a call does not pass *top_k*.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        answer_generator: AnswerGenerator,
        collection_name: str = "documents",
        default_top_k: int = 3,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._answer_generator = answer_generator
        self._collection_name = collection_name
        self._default_top_k = default_top_k

    @property
    def default_top_k(self) -> int:
        return self._default_top_k

    async def search(self, query: str, top_k: int | None = None) -> SearchResponse:
        """Return the *top_k* chunks most similar to *query*.

        Raises
        ------
        InvalidInputError
            If *query* is blank or *top_k* is below 1.
        """
        top_k = self._default_top_k if top_k is None else top_k
        chunks = await self._retrieve(query, top_k, field="Query")
        response = SearchResponse(
            chunks=chunks,
            combined_context=CONTEXT_SEPARATOR.join(c.text for c in chunks),
        )
        logger.info(
            "search_complete",
            query_chars=len(query),
            top_k=top_k,
            results_count=len(chunks),
        )
        return response

    async def ask(self, question: str, top_k: int | None = None) -> AskResponse:
        """Answer *question* from the *top_k* most similar chunks.

        When nothing is retrieved the generative model is not called and
        a fixed "no relevant documents" answer is returned.
        """
        top_k = self._default_top_k if top_k is None else top_k
        chunks = await self._retrieve(question, top_k, field="Question")
        if not chunks:
            # No context: skip the model call entirely.
            logger.info("ask_no_context", question_chars=len(question))
            return AskResponse(answer=NO_DOCUMENTS_ANSWER, question=question, sources=[])

        context = CONTEXT_SEPARATOR.join(c.text for c in chunks)
        answer = await self._answer_generator.generate_answer(context, question)
        logger.info("ask_complete", question_chars=len(question), sources=len(chunks))
        return AskResponse(answer=answer, question=question, sources=chunks)

    async def _retrieve(self, text: str, top_k: int, field: str) -> list[SearchChunk]:
        if not text or not text.strip():
            raise InvalidInputError(message=f"{field} cannot be empty.")
        if top_k < 1:
            raise InvalidInputError(message=f"top_k must be at least 1, got {top_k}")

        # Same embedding model as ingestion, or scores are meaningless.
        vector = await self._embedding_provider.generate_embedding(text)
        hits = await self._vector_store.search(self._collection_name, vector, top_k)
        # Backends may return more than asked; ranking order is kept as-is.
        return [_to_search_chunk(hit) for hit in hits[:top_k]]
