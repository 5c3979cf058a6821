"""Component assembly shared by the API and the CLI.

Selects concrete providers from :class:`~docrag.config.settings.Settings`
and wires them into the ingestion and retrieval services.  Heavy backend
modules (chromadb, qdrant-client) are imported only when selected.
"""

from __future__ import annotations

from typing import Any

import structlog

from docrag.config.settings import Settings
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.llm_provider import ILLMProvider
from docrag.interfaces.vector_store_provider import IVectorStoreProvider
from docrag.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from docrag.providers.extractor.pdf_extractor import PdfTextExtractor
from docrag.providers.extractor.plain_text_extractor import PlainTextExtractor
from docrag.services.answer_generator import AnswerGenerator
from docrag.services.ingestion.chunker import TextChunker
from docrag.services.ingestion.extraction_dispatcher import ExtractionDispatcher
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.retrieval_service import RetrievalService

logger = structlog.get_logger(logger_name=__name__)


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``embedding_backend``.

    ``auto`` picks OpenAI when an API key is configured, else Ollama.
    """
    if app_settings.resolve_embedding_backend() == "openai":
        from docrag.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings)

    from docrag.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider

    return OllamaEmbeddingProvider(settings=app_settings)


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Return the LLM provider named by ``llm_backend`` (``auto`` as above)."""
    if app_settings.resolve_llm_backend() == "openai":
        from docrag.providers.llm.openai_provider import OpenAILLMProvider

        return OpenAILLMProvider(settings=app_settings)

    from docrag.providers.llm.ollama_provider import OllamaLLMProvider

    return OllamaLLMProvider(settings=app_settings)


def build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    """Return the vector store named by ``vector_store_backend``."""
    if app_settings.vector_store_backend == "qdrant":
        from docrag.providers.vector_store.qdrant_provider import QdrantProvider

        return QdrantProvider(
            url=app_settings.qdrant_url,
            api_key=app_settings.qdrant_api_key,
            timeout=app_settings.http_timeout,
        )

    from docrag.providers.vector_store.chromadb_provider import ChromaDBProvider

    return ChromaDBProvider(persist_directory=app_settings.chromadb_persist_dir)


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance.

    Returns a flat dict of named components.  The document store still
    needs ``await document_store.initialize()`` before first use.
    """
    embedding_provider = build_embedding_provider(app_settings)
    llm_provider = build_llm_provider(app_settings)
    vector_store = build_vector_store(app_settings)
    document_store = SQLiteDocumentStore(db_path=app_settings.document_db_path)

    dispatcher = ExtractionDispatcher([PdfTextExtractor(), PlainTextExtractor()])
    chunker = TextChunker(
        chunk_size=app_settings.chunk_size,
        overlap=app_settings.chunk_overlap,
    )

    ingestion_service = IngestionService(
        dispatcher=dispatcher,
        chunker=chunker,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        document_store=document_store,
        collection_name=app_settings.collection_name,
        embedding_concurrency=app_settings.embedding_concurrency,
        cleanup_on_failure=app_settings.cleanup_on_failure,
    )
    retrieval_service = RetrievalService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        answer_generator=AnswerGenerator(llm_provider),
        collection_name=app_settings.collection_name,
        default_top_k=app_settings.default_top_k,
    )

    provider_registry = {
        "embedding": embedding_provider.get_provider_name(),
        "llm": llm_provider.get_provider_name(),
        "vector_store": vector_store.get_provider_name(),
        "document_store": document_store.get_provider_name(),
    }
    logger.info("components_built", **provider_registry)

    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "llm_provider": llm_provider,
        "vector_store": vector_store,
        "document_store": document_store,
        "ingestion_service": ingestion_service,
        "retrieval_service": retrieval_service,
        "provider_registry": provider_registry,
    }
