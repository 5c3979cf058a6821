"""Unit tests for component assembly in docrag/services/factory.py.

Backend selection is checked without network access: provider
constructors only build clients, they never connect.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docrag.config.settings import Settings
from docrag.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from docrag.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from docrag.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docrag.providers.llm.ollama_provider import OllamaLLMProvider
from docrag.providers.llm.openai_provider import OpenAILLMProvider
from docrag.providers.vector_store.chromadb_provider import ChromaDBProvider
from docrag.providers.vector_store.qdrant_provider import QdrantProvider
from docrag.services.factory import (
    build_components,
    build_embedding_provider,
    build_llm_provider,
    build_vector_store,
)
from docrag.services.ingestion.ingestion_service import IngestionService
from docrag.services.retrieval_service import RetrievalService


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(tmp_path: Path, **overrides) -> Settings:
    """Build a Settings instance with local paths and no API keys."""
    defaults = {
        "openai_api_key": "",
        "openai_base_url": "",
        "embedding_backend": "auto",
        "llm_backend": "auto",
        "vector_store_backend": "chromadb",
        "chromadb_persist_dir": str(tmp_path / "chroma"),
        "document_db_path": str(tmp_path / "documents.db"),
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


# ======================================================================
# Provider selection
# ======================================================================


class TestBuildEmbeddingProvider:
    def test_auto_without_key_uses_ollama(self, tmp_path: Path) -> None:
        provider = build_embedding_provider(_settings(tmp_path))
        assert isinstance(provider, OllamaEmbeddingProvider)

    def test_auto_with_key_uses_openai(self, tmp_path: Path) -> None:
        provider = build_embedding_provider(_settings(tmp_path, openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_explicit_ollama_wins_over_key(self, tmp_path: Path) -> None:
        provider = build_embedding_provider(
            _settings(tmp_path, openai_api_key="sk-test", embedding_backend="ollama")
        )
        assert isinstance(provider, OllamaEmbeddingProvider)


class TestBuildLLMProvider:
    def test_auto_without_key_uses_ollama(self, tmp_path: Path) -> None:
        assert isinstance(build_llm_provider(_settings(tmp_path)), OllamaLLMProvider)

    def test_auto_with_key_uses_openai(self, tmp_path: Path) -> None:
        provider = build_llm_provider(_settings(tmp_path, openai_api_key="sk-test"))
        assert isinstance(provider, OpenAILLMProvider)

    def test_explicit_openai(self, tmp_path: Path) -> None:
        provider = build_llm_provider(
            _settings(tmp_path, openai_api_key="sk-test", llm_backend="openai")
        )
        assert provider.get_provider_name() == "openai"


class TestBuildVectorStore:
    def test_default_is_chromadb(self, tmp_path: Path) -> None:
        assert isinstance(build_vector_store(_settings(tmp_path)), ChromaDBProvider)

    def test_qdrant_selected(self, tmp_path: Path) -> None:
        store = build_vector_store(
            _settings(tmp_path, vector_store_backend="qdrant", qdrant_url="http://qdrant:6333")
        )
        assert isinstance(store, QdrantProvider)


# ======================================================================
# build_components
# ======================================================================


class TestBuildComponents:
    def test_all_components_present(self, tmp_path: Path) -> None:
        components = build_components(_settings(tmp_path))

        assert isinstance(components["ingestion_service"], IngestionService)
        assert isinstance(components["retrieval_service"], RetrievalService)
        assert isinstance(components["document_store"], SQLiteDocumentStore)
        assert isinstance(components["vector_store"], ChromaDBProvider)
        assert components["settings"].app_env == "test"

    def test_provider_registry(self, tmp_path: Path) -> None:
        registry = build_components(_settings(tmp_path))["provider_registry"]
        assert registry == {
            "embedding": "ollama_embedding",
            "llm": "ollama",
            "vector_store": "chromadb",
            "document_store": "sqlite",
        }

    def test_collection_name_propagates(self, tmp_path: Path) -> None:
        components = build_components(_settings(tmp_path, collection_name="handbooks"))
        assert components["ingestion_service"].collection_name == "handbooks"

    def test_default_top_k_propagates(self, tmp_path: Path) -> None:
        components = build_components(_settings(tmp_path, default_top_k=7))
        assert components["retrieval_service"].default_top_k == 7


# ======================================================================
# Settings
# ======================================================================


class TestSettings:
    def test_overlap_must_be_smaller_than_size(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            _settings(tmp_path, chunk_size=100, chunk_overlap=100)

    def test_resolve_backends(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, openai_api_key="sk-test", llm_backend="ollama")
        assert settings.resolve_embedding_backend() == "openai"
        assert settings.resolve_llm_backend() == "ollama"

    def test_defaults(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path)
        assert settings.chunk_size == 600
        assert settings.chunk_overlap == 100
        assert settings.default_top_k == 3
        assert settings.embedding_concurrency == 1
        assert settings.cleanup_on_failure is False
