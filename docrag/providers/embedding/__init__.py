"""Embedding provider implementations."""

from docrag.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from docrag.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OllamaEmbeddingProvider", "OpenAIEmbeddingProvider"]
