"""Interface definitions for every external collaborator.

Services depend only on these abstract base classes; concrete adapters in
``docrag/providers/`` are chosen in ``docrag/services/factory.py``.

    Interface              Concrete implementations
    ──────────────────────────────────────────────────────────────
    ITextExtractor         PdfTextExtractor, PlainTextExtractor
    IEmbeddingProvider     OllamaEmbeddingProvider, OpenAIEmbeddingProvider
    IVectorStoreProvider   ChromaDBProvider, QdrantProvider
    ILLMProvider           OllamaLLMProvider, OpenAILLMProvider
    IDocumentStore         SQLiteDocumentStore
"""

from docrag.interfaces.document_store import IDocumentStore
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.interfaces.llm_provider import ILLMProvider
from docrag.interfaces.text_extractor import ITextExtractor
from docrag.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ITextExtractor",
    "IVectorStoreProvider",
]
