"""Vector store provider implementations.

ChromaDB is the default: embeddings persist on disk under
CHROMADB_PERSIST_DIR with no external service.  Qdrant is selected with
VECTOR_STORE_BACKEND=qdrant and talks to a server at QDRANT_URL.
"""

from docrag.providers.vector_store.chromadb_provider import ChromaDBProvider
from docrag.providers.vector_store.qdrant_provider import QdrantProvider

__all__ = ["ChromaDBProvider", "QdrantProvider"]
