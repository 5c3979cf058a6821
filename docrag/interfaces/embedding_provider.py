"""Abstract base class for text-embedding providers.

An embedding provider turns a text span into a fixed-length float vector.
The vector length is a model constant and sizes the vector-index
collection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OllamaEmbeddingProvider, OpenAIEmbeddingProvider
# (docrag/providers/embedding/).
class IEmbeddingProvider(ABC):
    """Contract for embedding generation services."""

    @abstractmethod
    async def generate_embedding(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text.

        Parameters
        ----------
        text:
            The text to embed.

        Returns
        -------
        list[float]
            A vector of length :attr:`vector_size`.

        Raises
        ------
        BackendUnavailableError
            If the backend call fails or returns an empty embedding.
        """

    @property
    @abstractmethod
    def vector_size(self) -> int:
        """Dimensionality of the vectors this provider produces."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""
