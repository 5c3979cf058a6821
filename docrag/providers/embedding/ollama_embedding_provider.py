"""Ollama embedding provider adapter (local, no API key).

Wraps the Ollama OpenAI-compatible endpoint to implement
:class:`IEmbeddingProvider`.  The default model is ``nomic-embed-text``,
which produces 768-dimensional vectors.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from docrag.config.settings import Settings
from docrag.interfaces.embedding_provider import IEmbeddingProvider
from docrag.utils.errors import BackendUnavailableError

logger = structlog.get_logger(logger_name=__name__)

# Known Ollama embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
    "snowflake-arctic-embed": 1024,
}


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by a model served via Ollama.

    Communicates through the OpenAI-compatible ``/v1`` endpoint that Ollama
    exposes, one text per call.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # Ollama doesn't require a real key
            timeout=settings.http_timeout,
        )
        self._model = settings.ollama_embedding_model
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 768)

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def generate_embedding(self, text: str) -> list[float]:
        try:
            response = await self._client.embeddings.create(input=[text], model=self._model)
        except openai.APIError as exc:
            raise BackendUnavailableError(
                message=f"Ollama embedding API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data or not response.data[0].embedding:
            raise BackendUnavailableError(
                message="Ollama returned an empty embedding",
                provider_name=self.get_provider_name(),
            )
        logger.debug("ollama_embedding", model=self._model, chars=len(text))
        return list(response.data[0].embedding)

    @property
    def vector_size(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "ollama_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server is reachable."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
