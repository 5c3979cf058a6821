"""Abstract base class for LLM (large language model) providers.

The answer generator builds the RAG prompt and sends it through this
contract, so swapping Ollama for an OpenAI-compatible service needs no
change outside ``docrag/providers/llm/``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OllamaLLMProvider, OpenAILLMProvider
# (docrag/providers/llm/).
class ILLMProvider(ABC):
    """Contract for text-completion services."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1024,
    ) -> str:
        """Generate a completion.

        Parameters
        ----------
        system_prompt:
            Instructions constraining the model's behaviour.
        user_prompt:
            The request, including any retrieved context.
        temperature:
            Sampling temperature; low values keep answers close to the context.
        max_tokens:
            Upper bound on generated tokens.

        Returns
        -------
        str
            The generated text.

        Raises
        ------
        LLMError
            If the API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Make a lightweight call to verify the backend is reachable."""
