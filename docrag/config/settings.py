"""Application settings loaded from environment variables via pydantic-settings.

Values are read, in priority order, from:

1. environment variables (``OLLAMA_BASE_URL=...``), then
2. a ``.env`` file in the working directory, then
3. the defaults declared below.

Field names map to upper-cased environment variables automatically.
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docrag application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Model backends ===
    # "auto" prefers OpenAI when an API key is set and falls back to Ollama.
    embedding_backend: Literal["auto", "ollama", "openai"] = "auto"
    llm_backend: Literal["auto", "ollama", "openai"] = "auto"

    ollama_base_url: str = "http://localhost:11434"
    ollama_embedding_model: str = "nomic-embed-text"
    ollama_llm_model: str = "llama3.1"

    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, vLLM, ...)
    openai_embedding_model: str = ""
    openai_text_model: str = ""

    # === Vector index ===
    vector_store_backend: Literal["chromadb", "qdrant"] = "chromadb"
    chromadb_persist_dir: str = "./data/chromadb"
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str = ""
    collection_name: str = "documents"

    # === Document store ===
    document_db_path: str = "data/documents.db"

    # === Ingestion / retrieval ===
    chunk_size: int = Field(default=600, gt=0)
    chunk_overlap: int = Field(default=100, ge=0)
    default_top_k: int = Field(default=3, ge=1)
    embedding_concurrency: int = Field(default=1, ge=1)
    cleanup_on_failure: bool = False
    max_upload_bytes: int = 50 * 1024 * 1024
    http_timeout: float = 60.0

    # === App config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self

    def resolve_embedding_backend(self) -> str:
        """Return the concrete embedding backend name ("openai" or "ollama")."""
        if self.embedding_backend != "auto":
            return self.embedding_backend
        return "openai" if self.openai_api_key else "ollama"

    def resolve_llm_backend(self) -> str:
        """Return the concrete LLM backend name ("openai" or "ollama")."""
        if self.llm_backend != "auto":
            return self.llm_backend
        return "openai" if self.openai_api_key else "ollama"
