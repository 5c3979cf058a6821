"""YAML configuration loader with environment variable overrides.

Layers, later ones winning:

1. ``config/config.yaml`` -- static defaults checked into the repo
2. ``.env`` file          -- local developer overrides
3. environment variables  -- deployment-time values

``load_config`` reads the YAML file and deep-merges the values resolved by
:class:`~docrag.config.settings.Settings` on top of it.
"""

from pathlib import Path

import yaml

from docrag.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              an empty base configuration.
        settings: Pre-built settings; constructed from the environment
                  when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "embedding": {
            "backend": settings.resolve_embedding_backend(),
            "ollama_model": settings.ollama_embedding_model,
        },
        "llm": {
            "backend": settings.resolve_llm_backend(),
            "ollama_model": settings.ollama_llm_model,
        },
        "vector_store": {
            "backend": settings.vector_store_backend,
            "collection": settings.collection_name,
        },
        "ingestion": {
            "chunk_size": settings.chunk_size,
            "chunk_overlap": settings.chunk_overlap,
            "embedding_concurrency": settings.embedding_concurrency,
            "cleanup_on_failure": settings.cleanup_on_failure,
        },
        "retrieval": {
            "default_top_k": settings.default_top_k,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
