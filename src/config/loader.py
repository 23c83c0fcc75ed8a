"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static tuning defaults checked into the repo
#                            (chunk size, batch sizes, crawler timeout)
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based values on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings

# Values used when config.yaml is absent or omits a key.
_DEFAULTS: dict[str, Any] = {
    "chunking": {"chunk_size": 1000, "overlap": 200},
    "ingestion": {"embed_batch_size": 25, "page_flush_size": 20},
    "crawler": {
        "timeout_seconds": 30.0,
        "user_agent": "KnowledgeIndexerBot/1.0 (knowledge indexer)",
        "default_depth": 1,
    },
    "search": {"default_top_k": 5},
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Optional pre-built Settings; a fresh one is read otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config: dict[str, Any] = _copy_defaults()

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "embeddings": {
            "provider": settings.embedding_provider,
            "available_providers": settings.get_available_embedding_providers(),
        },
        "queue": {
            "backend": settings.queue_backend,
            "name": settings.ingestion_queue_name,
            "concurrency": settings.ingestion_concurrency,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _copy_defaults() -> dict[str, Any]:
    return {section: dict(values) for section, values in _DEFAULTS.items()}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
