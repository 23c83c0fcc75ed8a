"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g., OPENAI_API_KEY=sk-abc123
#   2. **.env file** - key=value lines in the project root .env file
#
# Field `openai_api_key` maps to env var `OPENAI_API_KEY`.  Defaults are
# used when neither source sets a value.  Secrets (API keys, S3 keys)
# default to the empty string, which means "not configured".
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge indexer settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embeddings ===
    # Name of the registered provider used by every pipeline ("openai" or "nomic").
    embedding_provider: str = "openai"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_embedding_model: str = ""  # Empty = text-embedding-3-small
    ollama_base_url: str = "http://localhost:11434"

    # === Vector store ===
    chromadb_persist_dir: str = "./data/chromadb"
    # One collection per deployment, shared by every tenant.
    vector_collection: str = "knowledge_base"

    # === Blob storage (uploaded PDF/DOCX files) ===
    blob_backend: Literal["s3", "filesystem"] = "s3"
    s3_endpoint_url: str = "http://localhost:9000"  # MinIO in development
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_region: str = "us-east-1"
    s3_bucket: str = "knowledge"
    blob_root_dir: str = "./data/blobs"

    # === Document status store ===
    status_db_path: str = "data/documents.db"

    # === Job queue ===
    queue_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    ingestion_queue_name: str = "document-ingestion"
    ingestion_concurrency: int = 2

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_embedding_providers(self) -> list[str]:
        """Return embedding provider names whose credentials are configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("nomic")
        return providers
