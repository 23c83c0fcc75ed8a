"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic meaning.
These vectors are stored in ChromaDB and used for tenant-scoped similarity
search by downstream retrieval services.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider - text-embedding-3-small (1536 dims).
       Requires an API key; also drives OpenAI-compatible endpoints.
    2. NomicEmbeddingProvider  - nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.

EmbeddingProviderRegistry maps provider names to instances; the composition
root registers the configured providers once at startup.
"""

from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.embedding.registry import EmbeddingProviderRegistry

__all__ = ["EmbeddingProviderRegistry", "NomicEmbeddingProvider", "OpenAIEmbeddingProvider"]
