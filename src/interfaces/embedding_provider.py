"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.
Implementations may wrap OpenAI ``text-embedding-3-small``, Nomic
``nomic-embed-text`` (local via Ollama), or any other embedding backend.
The adapter pattern keeps pipelines independent of the chosen model;
providers are looked up by name in
:class:`~src.providers.embedding.registry.EmbeddingProviderRegistry`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider  - text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider   - nomic-embed-text via Ollama (local)
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the ingestion pipelines.

    Vectors produced here are written through
    :class:`~src.interfaces.vector_store_provider.IVectorStoreProvider`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key for this provider, e.g. ``"openai"`` or ``"nomic"``."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Length of every vector returned by :meth:`embed`.

        Must remain constant for the lifetime of the provider instance; the
        vector store collection is (re)created with this dimension.

        Example values: ``1536`` (OpenAI ``text-embedding-3-small``),
        ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The chunk text to embed.

        Returns
        -------
        list[float]
            A vector of length :attr:`dimensions`.

        Raises
        ------
        src.utils.errors.RAGError
            If the embedding API call fails.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations check that credentials (if any) are present without
        generating an actual embedding.
        """
