"""Abstract base class for vector-store service providers.

Defines the contract for storing, searching and purging embedded chunks.
Implementations may wrap ChromaDB (local/free), Qdrant, Pinecone, or any
other vector database.  The adapter pattern keeps the ingestion layer
independent of the chosen backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.vector import VectorPoint, VectorSearchResult


# Concrete implementation: ChromaDBVectorStore (src/providers/vector_store/)
# Data persists to disk at CHROMADB_PERSIST_DIR.  A single collection per
# deployment holds every tenant's points; isolation is by teamId filter.
class IVectorStoreProvider(ABC):
    """Contract for the tenant-scoped vector index.

    All methods are async to support network-backed stores without
    blocking the event loop.

    **Re-indexing protocol**: pipelines call :meth:`ensure_collection`
    then :meth:`delete_by_document_id` before any :meth:`upsert` for a
    document, so re-ingesting the same input replaces rather than
    duplicates its points.
    """

    @abstractmethod
    async def ensure_collection(self, dimensions: int) -> None:
        """Create the collection if missing; recreate it on dimension mismatch.

        Recreating drops every stored point.  This only happens when the
        configured embedding provider changes to one with a different
        vector size.
        """

    @abstractmethod
    async def upsert(self, points: list[VectorPoint]) -> None:
        """Insert or replace *points*.

        Returns only after the write is durable.

        Raises
        ------
        src.utils.errors.RAGError
            If the store operation fails.
        """

    @abstractmethod
    async def search(
        self,
        vector: list[float],
        team_id: str,
        top_k: int = 5,
    ) -> list[VectorSearchResult]:
        """Return the *top_k* nearest points owned by *team_id*.

        Parameters
        ----------
        vector:
            Query embedding.
        team_id:
            Tenant filter.  Mandatory; results never include other tenants.
        top_k:
            Maximum number of results.

        Returns
        -------
        list[VectorSearchResult]
            Ranked by cosine similarity, highest first.

        Raises
        ------
        ValueError
            If *team_id* is empty.
        """

    @abstractmethod
    async def delete_by_document_id(self, document_id: str) -> int:
        """Delete every point whose payload ``documentId`` matches.

        Returns
        -------
        int
            Number of points removed (0 when the collection is missing).
        """

    @abstractmethod
    async def count(self, document_id: str | None = None, team_id: str | None = None) -> int:
        """Count stored points, optionally restricted by document and/or tenant."""

    @abstractmethod
    async def reset(self) -> None:
        """Drop the whole collection.  Irreversible."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""
