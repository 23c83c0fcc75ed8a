"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Fully local, free, and
Python-native - no external service required.

One collection per deployment holds every tenant's points.  The embedding
dimension is recorded in the collection metadata so a provider swap (e.g.
OpenAI 1536 → Nomic 768) is detected and the collection rebuilt instead of
mixing incompatible vectors.  ChromaDB indexes every metadata key, so the
``teamId`` and ``documentId`` filters need no explicit index setup.
"""

from __future__ import annotations

import json
import os
from typing import Any

# ChromaDB reads this at import time; Settings(anonymized_telemetry=False)
# below covers versions that ignore the env var.
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import chromadb
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.vector import VectorPoint, VectorSearchResult
from src.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_DIMENSIONS_KEY = "dimensions"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Every point is upserted with a pre-computed embedding, so ChromaDB's
    built-in embedding is never invoked.  Without this, ChromaDB downloads
    and loads its default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Embeddings are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBVectorStore(IVectorStoreProvider):
    """Vector store backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory ChromaDB persists to.
    collection_name:
        Fixed collection name shared by every tenant.
    client:
        Optional pre-built ChromaDB client (tests pass an ephemeral one).
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "knowledge_base",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection: Any | None = None

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_collection(self, dimensions: int) -> None:
        """Get-or-create the collection, rebuilding it when *dimensions* changed."""
        try:
            existing = self._open_existing()
            if existing is not None:
                stored = self._stored_dimensions(existing)
                if stored == dimensions:
                    self._collection = existing
                    return

                logger.warning(
                    "chromadb_dimension_mismatch_recreating",
                    collection=self._collection_name,
                    stored_dimensions=stored,
                    dimensions=dimensions,
                    dropped_points=existing.count(),
                )
                self._client.delete_collection(self._collection_name)

            self._collection = self._create(dimensions)
            logger.info(
                "chromadb_collection_created",
                collection=self._collection_name,
                dimensions=dimensions,
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB ensure_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def upsert(self, points: list[VectorPoint]) -> None:
        """Upsert *points*; ChromaDB persists synchronously before returning."""
        if not points:
            return
        collection = self._require_collection()
        try:
            collection.upsert(
                ids=[p.id for p in points],
                embeddings=[p.vector for p in points],
                documents=[p.payload.text for p in points],
                metadatas=[self._flatten_metadata(p.payload.to_wire()) for p in points],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("chromadb_upsert", count=len(points))

    async def search(
        self,
        vector: list[float],
        team_id: str,
        top_k: int = 5,
    ) -> list[VectorSearchResult]:
        """Cosine nearest-neighbour search restricted to *team_id*."""
        if not team_id:
            raise ValueError("team_id is required for vector search")
        if top_k < 1:
            return []

        collection = self._current()
        if collection is None:
            return []

        try:
            total = collection.count()
            if total == 0:
                return []
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, total),
                where={"teamId": team_id},
                include=["metadatas", "distances"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [0.0] * len(ids)

        hits = [
            VectorSearchResult(id=point_id, score=1.0 - distance, payload=dict(meta or {}))
            for point_id, meta, distance in zip(ids, metadatas, distances, strict=True)
        ]
        logger.debug("chromadb_search", team_id=team_id, results_count=len(hits))
        return hits

    async def delete_by_document_id(self, document_id: str) -> int:
        """Delete every point of *document_id*, across all tenants."""
        collection = self._current()
        if collection is None:
            return 0
        try:
            existing = collection.get(where={"documentId": document_id}, include=["metadatas"])
            ids = existing["ids"] or []
            if ids:
                collection.delete(ids=ids)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB delete_by_document_id failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete_by_document", document_id=document_id, deleted_count=len(ids))
        return len(ids)

    async def count(self, document_id: str | None = None, team_id: str | None = None) -> int:
        collection = self._current()
        if collection is None:
            return 0

        clauses: list[dict[str, Any]] = []
        if document_id:
            clauses.append({"documentId": document_id})
        if team_id:
            clauses.append({"teamId": team_id})

        try:
            if not clauses:
                return collection.count()
            where = clauses[0] if len(clauses) == 1 else {"$and": clauses}
            return len(collection.get(where=where, include=["metadatas"])["ids"] or [])
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def reset(self) -> None:
        if self._open_existing() is not None:
            self._client.delete_collection(self._collection_name)
            logger.warning("chromadb_collection_dropped", collection=self._collection_name)
        self._collection = None

    def get_provider_name(self) -> str:
        return "chromadb"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _open_existing(self) -> Any | None:
        """Return the collection if it exists, without creating it."""
        # list_collections() yields names on chromadb >= 0.6, objects before.
        names = {getattr(c, "name", c) for c in self._client.list_collections()}
        if self._collection_name not in names:
            return None
        # Collections created with the default embedding function refuse a
        # different one on reopen; fall back to the persisted function.
        try:
            return self._client.get_collection(
                name=self._collection_name,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            return self._client.get_collection(name=self._collection_name)

    def _current(self) -> Any | None:
        if self._collection is not None:
            return self._collection
        return self._open_existing()

    def _create(self, dimensions: int) -> Any:
        return self._client.create_collection(
            name=self._collection_name,
            metadata=self._collection_metadata(dimensions),
            embedding_function=_NoopEmbeddingFunction(),
        )

    def _require_collection(self) -> Any:
        if self._collection is None:
            raise RAGError(
                message="Collection not initialised; call ensure_collection() first",
                provider_name=self.get_provider_name(),
            )
        return self._collection

    @staticmethod
    def _collection_metadata(dimensions: int) -> dict[str, Any]:
        return {"hnsw:space": "cosine", _DIMENSIONS_KEY: dimensions}

    @staticmethod
    def _stored_dimensions(collection: Any) -> int | None:
        """Dimension from collection metadata, else from a stored vector."""
        metadata = collection.metadata or {}
        if _DIMENSIONS_KEY in metadata:
            return int(metadata[_DIMENSIONS_KEY])
        if collection.count() == 0:
            return None
        sample = collection.peek(limit=1)
        embeddings = sample.get("embeddings") if sample else None
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])

    @staticmethod
    def _flatten_metadata(payload: dict[str, Any]) -> dict[str, str | int | float | bool]:
        """ChromaDB accepts scalar metadata only; JSON-encode containers."""
        flat: dict[str, str | int | float | bool] = {}
        for key, value in payload.items():
            if value is None:
                continue
            if isinstance(value, (str, int, float, bool)):
                flat[key] = value
            else:
                flat[key] = json.dumps(value, default=str, sort_keys=True)
        return flat
