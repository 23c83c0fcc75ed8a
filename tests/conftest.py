"""Shared pytest fixtures for the knowledge indexer test suite."""

from __future__ import annotations

import hashlib
import struct
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.interfaces.document_status_provider import IDocumentStatusProvider
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.ingestion import DocumentState, StatusUpdate
from src.models.vector import VectorPoint, VectorSearchResult
from src.providers.embedding.registry import EmbeddingProviderRegistry
from src.services.ingestion.chunker import TextChunker

# ---------------------------------------------------------------------------
# Deterministic embeddings
# ---------------------------------------------------------------------------


def _hash_to_vector(text: str, dimensions: int) -> list[float]:
    """Map *text* to a stable pseudo-random unit-ish vector."""
    values: list[float] = []
    counter = 0
    while len(values) < dimensions:
        digest = hashlib.sha256(f"{counter}:{text}".encode()).digest()
        for (word,) in struct.iter_unpack(">I", digest):
            values.append(word / 0xFFFFFFFF - 0.5)
        counter += 1
    return values[:dimensions]


class MockEmbeddingProvider(IEmbeddingProvider):
    """Hash-based embedding provider; same text always yields the same vector."""

    def __init__(self, name: str = "mock", dimensions: int = 8) -> None:
        self._name = name
        self._dimensions = dimensions
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return _hash_to_vector(text, self._dimensions)

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class MockVectorStore(IVectorStoreProvider):
    """Dict-backed vector store that records every call."""

    def __init__(self) -> None:
        self.points: dict[str, VectorPoint] = {}
        self.dimensions: int | None = None
        self.calls: list[tuple[str, Any]] = []

    async def ensure_collection(self, dimensions: int) -> None:
        self.calls.append(("ensure_collection", dimensions))
        if self.dimensions != dimensions:
            self.points.clear()
        self.dimensions = dimensions

    async def upsert(self, points: list[VectorPoint]) -> None:
        self.calls.append(("upsert", len(points)))
        for point in points:
            self.points[point.id] = point

    async def search(
        self,
        vector: list[float],
        team_id: str,
        top_k: int = 5,
    ) -> list[VectorSearchResult]:
        if not team_id:
            raise ValueError("team_id is required for vector search")
        self.calls.append(("search", team_id))
        hits = [
            VectorSearchResult(id=p.id, score=1.0, payload=p.payload.to_wire())
            for p in self.points.values()
            if p.payload.team_id == team_id
        ]
        return hits[:top_k]

    async def delete_by_document_id(self, document_id: str) -> int:
        self.calls.append(("delete_by_document_id", document_id))
        doomed = [pid for pid, p in self.points.items() if p.payload.document_id == document_id]
        for pid in doomed:
            del self.points[pid]
        return len(doomed)

    async def count(self, document_id: str | None = None, team_id: str | None = None) -> int:
        return sum(
            1
            for p in self.points.values()
            if (document_id is None or p.payload.document_id == document_id)
            and (team_id is None or p.payload.team_id == team_id)
        )

    async def reset(self) -> None:
        self.calls.append(("reset", None))
        self.points.clear()
        self.dimensions = None

    def get_provider_name(self) -> str:
        return "mock-vector-store"

    def payloads(self, document_id: str | None = None) -> list[dict[str, Any]]:
        """Wire payloads sorted by (sourceUrl, chunkIndex)."""
        selected = [
            p.payload.to_wire()
            for p in self.points.values()
            if document_id is None or p.payload.document_id == document_id
        ]
        return sorted(selected, key=lambda pl: (pl.get("sourceUrl", ""), pl["chunkIndex"]))


class MockStatusProvider(IDocumentStatusProvider):
    """Status store keeping every update; documents must be registered first."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.updates: list[StatusUpdate] = []

    def register(self, document_id: str, paused: bool = False) -> None:
        self.documents[document_id] = {"status": "pending", "is_paused": paused}

    async def set_status(self, update: StatusUpdate) -> None:
        self.updates.append(update)
        record = self.documents.get(update.document_id)
        if record is None:
            return
        record["status"] = update.status.value
        for field in ("word_count", "chunk_count", "last_indexed", "error_message"):
            value = getattr(update, field)
            if value is not None:
                record[field] = value

    async def get_document_state(self, document_id: str) -> DocumentState:
        record = self.documents.get(document_id)
        if record is None:
            return DocumentState(exists=False)
        return DocumentState(exists=True, is_paused=record["is_paused"])

    def get_provider_name(self) -> str:
        return "mock-status"

    def statuses(self, document_id: str) -> list[str]:
        return [u.status.value for u in self.updates if u.document_id == document_id]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal resolved configuration for testing."""
    return {
        "chunking": {"chunk_size": 200, "overlap": 40},
        "ingestion": {"embed_batch_size": 4, "page_flush_size": 2},
        "crawler": {
            "timeout_seconds": 5.0,
            "user_agent": "TestBot/1.0",
            "default_depth": 1,
        },
        "search": {"default_top_k": 5},
    }


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def embedding_registry(embedding_provider: MockEmbeddingProvider) -> EmbeddingProviderRegistry:
    registry = EmbeddingProviderRegistry(default_name=embedding_provider.name)
    registry.register(embedding_provider)
    return registry


@pytest.fixture
def vector_store() -> MockVectorStore:
    return MockVectorStore()


@pytest.fixture
def status_provider() -> MockStatusProvider:
    return MockStatusProvider()


@pytest.fixture
def chunker() -> TextChunker:
    return TextChunker(chunk_size=200, overlap=40)


@pytest.fixture
def pipeline_kwargs(
    embedding_registry: EmbeddingProviderRegistry,
    vector_store: MockVectorStore,
    status_provider: MockStatusProvider,
    chunker: TextChunker,
) -> dict[str, Any]:
    """Constructor arguments shared by every ingestion pipeline."""
    return {
        "embedding_registry": embedding_registry,
        "vector_store": vector_store,
        "status_provider": status_provider,
        "chunker": chunker,
        "embed_batch_size": 4,
    }


@pytest.fixture
def mock_blob_storage() -> MagicMock:
    """MagicMock blob store; set ``get_object`` per test."""
    from src.interfaces.blob_storage_provider import IBlobStorageProvider

    mock = MagicMock(spec=IBlobStorageProvider)
    mock.get_provider_name.return_value = "mock-blob"
    return mock


@pytest.fixture
def sample_article_text() -> str:
    """Multi-paragraph prose for chunking and pipeline tests."""
    paragraphs = [
        "Vector search ranks stored passages by how close their embeddings "
        "sit to the query embedding. Cosine similarity is the usual measure.",
        "Chunking splits long documents into windows small enough to embed. "
        "Windows overlap so that a sentence cut at one boundary still appears "
        "whole in the neighbouring chunk.",
        "Each stored point carries the tenant identifier. Every search filters "
        "on it, which keeps one team's documents invisible to another team.",
        "Re-indexing a document first deletes its previous points. The new "
        "points then replace them, so repeated runs never accumulate duplicates.",
    ]
    return "\n\n".join(paragraphs)
