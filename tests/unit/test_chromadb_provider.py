"""Unit tests for the ChromaDB vector store provider.

Every test uses a real PersistentClient rooted in ``tmp_path``; vectors
are small hand-built lists so similarity ordering is predictable.
"""

from __future__ import annotations

import uuid

import pytest

from src.models.vector import VectorPayload, VectorPoint
from src.providers.vector_store.chromadb_provider import ChromaDBVectorStore
from src.utils.errors import RAGError


def _point(
    vector: list[float],
    document_id: str = "doc-1",
    team_id: str = "team-a",
    chunk_index: int = 0,
    text: str = "chunk text",
    **extra,
) -> VectorPoint:
    return VectorPoint(
        id=str(uuid.uuid4()),
        vector=vector,
        payload=VectorPayload.build(
            extra,
            document_id=document_id,
            team_id=team_id,
            chunk_index=chunk_index,
            text=text,
        ),
    )


@pytest.fixture
def store(tmp_path) -> ChromaDBVectorStore:
    return ChromaDBVectorStore(
        persist_directory=str(tmp_path / "chroma"),
        collection_name="test_collection",
    )


class TestCollectionLifecycle:
    def test_get_provider_name(self, store) -> None:
        assert store.get_provider_name() == "chromadb"

    @pytest.mark.asyncio
    async def test_count_before_collection_exists(self, store) -> None:
        assert await store.count() == 0
        assert await store.delete_by_document_id("doc-1") == 0
        assert await store.search([1.0, 0.0, 0.0], team_id="team-a") == []

    @pytest.mark.asyncio
    async def test_upsert_requires_collection(self, store) -> None:
        with pytest.raises(RAGError):
            await store.upsert([_point([1.0, 0.0, 0.0])])

    @pytest.mark.asyncio
    async def test_ensure_collection_is_idempotent(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert([_point([1.0, 0.0, 0.0])])
        await store.ensure_collection(3)
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_dimension_change_recreates(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert([_point([1.0, 0.0, 0.0])])

        await store.ensure_collection(4)

        assert await store.count() == 0
        await store.upsert([_point([1.0, 0.0, 0.0, 0.0])])
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_reopen_from_disk(self, tmp_path) -> None:
        path = str(tmp_path / "chroma")
        first = ChromaDBVectorStore(persist_directory=path, collection_name="kb_test")
        await first.ensure_collection(3)
        await first.upsert([_point([1.0, 0.0, 0.0])])

        second = ChromaDBVectorStore(persist_directory=path, collection_name="kb_test")
        assert await second.count() == 1
        await second.ensure_collection(3)
        assert await second.count() == 1

    @pytest.mark.asyncio
    async def test_reset_drops_everything(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert([_point([1.0, 0.0, 0.0])])
        await store.reset()
        assert await store.count() == 0


class TestSearch:
    @pytest.mark.asyncio
    async def test_ranked_by_cosine_similarity(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert(
            [
                _point([1.0, 0.0, 0.0], text="east", chunk_index=0),
                _point([0.7, 0.7, 0.0], text="north-east", chunk_index=1),
                _point([0.0, 1.0, 0.0], text="north", chunk_index=2),
            ]
        )

        hits = await store.search([1.0, 0.1, 0.0], team_id="team-a", top_k=3)

        assert [h.payload["text"] for h in hits] == ["east", "north-east", "north"]
        assert hits[0].score > hits[1].score > hits[2].score
        assert hits[0].score == pytest.approx(0.995, abs=0.01)

    @pytest.mark.asyncio
    async def test_top_k_limits_results(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert([_point([1.0, float(i), 0.0], chunk_index=i) for i in range(5)])
        hits = await store.search([1.0, 0.0, 0.0], team_id="team-a", top_k=2)
        assert len(hits) == 2

    @pytest.mark.asyncio
    async def test_tenant_isolation(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert(
            [
                _point([1.0, 0.0, 0.0], document_id="a-doc", team_id="team-a"),
                _point([1.0, 0.0, 0.0], document_id="b-doc", team_id="team-b"),
            ]
        )

        hits = await store.search([1.0, 0.0, 0.0], team_id="team-a", top_k=10)

        assert len(hits) == 1
        assert hits[0].payload["teamId"] == "team-a"
        assert hits[0].payload["documentId"] == "a-doc"

    @pytest.mark.asyncio
    async def test_team_id_required(self, store) -> None:
        await store.ensure_collection(3)
        with pytest.raises(ValueError):
            await store.search([1.0, 0.0, 0.0], team_id="")

    @pytest.mark.asyncio
    async def test_payload_uses_wire_names(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert(
            [_point([1.0, 0.0, 0.0], chunk_index=4, tags=["a", "b"], language="en")]
        )

        hit = (await store.search([1.0, 0.0, 0.0], team_id="team-a"))[0]

        assert hit.payload["chunkIndex"] == 4
        assert hit.payload["language"] == "en"
        # Non-scalar metadata is stored JSON-encoded.
        assert hit.payload["tags"] == '["a", "b"]'
        assert "sourceUrl" not in hit.payload


class TestDeleteAndCount:
    @pytest.mark.asyncio
    async def test_delete_by_document_id(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert(
            [
                _point([1.0, 0.0, 0.0], document_id="keep"),
                _point([0.0, 1.0, 0.0], document_id="drop", chunk_index=0),
                _point([0.0, 0.0, 1.0], document_id="drop", chunk_index=1),
            ]
        )

        removed = await store.delete_by_document_id("drop")

        assert removed == 2
        assert await store.count(document_id="drop") == 0
        assert await store.count(document_id="keep") == 1

    @pytest.mark.asyncio
    async def test_count_filters(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert(
            [
                _point([1.0, 0.0, 0.0], document_id="d1", team_id="t1"),
                _point([1.0, 0.0, 0.0], document_id="d1", team_id="t1", chunk_index=1),
                _point([1.0, 0.0, 0.0], document_id="d2", team_id="t1"),
                _point([1.0, 0.0, 0.0], document_id="d3", team_id="t2"),
            ]
        )

        assert await store.count() == 4
        assert await store.count(team_id="t1") == 3
        assert await store.count(document_id="d1") == 2
        assert await store.count(document_id="d1", team_id="t2") == 0

    @pytest.mark.asyncio
    async def test_reindex_replaces_points(self, store) -> None:
        await store.ensure_collection(3)
        await store.upsert([_point([1.0, 0.0, 0.0], chunk_index=i) for i in range(3)])

        await store.delete_by_document_id("doc-1")
        await store.upsert([_point([1.0, 0.0, 0.0], chunk_index=i) for i in range(3)])

        assert await store.count(document_id="doc-1") == 3


class TestFlattenMetadata:
    def test_drops_none_and_encodes_containers(self) -> None:
        flat = ChromaDBVectorStore._flatten_metadata(
            {"a": 1, "b": None, "c": {"x": 1}, "d": True, "e": "s"}
        )
        assert flat == {"a": 1, "c": '{"x": 1}', "d": True, "e": "s"}
