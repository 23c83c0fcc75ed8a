"""Vector-store data models for the tenant-scoped knowledge index.

Every indexed chunk is stored as one :class:`VectorPoint`: a random UUID,
the embedding vector, and a :class:`VectorPayload` carrying provenance.
Payload keys are written with their camelCase wire names (``documentId``,
``teamId``, ``chunkIndex`` ...) because downstream retrieval services
filter on exactly those keys.

Two payload keys are load-bearing:
    - ``teamId``     - every search filters on it (tenant isolation).
    - ``documentId`` - re-ingestion deletes by it before writing new points.

Anything else in a job's ``metadata`` is copied into the payload as an
extra key, but never over one of the core fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# VectorPayload - provenance stored next to each embedding.
# ---------------------------------------------------------------------------
class VectorPayload(BaseModel):
    """Metadata stored with a chunk's embedding.

    Extra keys are allowed so arbitrary job metadata rides along.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    document_id: str = Field(description="Owning knowledge document.")
    team_id: str = Field(description="Owning tenant; mandatory search filter.")
    file_key: str = Field(default="", description="Blob key of the source file, if any.")
    file_name: str = Field(default="", description="Source file name or document title.")
    source_url: str | None = Field(default=None, description="Page URL for crawled content.")
    chunk_index: int = Field(ge=0, description="Chunk position within its source text.")
    text: str = Field(description="The chunk text itself.")

    @classmethod
    def build(cls, metadata: dict[str, Any] | None = None, **core: Any) -> VectorPayload:
        """Merge *metadata* under the core fields and validate.

        Core fields win on key collisions, in either naming style, so job
        metadata can never overwrite ``teamId`` or ``documentId``.
        """
        core_aliases = {to_camel(name) for name in cls.model_fields}
        core_names = set(cls.model_fields)
        extras = {
            key: value
            for key, value in (metadata or {}).items()
            if key not in core_aliases and key not in core_names
        }
        return cls.model_validate({**extras, **core})

    def to_wire(self) -> dict[str, Any]:
        """Return the payload dict as written to the vector store."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# VectorPoint - the unit written to the vector store.
# ---------------------------------------------------------------------------
class VectorPoint(BaseModel):
    """One stored embedding: id, vector, payload."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Random UUID assigned at upsert time.")
    vector: list[float] = Field(min_length=1)
    payload: VectorPayload


# ---------------------------------------------------------------------------
# VectorSearchResult - a tenant-filtered nearest-neighbour hit.
# ---------------------------------------------------------------------------
class VectorSearchResult(BaseModel):
    """A point returned by a similarity search.

    ``score`` is cosine similarity (``1 - cosine distance``), higher is closer.
    ``payload`` is the raw wire-format dict as stored.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)
