"""Abstract base class for the document metadata store.

The worker writes ingestion status back to the store that owns knowledge
document records, and reads each document's live ``exists``/``isPaused``
flags before re-arming a recurring crawl.  The store's full schema belongs
to the external API; this contract covers only what the worker touches.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.ingestion import DocumentState, StatusUpdate


# Concrete implementation: SQLiteDocumentStatusProvider (src/providers/status/)
class IDocumentStatusProvider(ABC):
    """Contract for status write-back and pause/existence reads."""

    @abstractmethod
    async def set_status(self, update: StatusUpdate) -> None:
        """Persist a status transition for ``update.document_id``.

        ``indexed`` updates carry ``word_count``, ``chunk_count`` and
        ``last_indexed``; ``failed`` updates carry ``error_message``.  An
        update for an unknown document is a no-op.
        """

    @abstractmethod
    async def get_document_state(self, document_id: str) -> DocumentState:
        """Return the document's current existence and pause flags.

        A missing document yields ``DocumentState(exists=False)``.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
