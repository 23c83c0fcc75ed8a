"""SQLite-backed document status provider.

Persists knowledge document records (status, counts, pause flag) to a
local SQLite database at ``data/documents.db``.  Uses ``aiosqlite`` for
async I/O.  In production this table belongs to the API service that
owns document records; the worker only reads pause/existence flags and
writes status transitions.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.document_status_provider import IDocumentStatusProvider
from src.models.ingestion import DocumentState, DocumentStatus, StatusUpdate

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    document_id    TEXT    PRIMARY KEY,
    team_id        TEXT    NOT NULL DEFAULT '',
    status         TEXT    NOT NULL DEFAULT 'pending',
    is_paused      INTEGER NOT NULL DEFAULT 0,
    word_count     INTEGER,
    chunk_count    INTEGER,
    last_indexed   TEXT,
    error_message  TEXT,
    created_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at     TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_team ON documents(team_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
]

_REGISTER_SQL = """\
INSERT INTO documents (document_id, team_id, status, is_paused)
VALUES (?, ?, 'pending', ?)
ON CONFLICT(document_id)
DO UPDATE SET team_id    = excluded.team_id,
              status     = 'pending',
              is_paused  = excluded.is_paused,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = """\
SELECT document_id, team_id, status, is_paused, word_count, chunk_count,
       last_indexed, error_message, created_at, updated_at
FROM documents
WHERE document_id = ?;
"""


class SQLiteDocumentStatusProvider(IDocumentStatusProvider):
    """SQLite-backed document status persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("documents_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # IDocumentStatusProvider implementation
    # ------------------------------------------------------------------

    async def set_status(self, update: StatusUpdate) -> None:
        """Apply *update*; fields left ``None`` keep their stored value."""
        assignments = ["status = ?", "updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"]
        params: list[Any] = [update.status.value]

        if update.word_count is not None:
            assignments.append("word_count = ?")
            params.append(update.word_count)
        if update.chunk_count is not None:
            assignments.append("chunk_count = ?")
            params.append(update.chunk_count)
        if update.last_indexed is not None:
            assignments.append("last_indexed = ?")
            params.append(update.last_indexed.isoformat())
        if update.status is DocumentStatus.FAILED:
            assignments.append("error_message = ?")
            params.append(update.error_message)
        elif update.status is DocumentStatus.INDEXED:
            assignments.append("error_message = NULL")

        params.append(update.document_id)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"UPDATE documents SET {', '.join(assignments)} WHERE document_id = ?",
                params,
            )
            await db.commit()
            updated = cursor.rowcount

        if updated == 0:
            logger.warning(
                "document_status_unknown_document",
                document_id=update.document_id,
                status=update.status.value,
            )
            return

        logger.debug(
            "document_status_updated",
            document_id=update.document_id,
            status=update.status.value,
        )

    async def get_document_state(self, document_id: str) -> DocumentState:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT is_paused FROM documents WHERE document_id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()

        if row is None:
            return DocumentState(exists=False, is_paused=False)
        return DocumentState(exists=True, is_paused=bool(row[0]))

    def get_provider_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Record management (CLI / local runs)
    # ------------------------------------------------------------------

    async def register_document(
        self,
        document_id: str,
        team_id: str = "",
        paused: bool = False,
    ) -> None:
        """Create (or reset to ``pending``) the record for *document_id*."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_REGISTER_SQL, (document_id, team_id, int(paused)))
            await db.commit()
        logger.info("document_registered", document_id=document_id, team_id=team_id)

    async def set_paused(self, document_id: str, paused: bool) -> bool:
        """Toggle the pause flag.  Returns ``False`` if the document is unknown."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "UPDATE documents SET is_paused = ?, "
                "updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now') "
                "WHERE document_id = ?",
                (int(paused), document_id),
            )
            await db.commit()
            found = cursor.rowcount > 0
        logger.info("document_pause_set", document_id=document_id, paused=paused, found=found)
        return found

    async def delete_document(self, document_id: str) -> bool:
        """Remove the record.  Returns ``False`` if the document is unknown."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM documents WHERE document_id = ?",
                (document_id,),
            )
            await db.commit()
            return cursor.rowcount > 0

    async def get_document(self, document_id: str) -> dict[str, Any] | None:
        """Return the full record as a dict, or ``None``."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_SQL, (document_id,))
            row = await cursor.fetchone()
        if row is None:
            return None
        record = dict(row)
        record["is_paused"] = bool(record["is_paused"])
        return record
