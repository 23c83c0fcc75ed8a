"""Local filesystem blob storage provider.

Maps ``(bucket, key)`` to ``<root>/<bucket>/<key>``.  Used for
single-machine runs and tests where no S3-compatible store is available.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from src.interfaces.blob_storage_provider import IBlobStorageProvider
from src.utils.errors import DocumentLoadError

logger = structlog.get_logger(logger_name=__name__)


class FilesystemBlobStorageProvider(IBlobStorageProvider):
    """Blob storage rooted at a local directory."""

    def __init__(self, root_dir: str | Path = "./data/blobs") -> None:
        self._root = Path(root_dir).resolve()

    async def get_object(self, bucket: str, key: str) -> bytes:
        path = self._resolve(bucket, key)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise DocumentLoadError(
                message=f"Object not readable: {bucket}/{key} ({exc.strerror or exc})",
                provider_name="filesystem",
            ) from exc
        logger.debug("filesystem_object_fetched", bucket=bucket, key=key, size=len(data))
        return data

    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """Write *data* under ``bucket/key``; used by the CLI to stage local files."""
        path = self._resolve(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(path.write_bytes, data)

    def _resolve(self, bucket: str, key: str) -> Path:
        path = (self._root / bucket / key).resolve()
        # Keys are caller-supplied; refuse anything escaping the root.
        if not path.is_relative_to(self._root):
            raise DocumentLoadError(
                message=f"Object key escapes storage root: {bucket}/{key}",
                provider_name="filesystem",
            )
        return path

    def get_provider_name(self) -> str:
        return "filesystem"
