"""Abstract base class for blob (object) storage providers.

Uploaded PDF and DOCX files are stored by the external API in an
S3-compatible bucket; the worker only ever reads them back by key.
``put_object`` exists so the CLI can stage local files for a run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (src/providers/storage/):
#   S3BlobStorageProvider          - boto3 against S3 / MinIO
#   FilesystemBlobStorageProvider  - <root>/<bucket>/<key> on local disk
class IBlobStorageProvider(ABC):
    """Contract for fetching (and, from the CLI, staging) stored objects."""

    @abstractmethod
    async def get_object(self, bucket: str, key: str) -> bytes:
        """Return the full contents of *key* in *bucket*.

        Raises
        ------
        src.utils.errors.DocumentLoadError
            If the object does not exist or cannot be read.
        """

    @abstractmethod
    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """Store *data* under *key* in *bucket*, replacing any existing object."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"s3"``."""
