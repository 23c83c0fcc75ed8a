"""Blob storage provider implementations.

Two implementations of IBlobStorageProvider:
    1. S3BlobStorageProvider         - boto3 against S3 or MinIO.
    2. FilesystemBlobStorageProvider - local directory, for development.
"""

from src.providers.storage.filesystem_provider import FilesystemBlobStorageProvider
from src.providers.storage.s3_provider import S3BlobStorageProvider

__all__ = ["FilesystemBlobStorageProvider", "S3BlobStorageProvider"]
