"""S3-compatible blob storage provider.

Reads uploaded documents from AWS S3 or any S3-compatible store (MinIO in
development) via ``boto3``.  boto3 is synchronous, so every call runs in
``asyncio.to_thread`` to keep the event loop free for other jobs.
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from src.interfaces.blob_storage_provider import IBlobStorageProvider
from src.utils.errors import DocumentLoadError

logger = structlog.get_logger(logger_name=__name__)

_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3BlobStorageProvider(IBlobStorageProvider):
    """Blob storage backed by an S3 bucket.

    Parameters
    ----------
    endpoint_url:
        Custom endpoint for S3-compatible stores; empty means AWS.
    access_key / secret_key:
        Static credentials; empty falls back to boto3's default chain.
    region:
        Bucket region.
    client:
        Optional pre-built boto3 S3 client (tests pass a stub).
    """

    def __init__(
        self,
        endpoint_url: str = "",
        access_key: str = "",
        secret_key: str = "",
        region: str = "us-east-1",
        client: Any | None = None,
    ) -> None:
        if client is None:
            client_kwargs: dict[str, Any] = {"region_name": region}
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client("s3", **client_kwargs)
        self._s3_client = client

    async def get_object(self, bucket: str, key: str) -> bytes:
        try:
            body = await asyncio.to_thread(self._read, bucket, key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _MISSING_KEY_CODES:
                message = f"Object not found: s3://{bucket}/{key}"
            else:
                message = f"S3 get_object failed for s3://{bucket}/{key}: {exc}"
            raise DocumentLoadError(message=message, provider_name="s3") from exc
        except BotoCoreError as exc:
            raise DocumentLoadError(
                message=f"S3 get_object failed for s3://{bucket}/{key}: {exc}",
                provider_name="s3",
            ) from exc

        logger.debug("s3_object_fetched", bucket=bucket, key=key, size=len(body))
        return body

    async def put_object(self, bucket: str, key: str, data: bytes) -> None:
        try:
            await asyncio.to_thread(
                self._s3_client.put_object, Bucket=bucket, Key=key, Body=data
            )
        except (ClientError, BotoCoreError) as exc:
            raise DocumentLoadError(
                message=f"S3 put_object failed for s3://{bucket}/{key}: {exc}",
                provider_name="s3",
            ) from exc
        logger.debug("s3_object_stored", bucket=bucket, key=key, size=len(data))

    def _read(self, bucket: str, key: str) -> bytes:
        response = self._s3_client.get_object(Bucket=bucket, Key=key)
        return response["Body"].read()

    def get_provider_name(self) -> str:
        return "s3"
