"""Knowledge indexer worker entry point.

Wires together every provider and service via explicit dependency
injection.  :func:`build_container` is the only place concrete classes
are chosen; everything downstream receives its collaborators through
constructor arguments.  Loads configuration from ``.env`` and
``config/config.yaml``.

Run the worker with ``python -m src.main`` (or ``python -m src.cli worker``).
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
from dataclasses import dataclass
from typing import Any

import structlog

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.blob_storage_provider import IBlobStorageProvider
from src.interfaces.job_queue_provider import IJobQueueProvider
from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.embedding.registry import EmbeddingProviderRegistry
from src.providers.queue.memory_queue import InMemoryJobQueue
from src.providers.queue.redis_queue import RedisJobQueue
from src.providers.status.sqlite_status_provider import SQLiteDocumentStatusProvider
from src.providers.storage.filesystem_provider import FilesystemBlobStorageProvider
from src.providers.storage.s3_provider import S3BlobStorageProvider
from src.providers.vector_store.chromadb_provider import ChromaDBVectorStore
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_loader import DocumentLoader
from src.services.ingestion.file_pipeline import FileIngestionPipeline
from src.services.ingestion.text_pipeline import TextIngestionPipeline
from src.services.ingestion.url_crawler import UrlCrawler
from src.services.ingestion.url_pipeline import UrlIngestionPipeline
from src.services.ingestion_worker import IngestionWorker
from src.services.sync_scheduler import SyncScheduler
from src.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


@dataclass
class Container:
    """Every long-lived component of one indexer process."""

    settings: Settings
    config: dict[str, Any]
    embedding_registry: EmbeddingProviderRegistry
    vector_store: ChromaDBVectorStore
    status_provider: SQLiteDocumentStatusProvider
    blob_storage: IBlobStorageProvider
    queue: IJobQueueProvider
    chunker: TextChunker
    loader: DocumentLoader
    crawler: UrlCrawler
    text_pipeline: TextIngestionPipeline
    file_pipeline: FileIngestionPipeline
    url_pipeline: UrlIngestionPipeline
    scheduler: SyncScheduler
    worker: IngestionWorker


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_registry(app_settings: Settings) -> EmbeddingProviderRegistry:
    """Register every embedding provider that can be constructed.

    OpenAI (or an OpenAI-compatible endpoint) needs an API key; Nomic via
    Ollama is always registered.  ``EMBEDDING_PROVIDER`` picks the active
    one, and an unregistered name fails here rather than on the first job.
    """
    registry = EmbeddingProviderRegistry(default_name=app_settings.embedding_provider)
    if app_settings.openai_api_key:
        registry.register(OpenAIEmbeddingProvider(settings=app_settings))
    registry.register(NomicEmbeddingProvider(settings=app_settings))

    active = registry.get()
    _logger.info(
        "embedding_provider_selected",
        provider=active.name,
        dimensions=active.dimensions,
        registered=registry.names(),
    )
    return registry


def build_blob_storage(app_settings: Settings) -> IBlobStorageProvider:
    if app_settings.blob_backend == "filesystem":
        return FilesystemBlobStorageProvider(root_dir=app_settings.blob_root_dir)
    return S3BlobStorageProvider(
        endpoint_url=app_settings.s3_endpoint_url,
        access_key=app_settings.s3_access_key,
        secret_key=app_settings.s3_secret_key,
        region=app_settings.s3_region,
    )


def build_queue(app_settings: Settings) -> IJobQueueProvider:
    if app_settings.queue_backend == "memory":
        return InMemoryJobQueue(name=app_settings.ingestion_queue_name)
    return RedisJobQueue(
        redis_url=app_settings.redis_url,
        queue_name=app_settings.ingestion_queue_name,
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_container(
    settings: Settings,
    config: dict[str, Any] | None = None,
) -> Container:
    """Construct every provider and service instance once.

    Raises
    ------
    ConfigurationError
        If the selected embedding provider is not registered or lacks
        credentials.
    """
    config = config if config is not None else load_config(settings=settings)
    chunking = config["chunking"]
    ingestion = config["ingestion"]
    crawler_cfg = config["crawler"]

    # -- Stores --
    embedding_registry = _build_embedding_registry(settings)
    vector_store = ChromaDBVectorStore(
        persist_directory=settings.chromadb_persist_dir,
        collection_name=settings.vector_collection,
    )
    status_provider = SQLiteDocumentStatusProvider(db_path=settings.status_db_path)
    blob_storage = build_blob_storage(settings)
    queue = build_queue(settings)

    # -- Ingestion building blocks --
    chunker = TextChunker(chunk_size=chunking["chunk_size"], overlap=chunking["overlap"])
    loader = DocumentLoader(blob_storage=blob_storage, bucket=settings.s3_bucket)
    crawler = UrlCrawler(
        timeout=float(crawler_cfg["timeout_seconds"]),
        user_agent=crawler_cfg["user_agent"],
    )

    # -- Pipelines --
    shared: dict[str, Any] = {
        "embedding_registry": embedding_registry,
        "vector_store": vector_store,
        "status_provider": status_provider,
        "chunker": chunker,
        "embed_batch_size": ingestion["embed_batch_size"],
    }
    text_pipeline = TextIngestionPipeline(**shared)
    file_pipeline = FileIngestionPipeline(loader=loader, **shared)
    url_pipeline = UrlIngestionPipeline(
        crawler=crawler,
        page_flush_size=ingestion["page_flush_size"],
        **shared,
    )

    # -- Worker --
    scheduler = SyncScheduler(queue=queue, status_provider=status_provider)
    worker = IngestionWorker(
        queue=queue,
        text_pipeline=text_pipeline,
        file_pipeline=file_pipeline,
        url_pipeline=url_pipeline,
        vector_store=vector_store,
        scheduler=scheduler,
        concurrency=settings.ingestion_concurrency,
    )

    _logger.info(
        "container_built",
        vector_store=vector_store.get_provider_name(),
        status_store=status_provider.get_provider_name(),
        blob_storage=blob_storage.get_provider_name(),
        queue=queue.get_provider_name(),
        concurrency=settings.ingestion_concurrency,
    )

    return Container(
        settings=settings,
        config=config,
        embedding_registry=embedding_registry,
        vector_store=vector_store,
        status_provider=status_provider,
        blob_storage=blob_storage,
        queue=queue,
        chunker=chunker,
        loader=loader,
        crawler=crawler,
        text_pipeline=text_pipeline,
        file_pipeline=file_pipeline,
        url_pipeline=url_pipeline,
        scheduler=scheduler,
        worker=worker,
    )


# ---------------------------------------------------------------------------
# Worker process
# ---------------------------------------------------------------------------


async def run_worker(settings: Settings | None = None) -> None:
    """Build the container and consume jobs until SIGINT/SIGTERM."""
    settings = settings or Settings()
    configure_logging(
        log_level=settings.log_level,
        json_output=(settings.app_env == "production"),
    )

    container = build_container(settings)
    await container.status_provider.initialize()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, container.worker.stop)

    try:
        await container.worker.run()
    finally:
        await container.queue.close()
        _logger.info("worker_shutdown_complete")


if __name__ == "__main__":
    asyncio.run(run_worker())
