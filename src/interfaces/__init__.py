"""Public interface definitions for all external service providers.

Every external service the ingestion worker touches is accessed
exclusively through the abstract base classes defined in this package.
Concrete adapters implement these interfaces and are constructed once by
the composition root (``src/main.py``) and injected into the services.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider         →  OpenAIEmbeddingProvider,
                                  NomicEmbeddingProvider
    IVectorStoreProvider       →  ChromaDBVectorStore
    IBlobStorageProvider       →  S3BlobStorageProvider,
                                  FilesystemBlobStorageProvider
    IDocumentStatusProvider    →  SQLiteDocumentStatusProvider
    IJobQueueProvider          →  RedisJobQueue, InMemoryJobQueue
"""

from src.interfaces.blob_storage_provider import IBlobStorageProvider
from src.interfaces.document_status_provider import IDocumentStatusProvider
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.job_queue_provider import IJobQueueProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IBlobStorageProvider",
    "IDocumentStatusProvider",
    "IEmbeddingProvider",
    "IJobQueueProvider",
    "IVectorStoreProvider",
]
