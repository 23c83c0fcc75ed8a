"""Document status provider implementations."""

from src.providers.status.sqlite_status_provider import SQLiteDocumentStatusProvider

__all__ = ["SQLiteDocumentStatusProvider"]
