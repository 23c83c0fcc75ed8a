"""Document ingestion pipelines for the tenant-scoped knowledge index.

Pipeline stages: **load -> chunk -> embed -> store**.

1. **Load** -- ``DocumentLoader`` turns stored PDF/DOCX/text files into
   plain text; ``UrlCrawler`` fetches one page or crawls a site.
2. **Chunk** (chunker.py / TextChunker) -- overlapping character windows
   snapped to sentence and paragraph boundaries.
3. **Embed** (via IEmbeddingProvider) -- one vector per chunk, 25 chunks
   in flight per batch.
4. **Store** (via IVectorStoreProvider) -- old vectors for the document
   are deleted first, then each batch is upserted.

One pipeline class per source type shares this skeleton through
``BaseIngestionPipeline``: TextIngestionPipeline (raw content),
FileIngestionPipeline (pdf/docx) and UrlIngestionPipeline (web pages).
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_loader import DocumentLoader
from src.services.ingestion.file_pipeline import FileIngestionPipeline
from src.services.ingestion.pipeline_base import BaseIngestionPipeline
from src.services.ingestion.text_pipeline import TextIngestionPipeline
from src.services.ingestion.url_crawler import UrlCrawler
from src.services.ingestion.url_pipeline import UrlIngestionPipeline

__all__ = [
    "BaseIngestionPipeline",
    "DocumentLoader",
    "FileIngestionPipeline",
    "TextChunker",
    "TextIngestionPipeline",
    "UrlCrawler",
    "UrlIngestionPipeline",
]
