"""Blob-to-text loader for uploaded documents.

Fetches an uploaded file from blob storage and extracts its plain text,
dispatching on MIME type:

    application/pdf                                → PyMuPDF page text
    application/vnd.openxmlformats-...document     → python-docx paragraphs
    application/msword                             → python-docx paragraphs
    text/plain                                     → UTF-8 decode

Any other type raises :class:`UnsupportedFormatError` before the blob is
fetched.  The parsers are synchronous, so they run in
``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from docx import Document

from src.interfaces.blob_storage_provider import IBlobStorageProvider
from src.utils.errors import DocumentLoadError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC_MIME = "application/msword"
TEXT_MIME = "text/plain"


def _extract_pdf(data: bytes) -> str:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        pages = [page.get_text("text") for page in doc]
    finally:
        doc.close()
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join(para.text for para in doc.paragraphs)


def _extract_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


_EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    PDF_MIME: _extract_pdf,
    DOCX_MIME: _extract_docx,
    DOC_MIME: _extract_docx,
    TEXT_MIME: _extract_text,
}


class DocumentLoader:
    """Loads stored documents and returns their plain text.

    Parameters
    ----------
    blob_storage:
        Where uploaded files live.
    bucket:
        Bucket holding uploaded documents.
    """

    def __init__(self, blob_storage: IBlobStorageProvider, bucket: str) -> None:
        self._blob_storage = blob_storage
        self._bucket = bucket

    @staticmethod
    def supported_mime_types() -> list[str]:
        return list(_EXTRACTORS)

    async def load(self, object_key: str, mime_type: str) -> str:
        """Return the full text of *object_key*.

        Raises
        ------
        UnsupportedFormatError
            If *mime_type* has no extractor (checked before fetching).
        DocumentLoadError
            If the object cannot be fetched or parsed.
        """
        extractor = _EXTRACTORS.get(mime_type)
        if extractor is None:
            raise UnsupportedFormatError(mime_type)

        data = await self._blob_storage.get_object(self._bucket, object_key)

        try:
            text = await asyncio.to_thread(extractor, data)
        except Exception as exc:
            logger.error(
                "document_parse_failed",
                object_key=object_key,
                mime_type=mime_type,
                error=str(exc),
            )
            raise DocumentLoadError(
                message=f"Could not extract text from {object_key} ({mime_type}): {exc}",
                provider_name=self._blob_storage.get_provider_name(),
            ) from exc

        logger.info(
            "document_loaded",
            object_key=object_key,
            mime_type=mime_type,
            bytes=len(data),
            characters=len(text),
        )
        return text
