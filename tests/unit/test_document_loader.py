"""Unit tests for DocumentLoader - MIME dispatch and text extraction."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock

import fitz
import pytest
from docx import Document

from src.services.ingestion.document_loader import (
    DOC_MIME,
    DOCX_MIME,
    PDF_MIME,
    TEXT_MIME,
    DocumentLoader,
)
from src.utils.errors import DocumentLoadError, UnsupportedFormatError


def _pdf_bytes(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _docx_bytes(*paragraphs: str) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def loader(mock_blob_storage) -> DocumentLoader:
    return DocumentLoader(blob_storage=mock_blob_storage, bucket="knowledge")


class TestDocumentLoader:
    @pytest.mark.asyncio
    async def test_pdf_pages_joined(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value=_pdf_bytes("First page", "Second page"))

        text = await loader.load("team/doc.pdf", PDF_MIME)

        assert "First page" in text
        assert "Second page" in text
        assert text.index("First page") < text.index("Second page")
        assert "\n\n" in text
        mock_blob_storage.get_object.assert_awaited_once_with("knowledge", "team/doc.pdf")

    @pytest.mark.asyncio
    async def test_docx_paragraphs(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value=_docx_bytes("Alpha", "Beta"))

        text = await loader.load("team/doc.docx", DOCX_MIME)

        assert text.splitlines() == ["Alpha", "Beta"]

    @pytest.mark.asyncio
    async def test_msword_uses_docx_parser(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value=_docx_bytes("Gamma"))
        assert await loader.load("doc.doc", DOC_MIME) == "Gamma"

    @pytest.mark.asyncio
    async def test_plain_text(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value="héllo".encode())
        assert await loader.load("notes.txt", TEXT_MIME) == "héllo"

    @pytest.mark.asyncio
    async def test_unsupported_type_not_fetched(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock()

        with pytest.raises(UnsupportedFormatError) as exc_info:
            await loader.load("sheet.xlsx", "application/vnd.ms-excel")

        assert exc_info.value.mime_type == "application/vnd.ms-excel"
        mock_blob_storage.get_object.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_corrupt_pdf_raises_load_error(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value=b"not a pdf at all")
        with pytest.raises(DocumentLoadError):
            await loader.load("bad.pdf", PDF_MIME)

    @pytest.mark.asyncio
    async def test_corrupt_docx_raises_load_error(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(return_value=b"PK not really a zip")
        with pytest.raises(DocumentLoadError):
            await loader.load("bad.docx", DOCX_MIME)

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, loader, mock_blob_storage) -> None:
        mock_blob_storage.get_object = AsyncMock(
            side_effect=DocumentLoadError("Object not found", provider_name="s3")
        )
        with pytest.raises(DocumentLoadError, match="not found"):
            await loader.load("gone.pdf", PDF_MIME)

    def test_supported_mime_types(self) -> None:
        assert set(DocumentLoader.supported_mime_types()) == {
            PDF_MIME,
            DOCX_MIME,
            DOC_MIME,
            TEXT_MIME,
        }
