"""PDF text extraction using PyMuPDF (fitz).

Reads an uploaded PDF from memory and returns its concatenated page text
plus the page count.  Page boundaries are not preserved beyond a blank
line between pages; the sentence chunker re-joins text across pages
anyway.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class ExtractedPDF:
    """Raw text and page count extracted from one PDF."""

    text: str
    page_count: int


class PDFProcessor:
    """Extracts text from PDF bytes page by page."""

    async def extract(self, data: bytes) -> ExtractedPDF:
        """Extract text off the event loop.

        Raises
        ------
        ValidationError
            If the bytes cannot be opened as a PDF.
        """
        return await asyncio.to_thread(self.extract_sync, data)

    def extract_sync(self, data: bytes) -> ExtractedPDF:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:  # noqa: BLE001 -- fitz raises several unrelated types
            raise ValidationError(
                message=f"File could not be read as a PDF: {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[str] = []
        try:
            page_count = len(doc)
            for page_num in range(page_count):
                pages.append(doc[page_num].get_text("text"))
        finally:
            doc.close()

        text = "\n\n".join(pages)
        logger.info("pdf_text_extracted", pages=page_count, chars=len(text))
        if not text.strip():
            logger.warning("pdf_no_text_extracted", pages=page_count)
        return ExtractedPDF(text=text, page_count=page_count)
