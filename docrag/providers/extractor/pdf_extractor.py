"""PDF text extractor backed by PyMuPDF (fitz).

Opens the document from memory, reads every page with
``page.get_text("text")`` and joins non-empty pages with newlines.  The
chunker flattens line structure afterwards, so page layout is not
preserved beyond ordering.
"""

from __future__ import annotations

import asyncio
from typing import BinaryIO

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docrag.interfaces.text_extractor import ITextExtractor
from docrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_PDF_CONTENT_TYPE = "application/pdf"


class PdfTextExtractor(ITextExtractor):
    """Extracts page text from PDF documents."""

    def can_handle(self, content_type: str) -> bool:
        return content_type.lower().startswith(_PDF_CONTENT_TYPE)

    async def extract_text(self, stream: BinaryIO, file_name: str) -> str:
        data = stream.read()
        return await asyncio.to_thread(self._extract, data, file_name)

    def _extract(self, data: bytes, file_name: str) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(
                message=f"Cannot open PDF '{file_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        except Exception as exc:
            raise ExtractionError(
                message=f"Failed reading PDF '{file_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", file_name=file_name)

        logger.debug("pdf_extracted", file_name=file_name, pages=len(pages))
        return "\n".join(pages)

    def get_provider_name(self) -> str:
        return "pymupdf"
