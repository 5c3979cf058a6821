"""Text extractor implementations, one per supported document format."""

from docrag.providers.extractor.pdf_extractor import PdfTextExtractor
from docrag.providers.extractor.plain_text_extractor import PlainTextExtractor

__all__ = ["PdfTextExtractor", "PlainTextExtractor"]
