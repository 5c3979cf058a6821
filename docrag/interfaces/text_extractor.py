"""Abstract base class for format-specific text extractors.

Extractors are selected by the extraction dispatcher, which infers a
content type from the file name and asks each registered extractor in
turn whether it can handle it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO


# Concrete implementations: PdfTextExtractor, PlainTextExtractor
# (docrag/providers/extractor/).
class ITextExtractor(ABC):
    """Contract for turning a raw document stream into plain text."""

    @abstractmethod
    def can_handle(self, content_type: str) -> bool:
        """Return ``True`` if this extractor accepts *content_type*."""

    @abstractmethod
    async def extract_text(self, stream: BinaryIO, file_name: str) -> str:
        """Read *stream* and return its text content.

        Parameters
        ----------
        stream:
            Binary file-like object positioned at the start of the document.
        file_name:
            Original file name, used for logging and error messages.

        Returns
        -------
        str
            Extracted text.  May be empty for documents without text.

        Raises
        ------
        ExtractionError
            If the content is corrupt or cannot be decoded.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this extractor."""
