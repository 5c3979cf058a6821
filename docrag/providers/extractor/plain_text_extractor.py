"""Plain-text and Markdown extractor.

Decodes the upload as UTF-8 (a leading byte-order mark is tolerated).
Markdown is indexed as-is; its markup is short enough not to disturb
chunk boundaries.
"""

from __future__ import annotations

from typing import BinaryIO

import structlog

from docrag.interfaces.text_extractor import ITextExtractor
from docrag.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_CONTENT_TYPES = ("text/plain", "text/markdown")


class PlainTextExtractor(ITextExtractor):
    """Reads UTF-8 text and Markdown documents."""

    def __init__(self, encoding: str = "utf-8-sig") -> None:
        self._encoding = encoding

    def can_handle(self, content_type: str) -> bool:
        content_type = content_type.lower()
        return any(content_type.startswith(t) for t in _TEXT_CONTENT_TYPES)

    async def extract_text(self, stream: BinaryIO, file_name: str) -> str:
        data = stream.read()
        try:
            text = data.decode(self._encoding)
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                message=f"'{file_name}' is not valid {self._encoding} text: {exc.reason}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("text_extracted", file_name=file_name, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "plain_text"
