"""Routes an uploaded file to the extractor for its format.

The content type is inferred from the file extension rather than trusted
from the client, then matched against an ordered registry of
:class:`~docrag.interfaces.text_extractor.ITextExtractor` instances.  The
first extractor whose ``can_handle`` accepts the type wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePath
from typing import BinaryIO

import structlog

from docrag.interfaces.text_extractor import ITextExtractor
from docrag.utils.errors import UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

# Dispatch keys off the extension; the declared MIME type is only recorded.
_EXTENSION_CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
}
_DEFAULT_CONTENT_TYPE = "text/plain"


def infer_content_type(file_name: str) -> str:
    """Map a file name's extension to a normalised content type.

    Unknown or missing extensions default to ``text/plain``.
    """
    suffix = PurePath(file_name).suffix.lower()
    return _EXTENSION_CONTENT_TYPES.get(suffix, _DEFAULT_CONTENT_TYPE)


class ExtractionDispatcher:
    """Selects an extractor by inferred content type and delegates to it.

    Parameters
    ----------
    extractors:
        Extractors in priority order.
    """

    def __init__(self, extractors: Sequence[ITextExtractor]) -> None:
        self._extractors = list(extractors)

    @property
    def extractors(self) -> list[ITextExtractor]:
        return list(self._extractors)

    def select(self, content_type: str) -> ITextExtractor:
        """Return the first extractor accepting *content_type*.

        Raises
        ------
        UnsupportedFormatError
            If no registered extractor accepts it.
        """
        # First match wins; registration order is the priority.
        for extractor in self._extractors:
            if extractor.can_handle(content_type):
                return extractor
        raise UnsupportedFormatError(
            message=f"No extractor registered for content type '{content_type}'"
        )

    async def extract_text(self, stream: BinaryIO, file_name: str) -> str:
        """Extract the text of *stream* using the extractor for *file_name*."""
        content_type = infer_content_type(file_name)
        extractor = self.select(content_type)
        logger.debug(
            "extractor_selected",
            file_name=file_name,
            content_type=content_type,
            extractor=extractor.get_provider_name(),
        )
        return await extractor.extract_text(stream, file_name)
