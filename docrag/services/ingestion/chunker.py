"""Character-window text chunking with sentence and word boundary snapping.

Splits extracted document text into overlapping segments sized for
embedding models (600 characters with 100 characters of overlap by
default).

Before windowing, line structure is flattened: every line is trimmed,
blank lines are dropped and the rest are joined with single spaces.  PDF
extraction in particular produces hard line wraps that would otherwise
leak into every chunk.

Each window is then pulled back to a natural boundary when possible:

1. the last sentence terminator (``.``, ``!``, ``?``, newline) within the
   final 100 characters of the window, cut just after it; else
2. the last space within the final 50 characters, cut on it; else
3. the raw window end (mid-word).

The next window starts ``overlap`` characters before the cut, but always
at least one character after the previous start.  The walk stops once a
window reaches the end of the text, so the tail is never re-emitted as a
run of ever-shorter suffixes.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

logger = structlog.get_logger(logger_name=__name__)

# Newline stays in the set although normalize() removes them; raw
# callers of _find_boundary may still pass multi-line text.
_SENTENCE_TERMINATORS = ".!?\n"
# Look-back distances from the window end, in characters.
_SENTENCE_SEARCH_WINDOW = 100
_WORD_SEARCH_WINDOW = 50


class TextChunker:
    """Splits text into overlapping, boundary-aware character windows.

    Parameters
    ----------
    chunk_size:
        Target maximum characters per chunk (default 600).
    overlap:
        Characters shared between consecutive chunks (default 100).
        Must be smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 600, overlap: int = 100) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must satisfy 0 <= overlap < chunk_size")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[str]:
        """Split *text* into an ordered list of non-empty chunks.

        Empty or whitespace-only input returns an empty list; input shorter
        than ``chunk_size`` returns a single chunk.
        """
        chunks = list(self.iter_chunks(text))
        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            input_chars=len(text) if text else 0,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks

    def iter_chunks(self, text: str) -> Iterator[str]:
        """Lazily yield chunks of *text* in document order."""
        if not text or not text.strip():
            return

        # Boundaries are searched in the flattened text, not the input.
        normalized = self.normalize(text)
        length = len(normalized)
        start = 0
        while start < length:
            end = min(start + self._chunk_size, length)
            # The final window is taken whole; no boundary search.
            if end < length:
                end = self._find_boundary(normalized, start, end)

            # A window can start on the space left by a word cut.
            piece = normalized[start:end].strip()
            if piece:
                yield piece

            # Tail reached: stop instead of walking back over it.
            if end >= length:
                break
            # Always advance at least one character.
            start = max(start + 1, end - self._overlap)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def normalize(text: str) -> str:
        """Trim every line, drop blank ones and join the rest with spaces."""
        # \r\n becomes two breaks; the blank one is dropped below.
        lines = text.replace("\r", "\n").split("\n")
        return " ".join(line.strip() for line in lines if line.strip())

    @staticmethod
    def _find_boundary(text: str, start: int, end: int) -> int:
        """Return the cut position for the window ``[start, end)``.

        Searches are anchored at ``end`` (inclusive) and look back at most
        ``min(window, end - start)`` characters.
        """
        span = end - start

        # Pass 1: last sentence terminator, cut just after it.
        sentence_floor = end - min(_SENTENCE_SEARCH_WINDOW, span)
        for pos in range(end, sentence_floor, -1):
            if text[pos] in _SENTENCE_TERMINATORS:
                if pos > start:
                    return pos + 1
                break

        # Pass 2: last space, cut on it.
        word_floor = end - min(_WORD_SEARCH_WINDOW, span)
        for pos in range(end, word_floor, -1):
            if text[pos] == " ":
                if pos > start:
                    return pos
                break

        # Pass 3: hard cut mid-word.
        return end
