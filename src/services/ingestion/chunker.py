"""Text chunking with overlapping windows and sentence/paragraph snapping.

Splits source text into :class:`~src.models.ingestion.Chunk` objects sized
for embedding models (1000 characters each with 200 characters of overlap
by default).

The chunking strategy has two goals:

1. **Boundary-snapping** -- When a window would cut mid-text, its end is
   pulled back (at most 200 characters) to the nearest paragraph break
   (``\\n\\n``) or sentence end (``". "`` / ``".\\n"``) so chunks rarely
   start or end mid-thought.  The snap is best-effort: no boundary in
   range means the naive cut is kept.

2. **Overlapping windows** -- Consecutive windows share ``overlap``
   characters so that a fact spanning a boundary appears whole in at
   least one chunk.

The chunker never raises on input and always makes forward progress,
even when ``overlap >= chunk_size``.
"""

from __future__ import annotations

import re

import structlog

from src.models.ingestion import Chunk

logger = structlog.get_logger(logger_name=__name__)

_EXCESS_NEWLINES = re.compile(r"\n{3,}")

# How far back from a naive window end to look for a boundary.
_BOUNDARY_LOOKBACK = 200


class TextChunker:
    """Splits text into overlapping, boundary-aware character windows.

    Parameters
    ----------
    chunk_size:
        Maximum window length in characters (default 1000).  A window that
        snaps to a ``". "`` boundary may include that one trailing space.
    overlap:
        Characters shared by consecutive windows (default 200).

    Raises
    ------
    ValueError
        If ``chunk_size < 1`` or ``overlap < 0``.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must be >= 0, got {overlap}")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[Chunk]:
        """Split *text* into chunks.

        Offsets refer to the normalized text (3+ newlines collapsed to 2,
        outer whitespace stripped); each chunk's ``text`` is its window
        with surrounding whitespace trimmed.  Whitespace-only windows are
        dropped and indices are assigned over the chunks actually emitted.

        Returns
        -------
        list[Chunk]
            Chunks in source order; empty for empty or whitespace input.
        """
        normalized = self.normalize(text)
        length = len(normalized)
        chunks: list[Chunk] = []
        start = 0

        while start < length:
            end = min(start + self._chunk_size, length)
            if end < length:
                boundary = self._find_break_point(normalized, start, end)
                if boundary > start:
                    end = boundary

            piece = normalized[start:end].strip()
            if piece:
                chunks.append(
                    Chunk(text=piece, index=len(chunks), start_offset=start, end_offset=end)
                )

            if end >= length:
                break

            next_start = end - self._overlap
            start = next_start if next_start > start else start + 1

        logger.debug(
            "text_chunked",
            input_length=length,
            chunk_count=len(chunks),
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return chunks

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse runs of 3+ newlines to a paragraph break and strip."""
        return _EXCESS_NEWLINES.sub("\n\n", text or "").strip()

    @staticmethod
    def _find_break_point(text: str, start: int, end: int) -> int:
        """Return the best cut position in ``(start, end + 1]``, else *end*.

        Scans backward from *end*; the first (i.e. right-most) boundary
        wins.  A paragraph break cuts between the two newlines; a sentence
        end cuts after the character following the period.
        """
        floor = max(start, end - _BOUNDARY_LOOKBACK)
        for i in range(end, floor, -1):
            char, prev = text[i], text[i - 1]
            if char == "\n" and prev == "\n":
                return i
            if prev == "." and char in (" ", "\n"):
                return i + 1
        return end
