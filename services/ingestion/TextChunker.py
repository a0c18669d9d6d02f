"""Boundary-aware, overlapping text chunker.

Windows of chunk_size characters are cut preferably just after a newline
(searched within ±100 characters of the raw boundary), otherwise just after a
sentence-ending ". " (within ±50 characters), otherwise at the raw boundary.
Each following window starts overlap characters before the previous end.
"""

from shared.helper.errors import ConfigurationError

NEWLINE_TOLERANCE = 100
PERIOD_TOLERANCE = 50


def _find_newline_cut(text: str, boundary: int) -> int | None:
    """Return the position just after the first newline in [boundary-100, boundary+100)."""
    index = text.find("\n", max(boundary - NEWLINE_TOLERANCE, 0), boundary + NEWLINE_TOLERANCE)
    return index + 1 if index != -1 else None


def _find_sentence_cut(text: str, boundary: int) -> int | None:
    """Return the position just after the first ". " starting in [boundary-50, boundary+50)."""
    # +1 so a ". " starting at the last allowed index still fits the slice
    index = text.find(". ", max(boundary - PERIOD_TOLERANCE, 0), boundary + PERIOD_TOLERANCE + 1)
    return index + 2 if index != -1 else None


class TextChunker:
    """Splits text into overlapping passages.

    Args:
        chunk_size (int): Target window length in characters.
        overlap (int): Characters shared by consecutive windows.

    Raises:
        ConfigurationError: If chunk_size is not positive or overlap is not in [0, chunk_size).
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}.")
        if overlap < 0 or overlap >= chunk_size:
            raise ConfigurationError(
                f"overlap must be in [0, chunk_size); got overlap={overlap}, chunk_size={chunk_size}."
            )
        self.chunk_size = chunk_size
        self.overlap = overlap

    def _find_end(self, text: str, start: int) -> int:
        end = start + self.chunk_size
        if end >= len(text):
            return end
        cut = _find_newline_cut(text, end)
        if cut is None:
            cut = _find_sentence_cut(text, end)
        return cut if cut is not None else end

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return the raw (start, end) window of every passage, before trimming.

        Consecutive windows satisfy next_start == end - overlap and the last
        window reaches the end of the text.

        Raises:
            ConfigurationError: If a boundary cut would stop the window from advancing.
        """
        windows: list[tuple[int, int]] = []
        length = len(text)
        start = 0
        while start < length:
            end = self._find_end(text, start)
            windows.append((start, min(end, length)))

            next_start = end - self.overlap
            if next_start >= length - self.overlap:
                break
            if next_start <= start:
                raise ConfigurationError(
                    f"Chunk window does not advance (start={start}, end={end}, overlap={self.overlap}); "
                    "use a larger chunk_size or a smaller overlap."
                )
            start = next_start
        return windows

    def chunk(self, text: str) -> list[str]:
        """Split text into trimmed, non-empty passages in document order.

        Args:
            text (str): The document text.

        Returns:
            list[str]: The passages; empty for empty or blank text.
        """
        passages = (text[start:end].strip() for start, end in self.spans(text))
        return [passage for passage in passages if passage]


def chunk_text(text: str, chunk_size: int = 1000, overlap: int = 200) -> list[str]:
    """Shortcut for TextChunker(chunk_size, overlap).chunk(text)."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap).chunk(text)
