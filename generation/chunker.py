"""
Sentence-aware text chunker for MCQ generation.

Splits arbitrary study text into bounded windows so each LLM call sees a
manageable segment. A window that would end mid-sentence is pulled back to the
last sentence terminator or newline in its back half; otherwise it is cut at
the raw size limit.
"""

from dataclasses import dataclass
from typing import Iterator
import os

DEFAULT_CHUNK_SIZE = int(os.getenv("MCQ_CHUNK_SIZE", "4000"))
MIN_CHUNK_CHARS = 50          # shorter pieces rarely hold a full question's worth of facts
BREAK_CHARS = (".", "!", "?", "\n")


@dataclass(frozen=True)
class TextChunk:
    """One contiguous segment of the source text."""
    index: int
    text: str
    start: int  # offset of the untrimmed window in the source

    @property
    def length(self) -> int:
        return len(self.text)


def _find_break(text: str, window_start: int, window_end: int) -> int:
    """
    Return the cut position for a window, preferring the character right after
    the last break char in the back half. Falls back to window_end.
    """
    half = window_start + (window_end - window_start) // 2
    best = -1
    for ch in BREAK_CHARS:
        pos = text.rfind(ch, half, window_end)
        if pos > best:
            best = pos
    if best == -1:
        return window_end
    return best + 1


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> Iterator[TextChunk]:
    """
    Lazily yield TextChunks covering `text` in order.

    - Text no longer than chunk_size → exactly one chunk (trimmed), regardless of length.
    - Otherwise each window is trimmed and kept only if longer than min_chunk_chars.
    - No chunk is empty and none exceeds chunk_size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if not text or not text.strip():
        return

    if len(text) <= chunk_size:
        yield TextChunk(index=0, text=text.strip(), start=0)
        return

    index = 0
    pos = 0
    n = len(text)
    while pos < n:
        end = min(pos + chunk_size, n)
        if end < n:
            end = _find_break(text, pos, end)

        piece = text[pos:end].strip()
        if len(piece) > min_chunk_chars:
            yield TextChunk(index=index, text=piece, start=pos)
            index += 1
        pos = end


def count_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of chunks chunk_text would yield for this input."""
    return sum(1 for _ in chunk_text(text, chunk_size))
