"""
Word-bounded overlapping text chunking

Algorithm: Greedy accumulation of segments
- Segments are paragraphs (blank-line separated) or, when paragraph
  boundaries are ignored, sentence-like spans ending in a period
- Segments are added to the current chunk until the next one would push
  the word count over chunk_size, then the chunk is closed
- The next chunk starts with the last `overlap` words of the closed one
- A segment is never cut, so a single long paragraph can exceed chunk_size

Every word keeps its offset in the un-normalized source text, so each chunk
knows where it starts without searching the source afterwards.
"""
import logging
import re
from typing import List

from textbook_ingestion.schemas.pipeline import TextChunk

logger = logging.getLogger(__name__)

# A line holding only whitespace separates paragraphs; runs collapse to one break
PARAGRAPH_BREAK = re.compile(r"\r?\n[^\S\r\n]*\r?\n\s*")
SENTENCE_BREAK = re.compile(r"(?<=\.)\s+")
WORD = re.compile(r"\S+")

DEFAULT_CHUNK_SIZE = 800
DEFAULT_OVERLAP = 50


class _Segment:
    """Words of one paragraph or sentence with their source offsets"""

    __slots__ = ("words", "offsets")

    def __init__(self, words: List[str], offsets: List[int]):
        self.words = words
        self.offsets = offsets

    @property
    def text(self) -> str:
        return " ".join(self.words)

    def __len__(self) -> int:
        return len(self.words)


def _split_segments(text: str, separator: re.Pattern) -> List[_Segment]:
    """Split text on separator, dropping empty pieces"""
    segments: List[_Segment] = []
    start = 0

    for match in separator.finditer(text):
        _append_segment(segments, text, start, match.start())
        start = match.end()
    _append_segment(segments, text, start, len(text))

    return segments


def _append_segment(segments: List[_Segment], text: str, start: int, end: int) -> None:
    words, offsets = [], []
    for word in WORD.finditer(text, start, end):
        words.append(word.group())
        offsets.append(word.start())

    if words:
        segments.append(_Segment(words, offsets))


def normalize_text(text: str) -> str:
    """
    Collapse whitespace the way the chunker sees it

    Paragraph breaks become exactly one blank line, every other whitespace
    run a single space, and the result is trimmed.
    """
    return "\n\n".join(segment.text for segment in _split_segments(text, PARAGRAPH_BREAK))


def count_words(text: str) -> int:
    return len(text.split())


class TextChunker:
    """
    Splits long text into overlapping, word-count-bounded chunks

    Args:
        chunk_size: Target words per chunk
        overlap: Trailing words of a chunk repeated at the start of the next
        respect_paragraphs: Split on paragraphs (True) or sentences (False)
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
        respect_paragraphs: bool = True
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap cannot be negative, got {overlap}")

        self.chunk_size = chunk_size
        self.overlap = overlap
        self.respect_paragraphs = respect_paragraphs

    def split(self, text: str) -> List[TextChunk]:
        """
        Split text into chunks

        Args:
            text: Full source text, un-normalized

        Returns:
            Chunks indexed 0..N-1; empty list for blank text
        """
        if not text or not text.strip():
            return []

        separator = PARAGRAPH_BREAK if self.respect_paragraphs else SENTENCE_BREAK
        segments = _split_segments(text, separator)

        chunks: List[TextChunk] = []
        buffer: List[_Segment] = []
        word_count = 0

        for segment in segments:
            if word_count + len(segment) > self.chunk_size and buffer:
                chunks.append(self._close_chunk(buffer, word_count, len(chunks)))

                if self.overlap > 0:
                    seed = self._overlap_segment(buffer)
                    buffer = [seed]
                    word_count = len(seed)
                else:
                    buffer = []
                    word_count = 0

            buffer.append(segment)
            word_count += len(segment)

        if buffer:
            chunks.append(self._close_chunk(buffer, word_count, len(chunks)))

        logger.debug(
            f"Chunked {len(segments)} segments into {len(chunks)} chunks "
            f"(size={self.chunk_size}, overlap={self.overlap})"
        )

        return chunks

    def _close_chunk(self, buffer: List[_Segment], word_count: int, index: int) -> TextChunk:
        return TextChunk(
            index=index,
            text="\n\n".join(segment.text for segment in buffer),
            word_count=word_count,
            start_offset=buffer[0].offsets[0]
        )

    def _overlap_segment(self, buffer: List[_Segment]) -> _Segment:
        """Last `overlap` words of the buffer (all of them if fewer)"""
        words = [word for segment in buffer for word in segment.words]
        offsets = [offset for segment in buffer for offset in segment.offsets]
        return _Segment(words[-self.overlap:], offsets[-self.overlap:])


def split_into_chunks(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    respect_paragraphs: bool = True
) -> List[TextChunk]:
    """Convenience wrapper around TextChunker.split"""
    return TextChunker(chunk_size, overlap, respect_paragraphs).split(text)
