"""
Chunk to chapter assignment

Each chunk belongs to the chapter whose [start_offset, end_offset) range
contains the chunk's position in the source text. Two ways of finding that
position are supported:

- "offset": the start offset tracked by the chunker (default)
- "search": where the chunk's first 50 characters reappear in the source.
  Repeated boilerplate (running headers, recurring captions) makes this
  land on the wrong occurrence.
"""
import logging
import re
from typing import List, Optional, Sequence

from textbook_ingestion.schemas.pipeline import DetectedChapter, TextChunk

logger = logging.getLogger(__name__)

STRATEGY_OFFSET = "offset"
STRATEGY_SEARCH = "search"
STRATEGIES = (STRATEGY_OFFSET, STRATEGY_SEARCH)

SEARCH_PREFIX_CHARS = 50


def locate_chunk(chunk: TextChunk, source_text: str) -> int:
    """
    Find where the chunk's opening text first appears in the source

    Whitespace is matched loosely since chunk text is normalized.

    Returns:
        Offset in source_text, or -1 when not found
    """
    words = chunk.text[:SEARCH_PREFIX_CHARS].split()
    if not words:
        return -1

    pattern = r"\s+".join(re.escape(word) for word in words)
    match = re.search(pattern, source_text)
    return match.start() if match else -1


def find_chapter(chapters: Sequence[DetectedChapter], position: int) -> Optional[DetectedChapter]:
    """Chapter whose range contains position, if any"""
    if position < 0:
        return None

    for chapter in chapters:
        if chapter.start_offset <= position < chapter.end_offset:
            return chapter
    return None


def assign_chapters(
    chunks: Sequence[TextChunk],
    chapters: Sequence[DetectedChapter],
    source_text: str,
    strategy: str = STRATEGY_OFFSET
) -> List[Optional[DetectedChapter]]:
    """
    Map every chunk to its chapter

    Args:
        chunks: Chunker output
        chapters: Detector output with offset ranges over source_text
        source_text: The text both were computed from
        strategy: "offset" or "search"

    Returns:
        One entry per chunk, in chunk order; None where no chapter matches
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown chapter assignment strategy: {strategy}")

    if not chapters:
        return [None] * len(chunks)

    assignments: List[Optional[DetectedChapter]] = []
    unplaced = 0

    for chunk in chunks:
        if strategy == STRATEGY_SEARCH:
            position = locate_chunk(chunk, source_text)
        else:
            position = chunk.start_offset

        chapter = find_chapter(chapters, position)
        if chapter is None:
            unplaced += 1
        assignments.append(chapter)

    logger.debug(
        f"Assigned {len(chunks) - unplaced}/{len(chunks)} chunks to chapters "
        f"using '{strategy}' strategy"
    )

    return assignments
