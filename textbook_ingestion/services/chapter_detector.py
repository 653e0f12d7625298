"""
Heading-pattern chapter detection

Rule-based, not semantic: every line is tried against an ordered list of
heading rules and the first rule that matches wins for that line.
"""
import logging
import re
from typing import List, Optional, Sequence

from textbook_ingestion.schemas.pipeline import DetectedChapter

logger = logging.getLogger(__name__)


class HeadingRule:
    """
    One heading pattern

    The pattern is matched against a stripped line and must expose the
    heading number as group 1 and the title as group 2.
    """

    def __init__(self, name: str, pattern: str, flags: int = re.IGNORECASE):
        self.name = name
        self.regex = re.compile(pattern, flags)

    def match(self, line: str) -> Optional[tuple]:
        """Return (number, title) when the line is a heading of this kind"""
        match = self.regex.match(line)
        if not match:
            return None

        try:
            number = int(match.group(1))
        except ValueError:
            # Digit run past the int conversion limit is not a heading
            return None

        title = (match.group(2) or "").strip() or f"Chapter {number}"
        return number, title

    def __repr__(self):
        return f"<HeadingRule(name={self.name})>"


def _keyword_rule(keyword: str) -> HeadingRule:
    return HeadingRule(keyword, rf"^{keyword}\s+(\d+)[\s:.\-]+(.+)$")


# Order matters: first match wins
DEFAULT_HEADING_RULES: List[HeadingRule] = [
    _keyword_rule("chapter"),
    _keyword_rule("unit"),
    _keyword_rule("lesson"),
    HeadingRule("numbered", r"^(\d+)\.\s+(.+)$"),
    _keyword_rule("part"),
]


def detect_chapters(
    text: str,
    rules: Optional[Sequence[HeadingRule]] = None
) -> List[DetectedChapter]:
    """
    Detect chapter headings in a linear text stream

    Args:
        text: Full extracted text
        rules: Ordered heading rules (defaults to DEFAULT_HEADING_RULES)

    Returns:
        Chapters ordered by start offset; each end_offset is the next
        chapter's start_offset and the last one ends at len(text)
    """
    rules = DEFAULT_HEADING_RULES if rules is None else rules
    chapters: List[DetectedChapter] = []

    offset = 0
    for line in text.splitlines(keepends=True):
        stripped = line.strip()

        if stripped:
            for rule in rules:
                matched = rule.match(stripped)
                if matched:
                    number, title = matched
                    chapters.append(DetectedChapter(
                        number=number,
                        title=title,
                        start_offset=offset
                    ))
                    break

        offset += len(line)

    chapters.sort(key=lambda ch: ch.start_offset)

    for i, chapter in enumerate(chapters):
        if i < len(chapters) - 1:
            chapter.end_offset = chapters[i + 1].start_offset
        else:
            chapter.end_offset = len(text)

    logger.debug(f"Detected {len(chapters)} chapter headings")

    return chapters
