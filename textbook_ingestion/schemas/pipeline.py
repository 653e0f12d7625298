"""
Pydantic models passed between pipeline stages
"""
from pydantic import BaseModel, Field
from typing import Any, Dict


class ExtractionResult(BaseModel):
    """Linear text of a PDF plus page count and document metadata"""
    text: str
    page_count: int
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DetectedChapter(BaseModel):
    """Heading match with the half-open offset range it governs"""
    number: int
    title: str
    start_offset: int
    end_offset: int = 0


class TextChunk(BaseModel):
    """One word-bounded segment of the source text"""
    index: int
    text: str
    word_count: int
    start_offset: int = 0  # offset of the first word in the un-normalized text
