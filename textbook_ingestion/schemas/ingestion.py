"""
Pydantic schemas for ingestion requests and responses
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime


class ReprocessRequest(BaseModel):
    """Optional overrides for re-running the pipeline"""
    detect_chapters: bool = Field(True, description="Create chapters from detected headings")
    chunk_size: Optional[int] = Field(None, ge=100, le=2000, description="Words per chunk")
    overlap: Optional[int] = Field(None, ge=0, le=200, description="Overlap words between chunks")


class ProcessingSummary(BaseModel):
    """Outcome of one ingestion run"""
    book_id: UUID
    chunks_created: int
    chapters_created: int
    chapters_detected: int
    total_pages: int


class BoardRef(BaseModel):
    id: UUID
    name: str


class BookSummary(BaseModel):
    id: UUID
    title: str
    grade: str
    subject: str
    board: Optional[BoardRef] = None


class IngestionResponse(BaseModel):
    """Response after upload or reprocess"""
    message: str
    book: BookSummary
    processing: ProcessingSummary


class FileStats(BaseModel):
    size: int
    created: datetime
    modified: datetime


class StatusBook(BookSummary):
    has_file: bool
    file_stats: Optional[FileStats] = None


class StatusCounts(BaseModel):
    chapters: int
    chunks: int


class StatusFlags(BaseModel):
    is_processed: bool
    has_chapters: bool


class IngestionStatus(BaseModel):
    """Processing state of one book"""
    book: StatusBook
    counts: StatusCounts
    status: StatusFlags


class IngestionJob(BookSummary):
    """One row of the ingestion job list"""
    has_file: bool
    chapters: int
    chunks: int
    status: str  # processed | pending
    created_at: Optional[datetime] = None


class PreviewChapter(BaseModel):
    number: int
    title: str
    start_offset: int
    end_offset: int


class PreviewChunk(BaseModel):
    index: int
    text: str  # truncated to 500 characters
    word_count: int
    start_offset: int


class PreviewResult(BaseModel):
    total_pages: int
    total_characters: int
    total_words: int
    detected_chapters: int
    total_chunks: int
    chapters: List[PreviewChapter]
    sample_chunks: List[PreviewChunk]
    metadata: Dict[str, Any]


class PreviewResponse(BaseModel):
    """Dry-run extraction result"""
    preview: PreviewResult
