"""
Pydantic schemas for chapter-related requests and responses
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

# Upper bound of the INTEGER chapter number column
MAX_CHAPTER_NUMBER = 2147483647


class ChapterCreate(BaseModel):
    """Schema for declaring a chapter manually"""
    book_id: UUID
    number: int = Field(..., ge=1, le=MAX_CHAPTER_NUMBER, description="1-based chapter number, unique per book")
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None


class ChapterUpdate(BaseModel):
    """Partial chapter update"""
    number: Optional[int] = Field(None, ge=1, le=MAX_CHAPTER_NUMBER)
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None


class ChapterResponse(BaseModel):
    id: UUID
    book_id: UUID
    number: int
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChapterWithCount(ChapterResponse):
    chunk_count: int = 0


class ChapterChunk(BaseModel):
    id: UUID
    text: str
    chunk_index: int
    page_from: Optional[int] = None
    page_to: Optional[int] = None

    class Config:
        from_attributes = True


class ChapterDetail(ChapterResponse):
    """Chapter with its chunks in sequence order"""
    chunks: List[ChapterChunk] = []
