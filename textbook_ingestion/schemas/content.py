"""
Pydantic schemas for content chunk responses
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class ChunkChapterRef(BaseModel):
    id: UUID
    number: int
    title: str

    class Config:
        from_attributes = True


class ChunkResponse(BaseModel):
    id: UUID
    book_id: UUID
    chapter_id: Optional[UUID] = None
    chapter: Optional[ChunkChapterRef] = None
    text: str
    chunk_index: int
    page_from: Optional[int] = None
    page_to: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ChunkPage(BaseModel):
    chunks: List[ChunkResponse]
    pagination: Pagination
