"""
Pydantic schemas for boards and books
"""
from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class BoardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class BoardResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class BookResponse(BaseModel):
    id: UUID
    board_id: UUID
    grade: str
    subject: str
    title: str
    edition: Optional[str] = None
    publisher: Optional[str] = None
    isbn: Optional[str] = None
    file_path: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
