"""
Chapter management API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
import logging
from typing import List

from textbook_ingestion.database import get_db
from textbook_ingestion.schemas.chapter import (
    ChapterCreate, ChapterUpdate, ChapterResponse,
    ChapterWithCount, ChapterDetail
)
from textbook_ingestion.services.book_service import book_service
from textbook_ingestion.services.chapter_service import chapter_service

router = APIRouter(prefix="/api/chapters", tags=["chapters"])
logger = logging.getLogger(__name__)


@router.get("/book/{book_id}", response_model=List[ChapterWithCount])
async def get_book_chapters(book_id: UUID, db: Session = Depends(get_db)):
    """
    Chapters of a book ordered by number

    Each entry includes the number of chunks assigned to it.
    """
    book_service.get_book(db, book_id)

    return [
        ChapterWithCount(
            **ChapterResponse.model_validate(chapter).model_dump(),
            chunk_count=chunk_count
        )
        for chapter, chunk_count in chapter_service.list_by_book(db, book_id)
    ]


@router.get("/{chapter_id}", response_model=ChapterDetail)
async def get_chapter(chapter_id: UUID, db: Session = Depends(get_db)):
    """Chapter with its chunks in chunk_index order"""
    chapter = chapter_service.get(db, chapter_id)
    return ChapterDetail.model_validate(chapter)


@router.post("", response_model=ChapterResponse, status_code=201)
async def create_chapter(request: ChapterCreate, db: Session = Depends(get_db)):
    """
    Declare a chapter manually

    - 404 if the book does not exist
    - 400 if the number is already used in this book
    """
    return chapter_service.create(
        db,
        book_id=request.book_id,
        number=request.number,
        title=request.title,
        description=request.description
    )


@router.put("/{chapter_id}", response_model=ChapterResponse)
async def update_chapter(
    chapter_id: UUID,
    request: ChapterUpdate,
    db: Session = Depends(get_db)
):
    chapter = chapter_service.update(
        db,
        chapter_id,
        number=request.number,
        title=request.title,
        description=request.description
    )
    logger.info(f"Chapter updated: {chapter_id}")
    return chapter


@router.delete("/{chapter_id}")
async def delete_chapter(chapter_id: UUID, db: Session = Depends(get_db)):
    """Delete a chapter; its chunks are kept without a chapter"""
    chapter_service.delete(db, chapter_id)
    return {"message": "Chapter deleted successfully"}
