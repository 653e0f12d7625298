"""
Content chunk API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID

from textbook_ingestion.database import get_db
from textbook_ingestion.schemas.content import ChunkPage, ChunkResponse, Pagination
from textbook_ingestion.services.content_service import content_service

router = APIRouter(prefix="/api/content", tags=["content"])


@router.get("/chunks/book/{book_id}", response_model=ChunkPage)
async def get_book_chunks(
    book_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    """
    Chunks of a book in reading order, paginated

    Each chunk carries its chapter (number, title) when one was assigned.
    """
    chunks, total = content_service.list_chunks(db, book_id, page=page, limit=limit)

    return ChunkPage(
        chunks=[ChunkResponse.model_validate(chunk) for chunk in chunks],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=content_service.page_count(total, limit)
        )
    )


@router.get("/chunks/{chunk_id}", response_model=ChunkResponse)
async def get_chunk(chunk_id: UUID, db: Session = Depends(get_db)):
    return content_service.get_chunk(db, chunk_id)
