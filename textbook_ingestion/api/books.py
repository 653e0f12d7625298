"""
Board and book API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List, Optional

from textbook_ingestion.database import get_db
from textbook_ingestion.schemas.book import BoardCreate, BoardResponse, BookResponse
from textbook_ingestion.services.book_service import book_service

router = APIRouter(prefix="/api", tags=["books"])


@router.get("/boards", response_model=List[BoardResponse])
async def list_boards(db: Session = Depends(get_db)):
    return book_service.list_boards(db)


@router.post("/boards", response_model=BoardResponse, status_code=201)
async def create_board(request: BoardCreate, db: Session = Depends(get_db)):
    return book_service.create_board(db, name=request.name, description=request.description)


@router.get("/books", response_model=List[BookResponse])
async def list_books(board_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    """Books newest first, optionally restricted to one board"""
    return book_service.list_books(db, board_id=board_id)


@router.get("/books/{book_id}", response_model=BookResponse)
async def get_book(book_id: UUID, db: Session = Depends(get_db)):
    return book_service.get_book(db, book_id)


@router.delete("/books/{book_id}")
async def delete_book(book_id: UUID, db: Session = Depends(get_db)):
    """
    Delete a book

    Chapters and chunks are removed with it, as is the stored PDF.
    """
    book_service.delete_book(db, book_id)
    return {"message": "Book deleted successfully"}
