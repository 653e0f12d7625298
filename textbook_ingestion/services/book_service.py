"""
Board and book record store operations
"""
import logging
import os
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from textbook_ingestion.config import settings
from textbook_ingestion.exceptions import BoardNotFound, BookNotFound, DuplicateBoardName
from textbook_ingestion.models import Board, Book

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


class BookService:
    """Boards and books; chapters and chunks live in their own services"""

    def list_boards(self, db: Session) -> List[Board]:
        return db.query(Board).order_by(Board.name).all()

    def create_board(self, db: Session, name: str, description: Optional[str] = None) -> Board:
        name = name.strip()
        if db.query(Board.id).filter(Board.name == name).first():
            raise DuplicateBoardName(name)

        board = Board(name=name, description=_clean(description))
        db.add(board)
        db.commit()
        db.refresh(board)
        logger.info(f"Board created: {board.id} ({board.name})")
        return board

    def get_book(self, db: Session, book_id: UUID) -> Book:
        book = db.query(Book).filter(Book.id == book_id).first()
        if not book:
            raise BookNotFound(book_id)
        return book

    def list_books(self, db: Session, board_id: Optional[UUID] = None) -> List[Book]:
        query = db.query(Book)
        if board_id:
            query = query.filter(Book.board_id == board_id)
        return query.order_by(Book.created_at.desc()).all()

    def create_book(
        self,
        db: Session,
        board_id: UUID,
        grade: str,
        subject: str,
        title: str,
        edition: Optional[str] = None,
        publisher: Optional[str] = None,
        isbn: Optional[str] = None
    ) -> Book:
        """
        Register a book under an existing board

        Raises:
            BoardNotFound: board_id does not exist
        """
        if not db.query(Board.id).filter(Board.id == board_id).first():
            raise BoardNotFound(board_id)

        book = Book(
            board_id=board_id,
            grade=grade.strip(),
            subject=subject.strip(),
            title=title.strip(),
            edition=_clean(edition),
            publisher=_clean(publisher),
            isbn=_clean(isbn)
        )
        db.add(book)
        db.commit()
        db.refresh(book)

        logger.info(f"Book created: {book.id} ({book.title})")
        return book

    def delete_book(self, db: Session, book_id: UUID) -> None:
        """Delete a book with its chapters, chunks and stored PDF"""
        book = self.get_book(db, book_id)
        stored_path = os.path.join(settings.UPLOAD_DIR, book.file_path) if book.file_path else None

        db.delete(book)
        db.commit()

        if stored_path and os.path.exists(stored_path):
            os.remove(stored_path)

        logger.info(f"Book deleted: {book_id}")


# Global instance
book_service = BookService()
