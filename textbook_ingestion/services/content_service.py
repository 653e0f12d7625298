"""
Read access to content chunks
"""
import math
from typing import List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from textbook_ingestion.exceptions import BookNotFound, ChunkNotFound
from textbook_ingestion.models import Book, ContentChunk


class ContentService:
    """Chunk listing for retrieval consumers"""

    def list_chunks(
        self,
        db: Session,
        book_id: UUID,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[ContentChunk], int]:
        """
        One page of a book's chunks in chunk_index order

        Returns:
            Tuple of (chunks on the page, total chunk count)
        """
        if not db.query(Book.id).filter(Book.id == book_id).first():
            raise BookNotFound(book_id)

        query = db.query(ContentChunk).filter(ContentChunk.book_id == book_id)
        total = query.count()

        chunks = (
            query.options(joinedload(ContentChunk.chapter))
            .order_by(ContentChunk.chunk_index)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return chunks, total

    def get_chunk(self, db: Session, chunk_id: UUID) -> ContentChunk:
        chunk = (
            db.query(ContentChunk)
            .options(joinedload(ContentChunk.chapter))
            .filter(ContentChunk.id == chunk_id)
            .first()
        )
        if not chunk:
            raise ChunkNotFound(chunk_id)
        return chunk

    @staticmethod
    def page_count(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0


# Global instance
content_service = ContentService()
