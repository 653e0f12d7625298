"""
Chapter record store operations

Chapter numbers are 1-based and unique per book. Manual create/update
reject collisions; ingestion skips them instead.
"""
import logging
from typing import Container, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from textbook_ingestion.exceptions import BookNotFound, ChapterNotFound, DuplicateChapterNumber
from textbook_ingestion.models import Book, Chapter, ContentChunk
from textbook_ingestion.schemas.chapter import MAX_CHAPTER_NUMBER
from textbook_ingestion.schemas.pipeline import DetectedChapter

logger = logging.getLogger(__name__)


class ChapterService:
    """Create, read, update and delete chapters of a book"""

    def list_by_book(self, db: Session, book_id: UUID) -> List[Tuple[Chapter, int]]:
        """Chapters ordered by number, each with its chunk count"""
        chunk_count = func.count(ContentChunk.id)
        rows = (
            db.query(Chapter, chunk_count)
            .outerjoin(ContentChunk, ContentChunk.chapter_id == Chapter.id)
            .filter(Chapter.book_id == book_id)
            .group_by(Chapter.id)
            .order_by(Chapter.number)
            .all()
        )
        return [(chapter, count) for chapter, count in rows]

    def get(self, db: Session, chapter_id: UUID) -> Chapter:
        chapter = db.query(Chapter).filter(Chapter.id == chapter_id).first()
        if not chapter:
            raise ChapterNotFound(chapter_id)
        return chapter

    def create(
        self,
        db: Session,
        book_id: UUID,
        number: int,
        title: str,
        description: Optional[str] = None
    ) -> Chapter:
        """
        Create a chapter

        Raises:
            BookNotFound: book_id does not exist
            DuplicateChapterNumber: number already used in this book
        """
        if not db.query(Book.id).filter(Book.id == book_id).first():
            raise BookNotFound(book_id)

        self._ensure_number_available(book_id, number, self._numbers_in_use(db, book_id))

        chapter = Chapter(
            book_id=book_id,
            number=number,
            title=title.strip(),
            description=(description or "").strip() or None
        )
        db.add(chapter)
        db.commit()
        db.refresh(chapter)

        logger.info(f"Chapter created: book={book_id}, number={number}")
        return chapter

    def update(
        self,
        db: Session,
        chapter_id: UUID,
        number: Optional[int] = None,
        title: Optional[str] = None,
        description: Optional[str] = None
    ) -> Chapter:
        chapter = self.get(db, chapter_id)

        if number is not None and number != chapter.number:
            taken = self._numbers_in_use(db, chapter.book_id, exclude_id=chapter.id)
            self._ensure_number_available(chapter.book_id, number, taken)
            chapter.number = number
        if title is not None:
            chapter.title = title.strip()
        if description is not None:
            chapter.description = description.strip() or None

        db.commit()
        db.refresh(chapter)
        return chapter

    def delete(self, db: Session, chapter_id: UUID) -> None:
        """Delete a chapter; its chunks stay, with chapter_id set to NULL"""
        chapter = self.get(db, chapter_id)
        db.query(ContentChunk).filter(ContentChunk.chapter_id == chapter.id).update(
            {ContentChunk.chapter_id: None}, synchronize_session=False
        )
        db.delete(chapter)
        db.commit()
        logger.info(f"Chapter deleted: {chapter_id}")

    def create_or_skip(
        self,
        db: Session,
        book_id: UUID,
        detected: Sequence[DetectedChapter]
    ) -> Tuple[Dict[int, UUID], int]:
        """
        Insert detected chapters, skipping numbers the book already has

        Existing chapters are left untouched (titles are not refreshed).
        Flushes but does not commit; the caller owns the transaction.

        Returns:
            Tuple of ({number: chapter_id} for every chapter of the book,
            number of chapters inserted)
        """
        numbers: Dict[int, UUID] = {
            number: chapter_id
            for number, chapter_id in db.query(Chapter.number, Chapter.id)
            .filter(Chapter.book_id == book_id)
            .all()
        }

        created = 0
        for candidate in detected:
            if not 1 <= candidate.number <= MAX_CHAPTER_NUMBER:
                logger.info(f"Skipping heading with out-of-range number {candidate.number}: {candidate.title!r}")
                continue

            try:
                self._ensure_number_available(book_id, candidate.number, numbers)
            except DuplicateChapterNumber as e:
                logger.info(f"Skipping detected chapter '{candidate.title}': {e.message}")
                continue

            chapter = Chapter(book_id=book_id, number=candidate.number, title=candidate.title)
            db.add(chapter)
            db.flush()

            numbers[chapter.number] = chapter.id
            created += 1

        return numbers, created

    def _numbers_in_use(self, db: Session, book_id: UUID, exclude_id: Optional[UUID] = None) -> set:
        query = db.query(Chapter.number).filter(Chapter.book_id == book_id)
        if exclude_id is not None:
            query = query.filter(Chapter.id != exclude_id)
        return {number for (number,) in query.all()}

    def _ensure_number_available(self, book_id: UUID, number: int, taken: Container[int]) -> None:
        if number in taken:
            raise DuplicateChapterNumber(book_id, number)


# Global instance
chapter_service = ChapterService()
