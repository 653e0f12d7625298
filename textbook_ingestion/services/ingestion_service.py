"""
Textbook ingestion orchestration
Extraction -> chapter detection -> chunking -> assignment -> persistence
"""
import logging
import os
import shutil
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from textbook_ingestion.config import settings
from textbook_ingestion.exceptions import SourceFileMissing
from textbook_ingestion.models import Book, Chapter, ContentChunk
from textbook_ingestion.services import chapter_detector
from textbook_ingestion.services.book_service import book_service
from textbook_ingestion.services.chapter_service import chapter_service
from textbook_ingestion.services.chunk_assigner import assign_chapters
from textbook_ingestion.services.chunker import TextChunker, count_words
from textbook_ingestion.services.pdf_extractor import extract_text_from_pdf

logger = logging.getLogger(__name__)

PREVIEW_CHAPTER_LIMIT = 10
PREVIEW_CHUNK_LIMIT = 3
PREVIEW_CHUNK_CHARS = 500


class IngestionService:
    """
    Turns a stored textbook PDF into chapters and content chunks

    The pipeline itself never locks; callers serialize runs against the
    same book (see utils.book_lock).
    """

    def process_pdf(
        self,
        db: Session,
        book_id: UUID,
        file_path: str,
        detect_chapters: bool = True,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Run the full pipeline for one book and replace its chunk set

        Chapter inserts, the chunk delete/insert and the file path update
        share one transaction, so a failed run leaves the previous chunk
        set in place.

        Args:
            db: Database session
            book_id: Book to (re)ingest
            file_path: Path of the stored PDF
            detect_chapters: Create chapters from detected headings
            chunk_size: Words per chunk (default from settings)
            overlap: Overlap words (default from settings)

        Returns:
            Processing summary with chunk/chapter counts and total pages

        Raises:
            BookNotFound: unknown book
            DocumentUnreadable: PDF has no extractable text
        """
        chunk_size = chunk_size or settings.CHUNK_SIZE_WORDS
        overlap = settings.CHUNK_OVERLAP_WORDS if overlap is None else overlap

        book = book_service.get_book(db, book_id)

        # Nothing is written until every computation step has succeeded
        extraction = extract_text_from_pdf(file_path)
        text = extraction.text

        detected = chapter_detector.detect_chapters(text) if detect_chapters else []
        chunks = TextChunker(chunk_size=chunk_size, overlap=overlap).split(text)
        assignments = assign_chapters(
            chunks, detected, text, strategy=settings.CHAPTER_ASSIGNMENT_STRATEGY
        )

        logger.info(
            f"Book {book.id}: {extraction.page_count} pages, "
            f"{len(detected)} headings, {len(chunks)} chunks "
            f"(size={chunk_size}, overlap={overlap})"
        )

        relative_path = os.path.relpath(os.path.abspath(file_path), os.path.abspath(settings.UPLOAD_DIR))

        try:
            chapter_ids, chapters_created = chapter_service.create_or_skip(db, book.id, detected)

            deleted = (
                db.query(ContentChunk)
                .filter(ContentChunk.book_id == book.id)
                .delete(synchronize_session=False)
            )

            db.add_all([
                ContentChunk(
                    book_id=book.id,
                    chapter_id=chapter_ids.get(chapter.number) if chapter else None,
                    text=chunk.text,
                    chunk_index=chunk.index
                )
                for chunk, chapter in zip(chunks, assignments)
            ])

            if book.file_path != relative_path:
                book.file_path = relative_path

            db.commit()

        except Exception as e:
            logger.error(f"Failed to persist ingestion for book {book_id}: {str(e)}")
            db.rollback()
            raise

        logger.info(
            f"Book {book.id} ingested: replaced {deleted} chunks with {len(chunks)}, "
            f"{chapters_created} new chapters"
        )

        return {
            "book_id": book.id,
            "chunks_created": len(chunks),
            "chapters_created": chapters_created,
            "chapters_detected": len(detected),
            "total_pages": extraction.page_count
        }

    def reprocess(
        self,
        db: Session,
        book_id: UUID,
        detect_chapters: bool = True,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None
    ) -> Dict[str, Any]:
        """Re-run the pipeline against the book's stored PDF"""
        book = book_service.get_book(db, book_id)
        file_path = self.resolve_source_path(book)

        logger.info(f"Reprocessing book {book_id} from {book.file_path}")

        return self.process_pdf(
            db,
            book_id=book.id,
            file_path=file_path,
            detect_chapters=detect_chapters,
            chunk_size=chunk_size,
            overlap=overlap
        )

    def ingest_upload(
        self,
        db: Session,
        book_id: UUID,
        temp_path: str,
        detect_chapters: bool = True,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Store an uploaded PDF as the book's source and process it

        A previously stored file is kept aside until the run succeeds and
        put back if it fails, so a bad upload never replaces a good source.
        """
        target = os.path.join(settings.UPLOAD_DIR, f"{book_id}.pdf")
        backup = None
        if os.path.exists(target):
            backup = f"{target}.bak"
            os.replace(target, backup)

        try:
            file_path = self.save_pdf_file(temp_path, book_id)
            result = self.process_pdf(
                db,
                book_id=book_id,
                file_path=file_path,
                detect_chapters=detect_chapters,
                chunk_size=chunk_size,
                overlap=overlap
            )
        except Exception:
            if backup:
                os.replace(backup, target)
                logger.info(f"Restored previous source file for book {book_id}")
            elif os.path.exists(target):
                os.remove(target)
            raise

        if backup:
            os.remove(backup)

        return result

    def save_pdf_file(self, temp_path: str, book_id: UUID) -> str:
        """
        Move an uploaded file to its permanent location

        Returns:
            Path of the stored file, <UPLOAD_DIR>/<book_id>.pdf
        """
        os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
        file_path = os.path.join(settings.UPLOAD_DIR, f"{book_id}.pdf")
        shutil.move(temp_path, file_path)
        return file_path

    def resolve_source_path(self, book: Book) -> str:
        """
        Location of the book's stored PDF under UPLOAD_DIR

        Raises:
            SourceFileMissing: no file recorded or file gone from disk
        """
        if not book.file_path:
            raise SourceFileMissing(
                "No PDF file associated with this book. Please upload a new file."
            )

        file_path = os.path.join(settings.UPLOAD_DIR, book.file_path)
        if not os.path.isfile(file_path):
            raise SourceFileMissing("PDF file not found. Please upload a new file.")

        return file_path

    def preview(
        self,
        file_path: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Dry run of extraction, detection and chunking, nothing persisted

        Returns:
            Extraction stats, first chapters and first (truncated) chunks
        """
        chunk_size = chunk_size or settings.CHUNK_SIZE_WORDS
        overlap = settings.CHUNK_OVERLAP_WORDS if overlap is None else overlap

        extraction = extract_text_from_pdf(file_path)
        text = extraction.text

        chapters = chapter_detector.detect_chapters(text)
        chunks = TextChunker(chunk_size=chunk_size, overlap=overlap).split(text)

        sample_chunks = []
        for chunk in chunks[:PREVIEW_CHUNK_LIMIT]:
            sample = chunk.model_dump()
            if len(chunk.text) > PREVIEW_CHUNK_CHARS:
                sample["text"] = chunk.text[:PREVIEW_CHUNK_CHARS] + "..."
            sample_chunks.append(sample)

        return {
            "total_pages": extraction.page_count,
            "total_characters": len(text),
            "total_words": count_words(text),
            "detected_chapters": len(chapters),
            "total_chunks": len(chunks),
            "chapters": [chapter.model_dump() for chapter in chapters[:PREVIEW_CHAPTER_LIMIT]],
            "sample_chunks": sample_chunks,
            "metadata": extraction.metadata
        }

    def get_status(self, db: Session, book_id: UUID) -> Dict[str, Any]:
        """File presence and chapter/chunk counts for one book"""
        book = book_service.get_book(db, book_id)

        file_stats = None
        if book.file_path:
            file_stats = self.get_file_stats(os.path.join(settings.UPLOAD_DIR, book.file_path))

        chapter_count = self._count(db, Chapter, book.id)
        chunk_count = self._count(db, ContentChunk, book.id)

        return {
            "book": {
                **self.book_summary(book),
                "has_file": bool(book.file_path),
                "file_stats": file_stats
            },
            "counts": {
                "chapters": chapter_count,
                "chunks": chunk_count
            },
            "status": {
                "is_processed": chunk_count > 0,
                "has_chapters": chapter_count > 0
            }
        }

    def list_jobs(
        self,
        db: Session,
        status: Optional[str] = None,
        board_id: Optional[UUID] = None
    ) -> List[Dict[str, Any]]:
        """
        Every book with its processing state, newest first

        Args:
            status: "processed" or "pending" to filter, None for all
            board_id: Restrict to one board
        """
        chapter_counts = dict(
            db.query(Chapter.book_id, func.count(Chapter.id)).group_by(Chapter.book_id).all()
        )
        chunk_counts = dict(
            db.query(ContentChunk.book_id, func.count(ContentChunk.id)).group_by(ContentChunk.book_id).all()
        )

        jobs = []
        for book in book_service.list_books(db, board_id=board_id):
            chunks = chunk_counts.get(book.id, 0)
            job_status = "processed" if chunks > 0 else "pending"

            if status and status != job_status:
                continue

            jobs.append({
                **self.book_summary(book),
                "has_file": bool(book.file_path),
                "chapters": chapter_counts.get(book.id, 0),
                "chunks": chunks,
                "status": job_status,
                "created_at": book.created_at
            })

        return jobs

    @staticmethod
    def get_file_stats(file_path: str) -> Optional[Dict[str, Any]]:
        """Size and timestamps of a file, None if it cannot be read"""
        try:
            stats = os.stat(file_path)
        except OSError:
            return None

        return {
            "size": stats.st_size,
            "created": datetime.fromtimestamp(stats.st_ctime),
            "modified": datetime.fromtimestamp(stats.st_mtime)
        }

    @staticmethod
    def _count(db: Session, model, book_id: UUID) -> int:
        return db.query(func.count(model.id)).filter(model.book_id == book_id).scalar() or 0

    @staticmethod
    def book_summary(book: Book) -> Dict[str, Any]:
        return {
            "id": book.id,
            "title": book.title,
            "grade": book.grade,
            "subject": book.subject,
            "board": {"id": book.board.id, "name": book.board.name} if book.board else None
        }


# Global instance
ingestion_service = IngestionService()
