"""
Textbook ingestion API endpoints
"""
from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from uuid import UUID, uuid4
import aiofiles
import os
import time
import logging
from typing import List, Optional

from textbook_ingestion.config import settings
from textbook_ingestion.database import get_db
from textbook_ingestion.exceptions import IngestionError
from textbook_ingestion.schemas.ingestion import (
    ReprocessRequest, IngestionResponse, IngestionStatus,
    IngestionJob, PreviewResponse
)
from textbook_ingestion.services.book_service import book_service
from textbook_ingestion.services.ingestion_service import ingestion_service
from textbook_ingestion.utils.book_lock import book_lock
from textbook_ingestion.utils.rate_limiter import ingestion_rate_limiter

router = APIRouter(prefix="/api/ingestion", tags=["ingestion"])
logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 1024 * 1024


def _validate_pdf(file: UploadFile) -> None:
    filename = (file.filename or "").lower()
    if not filename.endswith(".pdf") and file.content_type != "application/pdf":
        raise HTTPException(status_code=400, detail="Only PDF files are allowed")


async def _save_upload(file: UploadFile) -> str:
    """Stream an upload to the temp directory, enforcing the size cap"""
    os.makedirs(settings.TEMP_UPLOAD_DIR, exist_ok=True)
    temp_path = os.path.join(
        settings.TEMP_UPLOAD_DIR, f"{int(time.time() * 1000)}-{uuid4().hex}.pdf"
    )
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    written = 0

    try:
        async with aiofiles.open(temp_path, 'wb') as f:
            while True:
                content = await file.read(READ_CHUNK_BYTES)
                if not content:
                    break
                written += len(content)
                if written > max_bytes:
                    break
                await f.write(content)
    except BaseException:
        # Partial writes (disk full, cancelled request) never stay behind
        _cleanup(temp_path)
        raise

    if written > max_bytes:
        _cleanup(temp_path)
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB}MB"
        )

    return temp_path


def _cleanup(path: Optional[str]) -> None:
    if path and os.path.exists(path):
        os.remove(path)


def _ingest_locked(db: Session, book_id: UUID, temp_path: str) -> dict:
    with book_lock.hold(book_id):
        return ingestion_service.ingest_upload(db, book_id=book_id, temp_path=temp_path)


def _reprocess_locked(db: Session, book_id: UUID, request: ReprocessRequest) -> dict:
    with book_lock.hold(book_id):
        return ingestion_service.reprocess(
            db,
            book_id=book_id,
            detect_chapters=request.detect_chapters,
            chunk_size=request.chunk_size,
            overlap=request.overlap
        )


@router.post(
    "/upload",
    response_model=IngestionResponse,
    status_code=201,
    dependencies=[Depends(ingestion_rate_limiter)]
)
async def upload_textbook(
    pdf: UploadFile = File(...),
    book_id: Optional[UUID] = Form(None),
    board_id: Optional[UUID] = Form(None),
    grade: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    edition: Optional[str] = Form(None),
    publisher: Optional[str] = Form(None),
    isbn: Optional[str] = Form(None),
    db: Session = Depends(get_db)
):
    """
    Upload a textbook PDF and run the full ingestion pipeline

    - Attaches to an existing book (book_id) or creates one
    - Stores the PDF under the upload directory
    - Extracts text, detects chapters, creates chunks
    - Temp file is always removed on failure
    """

    _validate_pdf(pdf)
    temp_path = await _save_upload(pdf)

    try:
        if book_id:
            book = book_service.get_book(db, book_id)
        else:
            if not board_id or not all(
                value and value.strip() for value in (grade, subject, title)
            ):
                raise HTTPException(
                    status_code=400,
                    detail="Board ID, grade, subject, and title are required for new book"
                )

            book = book_service.create_book(
                db,
                board_id=board_id,
                grade=grade,
                subject=subject,
                title=title,
                edition=edition,
                publisher=publisher,
                isbn=isbn
            )

        logger.info(f"Processing upload '{pdf.filename}' for book {book.id}")

        result = await run_in_threadpool(_ingest_locked, db, book.id, temp_path)

    except (HTTPException, IngestionError):
        db.rollback()
        _cleanup(temp_path)
        raise
    except Exception as e:
        logger.error(f"Failed to process textbook: {str(e)}")
        db.rollback()
        _cleanup(temp_path)
        raise HTTPException(status_code=500, detail=f"Failed to process textbook: {str(e)}")

    return IngestionResponse(
        message="Textbook processed successfully",
        book=ingestion_service.book_summary(book),
        processing=result
    )


@router.post(
    "/reprocess/{book_id}",
    response_model=IngestionResponse,
    dependencies=[Depends(ingestion_rate_limiter)]
)
async def reprocess_textbook(
    book_id: UUID,
    request: Optional[ReprocessRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Re-run the pipeline against the book's stored PDF

    Replaces the whole chunk set; existing chapters are kept and only
    new chapter numbers are added.
    """

    request = request or ReprocessRequest()

    try:
        result = await run_in_threadpool(_reprocess_locked, db, book_id, request)
    except IngestionError:
        raise
    except Exception as e:
        logger.error(f"Failed to re-process textbook {book_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to re-process textbook: {str(e)}")

    book = book_service.get_book(db, book_id)

    return IngestionResponse(
        message="Textbook re-processed successfully",
        book=ingestion_service.book_summary(book),
        processing=result
    )


@router.post(
    "/preview",
    response_model=PreviewResponse,
    dependencies=[Depends(ingestion_rate_limiter)]
)
async def preview_extraction(
    pdf: UploadFile = File(...),
    chunk_size: Optional[int] = Form(None, ge=100, le=2000),
    overlap: Optional[int] = Form(None, ge=0, le=200)
):
    """
    Preview extraction without saving anything

    Returns page/character/word counts, the first 10 detected chapters
    and the first 3 chunks truncated to 500 characters.
    """

    _validate_pdf(pdf)
    temp_path = await _save_upload(pdf)

    try:
        preview = await run_in_threadpool(ingestion_service.preview, temp_path, chunk_size, overlap)
    finally:
        _cleanup(temp_path)

    return PreviewResponse(preview=preview)


@router.get("/status/{book_id}", response_model=IngestionStatus)
async def get_ingestion_status(book_id: UUID, db: Session = Depends(get_db)):
    """
    Ingestion status for a book

    Returns:
    - Whether a source file is stored, with size and timestamps
    - Chapter and chunk counts
    - is_processed (chunks > 0) and has_chapters flags
    """
    return IngestionStatus(**ingestion_service.get_status(db, book_id))


@router.get("/jobs", response_model=List[IngestionJob])
async def get_ingestion_jobs(
    status: Optional[str] = Query(None, pattern="^(processed|pending)$"),
    board_id: Optional[UUID] = None,
    db: Session = Depends(get_db)
):
    """All books with their processing state, newest first"""
    jobs = ingestion_service.list_jobs(db, status=status, board_id=board_id)
    return [IngestionJob(**job) for job in jobs]
