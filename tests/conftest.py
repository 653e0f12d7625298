"""Shared pytest fixtures for the textbook ingestion test suite."""

import os

# Settings are read at import time, so the environment must be set first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["INGESTION_RATE_LIMIT_PER_HOUR"] = "10000"

from typing import Dict, List, Optional

import fitz  # PyMuPDF
import pytest
from fastapi.testclient import TestClient

from textbook_ingestion.config import settings
from textbook_ingestion.database import Base, SessionLocal, engine
from textbook_ingestion.models import Board, Book
from textbook_ingestion.utils.rate_limiter import ingestion_rate_limiter


# ---------------------------------------------------------------------------
# PDF builders
# ---------------------------------------------------------------------------


def build_pdf(pages: List[str], metadata: Optional[Dict[str, str]] = None, **save_options) -> bytes:
    """Render each string as one page, one PDF text line per input line."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        y = 72
        for line in text.split("\n"):
            if line:
                page.insert_text((72, y), line, fontsize=11)
            y += 16
    if metadata:
        doc.set_metadata(metadata)
    data = doc.tobytes(**save_options)
    doc.close()
    return data


def chapter_page(number: int, title: str, topic: str, lines: int = 6) -> str:
    body = [f"{topic} sentence {i} keeps the reader busy with plain words." for i in range(lines)]
    return "\n".join([f"Chapter {number}: {title}", ""] + body)


SAMPLE_PAGES = [
    chapter_page(1, "Numbers", "Counting"),
    chapter_page(2, "Shapes", "Geometry"),
]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Two pages, one chapter heading per page."""
    return build_pdf(SAMPLE_PAGES, metadata={"title": "Maths Grade 5", "author": "Board Press"})


# ---------------------------------------------------------------------------
# Storage and database
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def storage(tmp_path, monkeypatch):
    """Point upload directories at a per-test temp dir."""
    upload_dir = tmp_path / "textbooks"
    temp_dir = tmp_path / "temp"
    upload_dir.mkdir()
    temp_dir.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    monkeypatch.setattr(settings, "TEMP_UPLOAD_DIR", str(temp_dir))
    return {"upload_dir": upload_dir, "temp_dir": temp_dir}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def board(db) -> Board:
    board = Board(name="CBSE", description="Central Board")
    db.add(board)
    db.commit()
    db.refresh(board)
    return board


@pytest.fixture
def book(db, board) -> Book:
    book = Book(board_id=board.id, grade="5", subject="Mathematics", title="Maths Grade 5")
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


@pytest.fixture
def stored_pdf(book, storage, sample_pdf_bytes) -> str:
    """Sample PDF written to the book's permanent location."""
    path = storage["upload_dir"] / f"{book.id}.pdf"
    path.write_bytes(sample_pdf_bytes)
    return str(path)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def client(db):
    from textbook_ingestion.main import app

    ingestion_rate_limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    ingestion_rate_limiter.reset()
