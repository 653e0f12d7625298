"""
ContentChunk model - bounded span of a book's extracted text
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from textbook_ingestion.database import Base
import uuid


class ContentChunk(Base):
    """
    Content chunks table - replaced wholesale on every (re)ingestion run
    """
    __tablename__ = "content_chunks"
    __table_args__ = (
        UniqueConstraint("book_id", "chunk_index", name="uq_content_chunks_book_index"),
        Index("ix_content_chunks_book_chapter", "book_id", "chapter_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    book_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    chapter_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("chapters.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    text = Column(Text, nullable=False)
    chunk_index = Column(Integer, nullable=False)  # 0..N-1 within the book
    page_from = Column(Integer)
    page_to = Column(Integer)
    created_at = Column(DateTime, server_default=func.now())

    book = relationship("Book", back_populates="chunks")
    chapter = relationship("Chapter", back_populates="chunks")

    def __repr__(self):
        return f"<ContentChunk(book_id={self.book_id}, index={self.chunk_index}, chapter_id={self.chapter_id})>"
