"""
Book model - one ingested textbook and its stored source file
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Uuid, func
from sqlalchemy.orm import relationship
from textbook_ingestion.database import Base
import uuid


class Book(Base):
    """
    Books table - textbook metadata; owns chapters and content chunks
    """
    __tablename__ = "books"
    __table_args__ = (
        Index("ix_books_board_grade_subject", "board_id", "grade", "subject"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    board_id = Column(Uuid(as_uuid=True), ForeignKey("boards.id"), nullable=False, index=True)
    grade = Column(String(20), nullable=False)
    subject = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    edition = Column(String(100))
    publisher = Column(String(255))
    isbn = Column(String(20))
    file_path = Column(String(500))  # relative to UPLOAD_DIR, set once stored
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    board = relationship("Board", back_populates="books")
    chapters = relationship(
        "Chapter",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="Chapter.number",
    )
    chunks = relationship(
        "ContentChunk",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="ContentChunk.chunk_index",
    )

    def __repr__(self):
        return f"<Book(id={self.id}, title={self.title}, grade={self.grade})>"
