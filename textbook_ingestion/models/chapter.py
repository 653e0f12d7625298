"""
Chapter model - detected or declared subdivision of a book
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from sqlalchemy.orm import relationship
from textbook_ingestion.database import Base
import uuid


class Chapter(Base):
    """
    Chapters table - 1-based number unique within a book
    """
    __tablename__ = "chapters"
    __table_args__ = (
        UniqueConstraint("book_id", "number", name="uq_chapters_book_number"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    book_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    number = Column(Integer, nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    book = relationship("Book", back_populates="chapters")
    # No delete cascade: removing a chapter nulls chunk.chapter_id
    chunks = relationship(
        "ContentChunk",
        back_populates="chapter",
        passive_deletes=True,
        order_by="ContentChunk.chunk_index",
    )

    def __repr__(self):
        return f"<Chapter(book_id={self.book_id}, number={self.number}, title={self.title})>"
