"""
Board model - curriculum boards that own textbooks
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from textbook_ingestion.database import Base
import uuid


class Board(Base):
    """
    Boards table - e.g. CBSE, ICSE, a state board
    """
    __tablename__ = "boards"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    books = relationship("Book", back_populates="board")

    def __repr__(self):
        return f"<Board(id={self.id}, name={self.name})>"
