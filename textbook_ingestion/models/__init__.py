"""
Database models package
"""
from textbook_ingestion.models.board import Board
from textbook_ingestion.models.book import Book
from textbook_ingestion.models.chapter import Chapter
from textbook_ingestion.models.content_chunk import ContentChunk

__all__ = ["Board", "Book", "Chapter", "ContentChunk"]
