"""
Domain errors raised by the ingestion pipeline and record store

Each error carries the HTTP status the API layer answers with.
"""


class IngestionError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 500
    error = "ingestion_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DocumentUnreadable(IngestionError):
    """Document is not a parseable PDF or has no extractable text"""

    status_code = 422
    error = "document_unreadable"


class BookNotFound(IngestionError):
    status_code = 404
    error = "book_not_found"

    def __init__(self, book_id):
        super().__init__(f"Book not found: {book_id}")
        self.book_id = book_id


class BoardNotFound(IngestionError):
    status_code = 400
    error = "board_not_found"

    def __init__(self, board_id):
        super().__init__(f"Board not found: {board_id}")
        self.board_id = board_id


class ChapterNotFound(IngestionError):
    status_code = 404
    error = "chapter_not_found"

    def __init__(self, chapter_id):
        super().__init__(f"Chapter not found: {chapter_id}")


class ChunkNotFound(IngestionError):
    status_code = 404
    error = "chunk_not_found"

    def __init__(self, chunk_id):
        super().__init__(f"Chunk not found: {chunk_id}")


class SourceFileMissing(IngestionError):
    """Book has no stored PDF or the stored path no longer resolves"""

    status_code = 400
    error = "source_file_missing"


class DuplicateChapterNumber(IngestionError):
    status_code = 400
    error = "duplicate_chapter_number"

    def __init__(self, book_id, number: int):
        super().__init__(f"Chapter {number} already exists for this book")
        self.book_id = book_id
        self.number = number


class IngestionInProgress(IngestionError):
    """Another ingestion run holds the lock for this book"""

    status_code = 409
    error = "ingestion_in_progress"

    def __init__(self, book_id):
        super().__init__(f"Book {book_id} is already being processed. Try again later.")
        self.book_id = book_id


class DuplicateBoardName(IngestionError):
    status_code = 400
    error = "duplicate_board_name"

    def __init__(self, name: str):
        super().__init__(f"Board '{name}' already exists")
        self.name = name
