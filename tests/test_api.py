"""HTTP tests for the ingestion service using FastAPI's TestClient."""

import os
import uuid

import aiofiles
import pytest
from fastapi.testclient import TestClient

from textbook_ingestion.config import settings
from textbook_ingestion.utils.book_lock import book_lock

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _pdf_file(data: bytes, name: str = "maths.pdf"):
    return {"pdf": (name, data, "application/pdf")}


def _new_book_form(board_id) -> dict:
    return {
        "board_id": str(board_id),
        "grade": "5",
        "subject": "Mathematics",
        "title": "Maths Grade 5",
        "publisher": "Board Press",
    }


def _upload_new_book(client, board, pdf_bytes) -> dict:
    response = client.post(
        "/api/ingestion/upload", data=_new_book_form(board.id), files=_pdf_file(pdf_bytes)
    )
    assert response.status_code == 201, response.text
    return response.json()


def _temp_files(storage):
    return list(storage["temp_dir"].iterdir())


class _FullDiskFile:
    """Stands in for aiofiles.open on a disk that fills after the first bytes"""

    def __init__(self, path, mode):
        self.path = path
        self.mode = mode

    async def __aenter__(self):
        self.handle = open(self.path, self.mode)
        return self

    async def __aexit__(self, *exc_info):
        self.handle.close()

    async def write(self, data):
        self.handle.write(data[:16])
        raise OSError(28, "No space left on device")


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------


class TestServiceEndpoints:
    def test_health(self, client) -> None:
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["service"] == settings.APP_NAME

    def test_root(self, client) -> None:
        assert client.get("/").json()["docs"] == "/docs"


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_upload_creates_book_and_processes(self, client, board, sample_pdf_bytes, storage) -> None:
        body = _upload_new_book(client, board, sample_pdf_bytes)

        assert body["message"] == "Textbook processed successfully"
        assert body["book"]["title"] == "Maths Grade 5"
        assert body["book"]["board"]["name"] == "CBSE"
        assert body["processing"]["total_pages"] == 2
        assert body["processing"]["chapters_created"] == 2
        assert body["processing"]["chunks_created"] == 1

        book_id = body["book"]["id"]
        assert (storage["upload_dir"] / f"{book_id}.pdf").is_file()
        assert _temp_files(storage) == []

    def test_upload_to_existing_book(self, client, book, sample_pdf_bytes) -> None:
        response = client.post(
            "/api/ingestion/upload", data={"book_id": str(book.id)}, files=_pdf_file(sample_pdf_bytes)
        )

        assert response.status_code == 201
        assert response.json()["book"]["id"] == str(book.id)

    def test_missing_new_book_fields(self, client, board, sample_pdf_bytes, storage) -> None:
        form = _new_book_form(board.id)
        del form["title"]

        response = client.post("/api/ingestion/upload", data=form, files=_pdf_file(sample_pdf_bytes))

        assert response.status_code == 400
        assert response.json()["message"] == "Board ID, grade, subject, and title are required for new book"
        assert _temp_files(storage) == []

    def test_unknown_board(self, client, db, sample_pdf_bytes, storage) -> None:
        response = client.post(
            "/api/ingestion/upload", data=_new_book_form(uuid.uuid4()), files=_pdf_file(sample_pdf_bytes)
        )

        assert response.status_code == 400
        assert response.json()["error"] == "board_not_found"
        assert _temp_files(storage) == []

    def test_unknown_book(self, client, db, sample_pdf_bytes) -> None:
        response = client.post(
            "/api/ingestion/upload", data={"book_id": str(uuid.uuid4())}, files=_pdf_file(sample_pdf_bytes)
        )
        assert response.status_code == 404
        assert response.json()["error"] == "book_not_found"

    def test_not_a_pdf(self, client, book) -> None:
        response = client.post(
            "/api/ingestion/upload",
            data={"book_id": str(book.id)},
            files={"pdf": ("notes.txt", b"plain text", "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Only PDF files are allowed"

    def test_unreadable_pdf(self, client, book, storage) -> None:
        response = client.post(
            "/api/ingestion/upload",
            data={"book_id": str(book.id)},
            files=_pdf_file(b"definitely not a pdf"),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "document_unreadable"
        assert _temp_files(storage) == []

    def test_bad_reupload_keeps_processed_book(self, client, board, sample_pdf_bytes, storage) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]

        response = client.post(
            "/api/ingestion/upload", data={"book_id": book_id}, files=_pdf_file(b"garbage")
        )

        assert response.status_code == 422
        assert (storage["upload_dir"] / f"{book_id}.pdf").read_bytes() == sample_pdf_bytes
        assert client.post(f"/api/ingestion/reprocess/{book_id}").status_code == 200

    def test_too_large(self, client, book, sample_pdf_bytes, storage, monkeypatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)

        response = client.post(
            "/api/ingestion/upload", data={"book_id": str(book.id)}, files=_pdf_file(sample_pdf_bytes)
        )

        assert response.status_code == 413
        assert _temp_files(storage) == []

    @pytest.mark.parametrize("path", ["/api/ingestion/upload", "/api/ingestion/preview"])
    def test_failed_write_leaves_no_temp_file(
        self, client, book, sample_pdf_bytes, storage, monkeypatch, path
    ) -> None:
        monkeypatch.setattr(aiofiles, "open", _FullDiskFile)
        server_errors = TestClient(client.app, raise_server_exceptions=False)

        response = server_errors.post(
            path, data={"book_id": str(book.id)}, files=_pdf_file(sample_pdf_bytes)
        )

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert _temp_files(storage) == []


# ---------------------------------------------------------------------------
# Reprocess, status, jobs, preview
# ---------------------------------------------------------------------------


class TestReprocess:
    def test_reprocess_is_idempotent(self, client, board, sample_pdf_bytes) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]
        before = client.get(f"/api/content/chunks/book/{book_id}").json()["chunks"]

        response = client.post(f"/api/ingestion/reprocess/{book_id}")
        after = client.get(f"/api/content/chunks/book/{book_id}").json()["chunks"]

        assert response.status_code == 200
        assert response.json()["processing"]["chapters_created"] == 0
        assert [c["text"] for c in after] == [c["text"] for c in before]

    def test_reprocess_with_options(self, client, board, sample_pdf_bytes) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]

        response = client.post(
            f"/api/ingestion/reprocess/{book_id}",
            json={"chunk_size": 100, "overlap": 0, "detect_chapters": False},
        )

        assert response.status_code == 200
        assert response.json()["processing"]["chapters_detected"] == 0

    def test_reprocess_rejects_bad_chunk_size(self, client, book) -> None:
        response = client.post(f"/api/ingestion/reprocess/{book.id}", json={"chunk_size": 50})
        assert response.status_code == 422

    def test_reprocess_without_file(self, client, book) -> None:
        response = client.post(f"/api/ingestion/reprocess/{book.id}")

        assert response.status_code == 400
        assert response.json()["error"] == "source_file_missing"

    def test_reprocess_unknown_book(self, client, db) -> None:
        assert client.post(f"/api/ingestion/reprocess/{uuid.uuid4()}").status_code == 404

    def test_reprocess_while_locked(self, client, board, sample_pdf_bytes, monkeypatch) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]
        monkeypatch.setattr(settings, "BOOK_LOCK_WAIT", 0.05)

        with book_lock.hold(uuid.UUID(book_id)):
            response = client.post(f"/api/ingestion/reprocess/{book_id}")

        assert response.status_code == 409
        assert response.json()["error"] == "ingestion_in_progress"


class TestStatusAndJobs:
    def test_status(self, client, board, sample_pdf_bytes) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]

        body = client.get(f"/api/ingestion/status/{book_id}").json()

        assert body["book"]["has_file"] is True
        assert body["book"]["file_stats"]["size"] == len(sample_pdf_bytes)
        assert body["counts"] == {"chapters": 2, "chunks": 1}
        assert body["status"] == {"is_processed": True, "has_chapters": True}

    def test_status_unknown_book(self, client, db) -> None:
        assert client.get(f"/api/ingestion/status/{uuid.uuid4()}").status_code == 404

    def test_jobs(self, client, board, book, sample_pdf_bytes) -> None:
        processed_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]

        pending = client.get("/api/ingestion/jobs", params={"status": "pending"}).json()
        processed = client.get(
            "/api/ingestion/jobs", params={"status": "processed", "board_id": str(board.id)}
        ).json()

        assert [job["id"] for job in pending] == [str(book.id)]
        assert [job["id"] for job in processed] == [processed_id]
        assert client.get("/api/ingestion/jobs").status_code == 200
        assert client.get("/api/ingestion/jobs", params={"status": "done"}).status_code == 422


class TestPreview:
    def test_preview_persists_nothing(self, client, db, sample_pdf_bytes, storage) -> None:
        response = client.post("/api/ingestion/preview", files=_pdf_file(sample_pdf_bytes))

        assert response.status_code == 200
        preview = response.json()["preview"]
        assert preview["total_pages"] == 2
        assert [c["title"] for c in preview["chapters"]] == ["Numbers", "Shapes"]
        assert preview["sample_chunks"][0]["text"].endswith("...")
        assert _temp_files(storage) == []
        assert client.get("/api/ingestion/jobs").json() == []

    def test_preview_validates_overlap(self, client, db, sample_pdf_bytes) -> None:
        response = client.post(
            "/api/ingestion/preview", data={"overlap": "500"}, files=_pdf_file(sample_pdf_bytes)
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------


class TestBoardsAndBooks:
    def test_boards(self, client, db) -> None:
        created = client.post("/api/boards", json={"name": "ICSE"})
        duplicate = client.post("/api/boards", json={"name": "ICSE"})

        assert created.status_code == 201
        assert duplicate.status_code == 400
        assert [b["name"] for b in client.get("/api/boards").json()] == ["ICSE"]

    def test_books(self, client, book) -> None:
        assert [b["id"] for b in client.get("/api/books").json()] == [str(book.id)]
        assert client.get(f"/api/books/{book.id}").json()["title"] == "Maths Grade 5"
        assert client.get(f"/api/books/{uuid.uuid4()}").status_code == 404

    def test_delete_book_removes_everything(self, client, board, sample_pdf_bytes, storage) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]

        response = client.delete(f"/api/books/{book_id}")

        assert response.status_code == 200
        assert client.get(f"/api/books/{book_id}").status_code == 404
        assert client.get(f"/api/chapters/book/{book_id}").status_code == 404
        assert not os.path.exists(storage["upload_dir"] / f"{book_id}.pdf")


class TestChapters:
    def test_chapter_crud(self, client, book) -> None:
        created = client.post(
            "/api/chapters", json={"book_id": str(book.id), "number": 1, "title": "Numbers"}
        )
        assert created.status_code == 201
        chapter_id = created.json()["id"]

        duplicate = client.post(
            "/api/chapters", json={"book_id": str(book.id), "number": 1, "title": "Again"}
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["message"] == "Chapter 1 already exists for this book"

        updated = client.put(f"/api/chapters/{chapter_id}", json={"title": "Whole Numbers"})
        assert updated.json()["title"] == "Whole Numbers"

        listed = client.get(f"/api/chapters/book/{book.id}").json()
        assert [(c["number"], c["chunk_count"]) for c in listed] == [(1, 0)]

        assert client.delete(f"/api/chapters/{chapter_id}").status_code == 200
        assert client.get(f"/api/chapters/{chapter_id}").status_code == 404

    def test_chapter_rejects_number_zero(self, client, book) -> None:
        response = client.post(
            "/api/chapters", json={"book_id": str(book.id), "number": 0, "title": "Zero"}
        )
        assert response.status_code == 422

    def test_chapter_number_fits_integer_column(self, client, book) -> None:
        too_big = client.post(
            "/api/chapters", json={"book_id": str(book.id), "number": 2147483648, "title": "Overflow"}
        )
        assert too_big.status_code == 422

        created = client.post(
            "/api/chapters", json={"book_id": str(book.id), "number": 2147483647, "title": "Last"}
        )
        assert created.status_code == 201

        renumbered = client.put(f"/api/chapters/{created.json()['id']}", json={"number": 2147483648})
        assert renumbered.status_code == 422

    def test_chapter_detail_lists_chunks(self, client, board, sample_pdf_bytes) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]
        chapters = client.get(f"/api/chapters/book/{book_id}").json()

        detail = client.get(f"/api/chapters/{chapters[0]['id']}").json()

        assert detail["title"] == "Numbers"
        assert [chunk["chunk_index"] for chunk in detail["chunks"]] == [0]


class TestContent:
    def test_pagination(self, client, board, sample_pdf_bytes) -> None:
        book_id = _upload_new_book(client, board, sample_pdf_bytes)["book"]["id"]
        client.post(f"/api/ingestion/reprocess/{book_id}", json={"chunk_size": 100, "overlap": 0})

        first = client.get(f"/api/content/chunks/book/{book_id}", params={"limit": 1}).json()

        assert first["pagination"]["page"] == 1
        assert first["pagination"]["total"] == first["pagination"]["pages"] >= 2
        assert first["chunks"][0]["chunk_index"] == 0
        assert first["chunks"][0]["chapter"]["number"] == 1

        chunk_id = first["chunks"][0]["id"]
        assert client.get(f"/api/content/chunks/{chunk_id}").json()["chunk_index"] == 0

    def test_unknown_chunk(self, client, db) -> None:
        response = client.get(f"/api/content/chunks/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "chunk_not_found"

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}])
    def test_bad_paging(self, client, book, params) -> None:
        assert client.get(f"/api/content/chunks/book/{book.id}", params=params).status_code == 422
