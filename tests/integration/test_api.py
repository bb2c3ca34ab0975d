"""Integration tests for FastAPI API endpoints using TestClient.

The app is built through ``create_app`` with prebuilt components: the real
SQLite store, file storage, PDF processor and chunker, plus the mock
embedding and LLM providers from conftest.  ``BackgroundTasks`` run before
TestClient returns, so an uploaded document is already processed when the
upload call completes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.api.auth import StaticTokenAuthorizationGate
from src.config.settings import Settings
from src.main import create_app
from src.providers.document_store.sqlite_document_store import SQLiteDocumentStore
from src.providers.storage.local_file_storage import LocalFileStorage
from src.services.chat_service import ChatService
from src.services.document_service import DocumentService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.pdf_processor import PDFProcessor
from src.services.retrieval_service import RetrievalService

_ADMIN = {"Authorization": "Bearer admin-token"}
_USER = {"Authorization": "Bearer user-token"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings() -> Settings:
    return Settings(
        openai_api_key="",
        admin_api_token="admin-token",
        user_api_token="user-token",
        cors_origins=["*"],
    )


def _components(
    tmp_path: Path,
    embedding_provider,
    llm_provider,
    *,
    max_upload_size: int = 5 * 1024 * 1024,
    with_embeddings: bool = True,
) -> dict[str, Any]:
    store = SQLiteDocumentStore(db_path=tmp_path / "api.db")
    file_storage = LocalFileStorage(upload_dir=tmp_path / "uploads")

    ingestion = None
    retrieval = None
    if with_embeddings:
        ingestion = IngestionService(
            chunker=TextChunker(chunk_size=100, chunk_overlap=20),
            pdf_processor=PDFProcessor(),
            embedding_provider=embedding_provider,
            document_store=store,
            file_storage=file_storage,
            max_file_size=max_upload_size,
        )
        retrieval = RetrievalService(embedding_provider, store)

    return {
        "document_store": store,
        "document_service": DocumentService(document_store=store, file_storage=file_storage),
        "ingestion_service": ingestion,
        "retrieval_service": retrieval,
        "chat_service": ChatService(
            llm_provider,
            retrieval_service=retrieval,
            chat_config={"system_prompt": "You are DEC Assistant."},
        ),
        "auth_gate": StaticTokenAuthorizationGate(
            admin_token="admin-token", user_token="user-token"
        ),
        "max_upload_size": max_upload_size,
    }


@pytest.fixture
def client(tmp_path: Path, mock_embedding_provider, mock_llm_provider):
    app = create_app(
        app_settings=_settings(),
        components=_components(tmp_path, mock_embedding_provider, mock_llm_provider),
    )
    with TestClient(app) as test_client:
        yield test_client


def _upload(client: TestClient, data: bytes, **form: str):
    return client.post(
        "/api/v1/documents/upload",
        files={"file": ("ethics.pdf", data, "application/pdf")},
        data=form,
        headers=_ADMIN,
    )


# ======================================================================
# Upload
# ======================================================================


class TestUpload:
    def test_upload_returns_201_and_processes_in_background(
        self, client: TestClient, sample_pdf_bytes: bytes
    ) -> None:
        response = _upload(client, sample_pdf_bytes, title="Ethics", description="Rules")

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Document uploaded successfully. Processing started in background."
        assert body["document"]["status"] == "uploaded"
        assert body["document"]["title"] == "Ethics"
        assert body["document"]["file_size"] == len(sample_pdf_bytes)

        detail = client.get(f"/api/v1/documents/{body['document']['id']}", headers=_ADMIN).json()
        assert detail["status"] == "processed"
        assert detail["is_processed"] is True
        assert detail["total_pages"] == 2

    def test_wrong_content_type_is_415(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("notes.txt", b"plain text", "text/plain")},
            headers=_ADMIN,
        )

        assert response.status_code == 415
        assert client.get("/api/v1/documents", headers=_ADMIN).json() == []

    def test_oversized_upload_is_413(
        self, tmp_path: Path, mock_embedding_provider, mock_llm_provider, sample_pdf_bytes: bytes
    ) -> None:
        app = create_app(
            app_settings=_settings(),
            components=_components(
                tmp_path, mock_embedding_provider, mock_llm_provider, max_upload_size=100
            ),
        )
        with TestClient(app) as small_client:
            response = _upload(small_client, sample_pdf_bytes)
            assert response.status_code == 413
            assert small_client.get("/api/v1/documents", headers=_ADMIN).json() == []

    def test_empty_upload_is_400(self, client: TestClient) -> None:
        response = _upload(client, b"")
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_upload_requires_admin(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        response = client.post(
            "/api/v1/documents/upload",
            files={"file": ("ethics.pdf", sample_pdf_bytes, "application/pdf")},
            headers=_USER,
        )
        assert response.status_code == 403

    def test_upload_without_embeddings_is_503(
        self, tmp_path: Path, mock_embedding_provider, mock_llm_provider, sample_pdf_bytes: bytes
    ) -> None:
        app = create_app(
            app_settings=_settings(),
            components=_components(
                tmp_path, mock_embedding_provider, mock_llm_provider, with_embeddings=False
            ),
        )
        with TestClient(app) as degraded:
            assert _upload(degraded, sample_pdf_bytes).status_code == 503
            assert degraded.get("/api/v1/documents", headers=_ADMIN).status_code == 200


# ======================================================================
# Document management
# ======================================================================


class TestDocuments:
    def test_list_and_detail(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        doc_id = _upload(client, sample_pdf_bytes).json()["document"]["id"]

        listed = client.get("/api/v1/documents", headers=_ADMIN).json()
        assert [doc["id"] for doc in listed] == [doc_id]
        assert "chunks" not in listed[0]

        detail = client.get(f"/api/v1/documents/{doc_id}", headers=_ADMIN).json()
        assert [chunk["chunk_index"] for chunk in detail["chunks"]] == list(
            range(detail["total_chunks"])
        )
        assert all(chunk["has_embedding"] for chunk in detail["chunks"])
        assert all("embedding" not in chunk for chunk in detail["chunks"])

    def test_detail_missing_is_404(self, client: TestClient) -> None:
        response = client.get("/api/v1/documents/nope", headers=_ADMIN)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_patch_updates_title_only(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        doc_id = _upload(client, sample_pdf_bytes, description="Keep").json()["document"]["id"]

        response = client.patch(
            f"/api/v1/documents/{doc_id}", json={"title": "Renamed"}, headers=_ADMIN
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["description"] == "Keep"

    def test_patch_null_clears_field(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        doc_id = _upload(
            client, sample_pdf_bytes, title="Ethics", description="Keep"
        ).json()["document"]["id"]

        response = client.patch(
            f"/api/v1/documents/{doc_id}", json={"title": None}, headers=_ADMIN
        )

        assert response.status_code == 200
        assert response.json()["title"] is None
        assert response.json()["description"] == "Keep"
        listing = client.get("/api/v1/documents", headers=_ADMIN).json()
        assert listing[0]["title"] is None

    def test_patch_missing_is_404(self, client: TestClient) -> None:
        response = client.patch("/api/v1/documents/nope", json={"title": "x"}, headers=_ADMIN)
        assert response.status_code == 404

    def test_delete_removes_document_and_search_hits(
        self, client: TestClient, sample_pdf_bytes: bytes
    ) -> None:
        doc_id = _upload(client, sample_pdf_bytes).json()["document"]["id"]

        response = client.delete(f"/api/v1/documents/{doc_id}", headers=_ADMIN)

        assert response.status_code == 200
        assert response.json() == {"id": doc_id, "deleted": True}
        assert client.get(f"/api/v1/documents/{doc_id}", headers=_ADMIN).status_code == 404
        search = client.get(
            "/api/v1/documents/search", params={"query": "Professional secrecy"}, headers=_ADMIN
        ).json()
        assert search["results"] == []

    def test_delete_missing_is_404(self, client: TestClient) -> None:
        assert client.delete("/api/v1/documents/nope", headers=_ADMIN).status_code == 404

    def test_reprocess(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        uploaded = _upload(client, sample_pdf_bytes).json()["document"]
        first = client.get(f"/api/v1/documents/{uploaded['id']}", headers=_ADMIN).json()

        response = client.post(f"/api/v1/documents/{uploaded['id']}/reprocess", headers=_ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["chunks_created"] == first["total_chunks"]
        stats = client.get("/api/v1/documents/stats", headers=_ADMIN).json()
        assert stats["total_chunks"] == first["total_chunks"]

    def test_reprocess_missing_is_404(self, client: TestClient) -> None:
        assert client.post("/api/v1/documents/nope/reprocess", headers=_ADMIN).status_code == 404

    def test_stats(self, client: TestClient, sample_pdf_bytes: bytes) -> None:
        _upload(client, sample_pdf_bytes)

        stats = client.get("/api/v1/documents/stats", headers=_ADMIN).json()

        assert stats["total_documents"] == 1
        assert stats["processed_documents"] == 1
        assert stats["pending_documents"] == 0
        assert stats["total_size_bytes"] == len(sample_pdf_bytes)
        assert stats["total_size_mb"] == f"{len(sample_pdf_bytes) / (1024 * 1024):.2f}"

    def test_document_routes_require_admin(self, client: TestClient) -> None:
        assert client.get("/api/v1/documents").status_code == 401
        assert client.get("/api/v1/documents/stats", headers=_USER).status_code == 403


# ======================================================================
# Search
# ======================================================================


class TestSearch:
    def test_search_returns_ranked_results(
        self, client: TestClient, sample_pdf_bytes: bytes
    ) -> None:
        doc_id = _upload(client, sample_pdf_bytes, title="Ethics").json()["document"]["id"]
        chunks = client.get(f"/api/v1/documents/{doc_id}", headers=_ADMIN).json()["chunks"]

        response = client.get(
            "/api/v1/documents/search",
            params={"query": chunks[0]["content"], "limit": 2},
            headers=_ADMIN,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["query"] == chunks[0]["content"]
        assert len(body["results"]) == 2
        assert body["results"][0]["chunk_id"] == chunks[0]["id"]
        assert body["results"][0]["source"] == "Ethics"
        assert body["results"][0]["score"] >= body["results"][1]["score"]

    @pytest.mark.parametrize("limit", [0, 21])
    def test_limit_out_of_range_is_422(self, client: TestClient, limit: int) -> None:
        response = client.get(
            "/api/v1/documents/search", params={"query": "x", "limit": limit}, headers=_ADMIN
        )
        assert response.status_code == 422

    def test_missing_query_is_422(self, client: TestClient) -> None:
        assert client.get("/api/v1/documents/search", headers=_ADMIN).status_code == 422

    def test_blank_query_is_400(self, client: TestClient) -> None:
        response = client.get(
            "/api/v1/documents/search", params={"query": "   "}, headers=_ADMIN
        )
        assert response.status_code == 400


# ======================================================================
# Chat
# ======================================================================


class TestChat:
    def test_chat_reply(self, client: TestClient, mock_llm_provider) -> None:
        response = client.post(
            "/api/v1/chatbot/chat",
            json={
                "message": "What is professional secrecy?",
                "conversation_history": [{"role": "user", "content": "Hello"}],
            },
            headers=_USER,
        )

        assert response.status_code == 200
        assert response.json() == {"response": "Mock assistant reply.", "success": True}
        sent = mock_llm_provider.calls[-1]
        assert sent[0]["role"] == "system"
        assert sent[-1] == {"role": "user", "content": "What is professional secrecy?"}

    def test_chat_grounded_on_uploaded_document(
        self, client: TestClient, mock_llm_provider, sample_pdf_bytes: bytes
    ) -> None:
        doc_id = _upload(client, sample_pdf_bytes, title="Ethics").json()["document"]["id"]
        chunk = client.get(f"/api/v1/documents/{doc_id}", headers=_ADMIN).json()["chunks"][0]

        client.post("/api/v1/chatbot/chat", json={"message": chunk["content"]}, headers=_USER)

        system_prompt = mock_llm_provider.calls[-1][0]["content"]
        assert "INFORMATION FROM REFERENCE DOCUMENTS" in system_prompt
        assert "[Source 1: Ethics" in system_prompt

    def test_chat_failure_returns_fallback(self, client: TestClient, mock_llm_provider) -> None:
        mock_llm_provider.fail = True

        response = client.post("/api/v1/chatbot/chat", json={"message": "Hi"}, headers=_USER)

        assert response.status_code == 200
        assert response.json()["success"] is False

    def test_chat_validates_message(self, client: TestClient) -> None:
        assert client.post("/api/v1/chatbot/chat", json={"message": ""}, headers=_USER).status_code == 422
        assert (
            client.post("/api/v1/chatbot/chat", json={"message": "x" * 4001}, headers=_USER).status_code
            == 422
        )

    def test_chat_requires_token(self, client: TestClient) -> None:
        assert client.post("/api/v1/chatbot/chat", json={"message": "Hi"}).status_code == 401

    def test_stream(self, client: TestClient) -> None:
        response = client.post("/api/v1/chatbot/stream", json={"message": "Hi"}, headers=_USER)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        frames = [line[len("data: "):] for line in response.text.split("\n\n") if line]
        events = [json.loads(frame) for frame in frames]
        assert events[-1] == {"done": True}
        assert "".join(e["content"] for e in events[:-1]) == "Mock assistant reply."

    def test_stream_error_event(self, client: TestClient, mock_llm_provider) -> None:
        mock_llm_provider.fail = True

        response = client.post("/api/v1/chatbot/stream", json={"message": "Hi"}, headers=_USER)

        events = [json.loads(line[len("data: "):]) for line in response.text.split("\n\n") if line]
        assert list(events[-1]) == ["error"]


# ======================================================================
# Health
# ======================================================================


class TestHealth:
    def test_health_needs_no_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["components"] == {
            "document_store": True,
            "ingestion": True,
            "retrieval": True,
            "chat": True,
        }

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_request_id_is_generated(self, client: TestClient) -> None:
        response = client.get("/api/v1/health")
        assert len(response.headers["x-request-id"]) == 32
