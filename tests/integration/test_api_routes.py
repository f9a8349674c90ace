"""Integration tests for the HTTP surface (ingest, query, documents, errors)."""

import asyncio
from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import NullPool

from docrag.config import Settings
from docrag.db.engine import create_engine_for_url, create_session_factory
from docrag.db.models import Base
from docrag.docs.ingest import IngestionConfig, IngestionPipeline
from docrag.docs.retriever import RetrievalConfig, RetrievalEngine
from docrag.errors import ProviderTransportError, StorageError
from docrag.llm.client import DeterministicStubChatProvider
from docrag.llm.embeddings import HashingEmbeddingProvider
from docrag.main import create_app
from tests.fakes import FakeChatProvider, FakeEmbeddingProvider

DIM = 16


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def app(tmp_path) -> Iterator[FastAPI]:
    """App wired to a temp SQLite database and offline providers.

    The lifespan is not run; state is set up here instead.
    """
    settings = Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        openai_api_key=None,
        embedding_dim=DIM,
    )
    engine = create_engine_for_url(settings.database_url, poolclass=NullPool)
    asyncio.run(create_schema(engine))

    embedder = HashingEmbeddingProvider(DIM)
    app = create_app(settings)
    app.state.session_factory = create_session_factory(engine)
    app.state.provider_mode = "offline"
    app.state.ingestion_pipeline = IngestionPipeline(
        embedder, IngestionConfig.from_settings(settings)
    )
    app.state.retrieval_engine = RetrievalEngine(
        embedder, DeterministicStubChatProvider(), RetrievalConfig.from_settings(settings)
    )

    yield app

    asyncio.run(engine.dispose())


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)


def ingest(client: TestClient, name: str, text: str) -> dict:
    response = client.post("/ingest", json={"name": name, "text": text})
    assert response.status_code == 201, response.text
    return response.json()


class TestIngest:
    """Test POST /ingest."""

    def test_ingest_returns_created_document(self, client: TestClient) -> None:
        data = ingest(client, "Notes", "Short sentence.")

        assert data == {"documentId": 1, "chunkCount": 1, "failedOrdinals": []}

    def test_ingest_accepts_legacy_field_names(self, client: TestClient) -> None:
        response = client.post(
            "/ingest", json={"fileName": "legacy.txt", "content": "Old clients send this."}
        )

        assert response.status_code == 201
        document = client.get(f"/documents/{response.json()['documentId']}").json()
        assert document["name"] == "legacy.txt"

    @pytest.mark.parametrize(
        "payload",
        [
            {"text": "Missing name."},
            {"name": "Missing text"},
            {"name": "", "text": "Empty name."},
            {"name": "Doc", "text": ""},
        ],
    )
    def test_missing_fields_are_422(self, client: TestClient, payload: dict) -> None:
        response = client.post("/ingest", json=payload)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_text_without_sentences_is_400(self, client: TestClient) -> None:
        response = client.post("/ingest", json={"name": "Doc", "text": "no punctuation"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"
        assert client.get("/documents").json() == {"documents": []}

    def test_provider_failure_is_502_and_stores_nothing(
        self, app: FastAPI, client: TestClient
    ) -> None:
        embedder = FakeEmbeddingProvider(
            DIM, failures={"Will fail.": ProviderTransportError("connection reset by peer")}
        )
        app.state.ingestion_pipeline = IngestionPipeline(
            embedder, IngestionConfig(embedding_dim=DIM)
        )

        response = client.post("/ingest", json={"name": "Doc", "text": "Will fail."})

        assert response.status_code == 502
        body = response.json()
        assert body["error"]["code"] == "provider_unavailable"
        # Provider details stay in the logs
        assert "connection reset" not in body["error"]["message"]
        assert client.get("/documents").json() == {"documents": []}


class TestQuery:
    """Test POST /query."""

    def test_query_returns_answer_and_snippets(self, client: TestClient) -> None:
        ingest(client, "Geo", "Paris is in France.")

        response = client.post("/query", json={"question": "Where is Paris?"})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"answer", "contextSnippets"}
        assert data["contextSnippets"] == ["Paris is in France."]
        assert data["answer"].startswith("Stub answer for: Where is Paris?")

    def test_query_on_empty_store(self, client: TestClient) -> None:
        response = client.post("/query", json={"question": "Anything?"})

        assert response.status_code == 200
        assert response.json()["contextSnippets"] == []

    def test_empty_question_is_422(self, client: TestClient) -> None:
        response = client.post("/query", json={"question": ""})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_blank_question_is_400(self, client: TestClient) -> None:
        response = client.post("/query", json={"question": "   "})

        assert response.status_code == 400

    def test_empty_model_reply_is_placeholder(self, app: FastAPI, client: TestClient) -> None:
        app.state.retrieval_engine = RetrievalEngine(
            HashingEmbeddingProvider(DIM), FakeChatProvider(""), RetrievalConfig(embedding_dim=DIM)
        )

        response = client.post("/query", json={"question": "Hello?"})

        assert response.json()["answer"] == "No answer generated."


class TestDocuments:
    """Test /documents endpoints."""

    def test_list_newest_first(self, client: TestClient) -> None:
        first = ingest(client, "First", "One. Two.")["documentId"]
        second = ingest(client, "Second", "Three.")["documentId"]

        documents = client.get("/documents").json()["documents"]

        assert [document["id"] for document in documents] == [second, first]
        assert documents[1]["chunkCount"] == 1
        assert set(documents[0]) == {"id", "name", "createdAt", "chunkCount"}

    def test_get_document_chunks(self, client: TestClient) -> None:
        document_id = ingest(client, "Doc", "First sentence. Second sentence.")["documentId"]

        response = client.get(f"/documents/{document_id}/chunks")

        assert response.status_code == 200
        chunks = response.json()["chunks"]
        assert [chunk["ordinal"] for chunk in chunks] == [0]
        assert chunks[0]["content"] == "First sentence. Second sentence."
        assert "embedding" not in chunks[0]

    def test_delete_document(self, client: TestClient) -> None:
        document_id = ingest(client, "Doomed", "Gone soon.")["documentId"]

        response = client.delete(f"/documents/{document_id}")

        assert response.status_code == 200
        assert response.json()["id"] == document_id
        assert client.get(f"/documents/{document_id}").status_code == 404
        assert client.post("/query", json={"question": "Gone?"}).json()["contextSnippets"] == []

    @pytest.mark.parametrize("method", ["get", "delete"])
    def test_unknown_document_is_404(self, client: TestClient, method: str) -> None:
        response = client.request(method.upper(), "/documents/999")

        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "not_found", "message": "document 999 not found"}
        }

    def test_unknown_document_chunks_is_404(self, client: TestClient) -> None:
        assert client.get("/documents/999/chunks").status_code == 404

    @pytest.mark.parametrize("document_id", ["abc", "0", "-3"])
    def test_malformed_id_is_422(self, client: TestClient, document_id: str) -> None:
        response = client.get(f"/documents/{document_id}")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_storage_failure_is_500_without_details(
        self, app: FastAPI, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def broken_list_all(self: object) -> list:
            raise StorageError("relation documents does not exist")

        monkeypatch.setattr("docrag.db.documents.DocumentRepository.list_all", broken_list_all)

        response = client.get("/documents")

        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "storage_error", "message": "Storage operation failed"}
        }


def test_root_lists_endpoints(client: TestClient) -> None:
    data = client.get("/").json()

    assert data["endpoints"] == {"ingest": "/ingest", "query": "/query", "documents": "/documents"}
