"""API unit tests - route handlers with the store and embedding service overridden."""

import pytest

from flowchain_rag.api.dependencies import get_embedding_service
from flowchain_rag.main import app
from tests.fakes import FailingEmbeddingService, SlowEmbeddingService, keyword_vector


@pytest.fixture
def client(api_client):
    return api_client


@pytest.fixture
def acme_store(store):
    """Store preloaded with two chunks for tenant 'acme'."""
    chunks = [
        "Inventory at the north warehouse rose 18 percent this quarter.",
        "Sales of industrial parts grew 12 percent on repeat customer orders.",
    ]
    store.ingest("acme", chunks, [keyword_vector(c) for c in chunks])
    return store


def _upload(client, name: str, content: bytes, tenant_id: str = "acme"):
    return client.post(
        "/api/documents",
        files={"file": (name, content, "application/octet-stream")},
        data={"tenant_id": tenant_id},
    )


@pytest.mark.unit
class TestUploadEndpoint:
    """POST /api/documents."""

    def test_upload_txt_ingested(self, client, store, supply_chain_text):
        response = _upload(client, "review.txt", supply_chain_text.encode("utf-8"))
        assert response.status_code == 200
        data = response.json()
        assert data["path"] == "review.txt"
        assert data["status"] == "ingested"
        assert data["chunk_count"] == 1
        assert store.chunk_count("acme") == 1
        assert response.headers["X-Request-ID"]

    def test_upload_docx_ingested(self, client, store, sample_docx):
        response = _upload(client, "inventory_report.docx", sample_docx.read_bytes())
        assert response.status_code == 200
        assert response.json()["status"] == "ingested"
        assert store.chunk_count("acme") == 1

    def test_upload_corrupt_pdf_skipped(self, client, store):
        response = _upload(client, "broken.pdf", b"not a real pdf")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "skipped"
        assert data["path"] == "broken.pdf"
        assert data["error"]
        assert store.chunk_count("acme") == 0

    def test_upload_embedding_failure_reported(self, client, store, supply_chain_text):
        app.dependency_overrides[get_embedding_service] = lambda: FailingEmbeddingService()
        response = _upload(client, "review.txt", supply_chain_text.encode("utf-8"))
        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert store.chunk_count("acme") == 0

    def test_upload_error_names_client_filename(self, client, tmp_path):
        response = _upload(client, "broken.pdf", b"not a real pdf")
        error = response.json()["error"]
        assert "broken.pdf" in error
        assert str(tmp_path) not in error
        assert "uploads" not in error

    def test_saved_uploads_removed_after_ingestion(self, client, tmp_path, supply_chain_text):
        uploads = tmp_path / "uploads"
        assert _upload(client, "review.txt", supply_chain_text.encode("utf-8")).json()["status"] == "ingested"
        assert _upload(client, "broken.pdf", b"not a real pdf").json()["status"] == "skipped"
        assert list(uploads.iterdir()) == []

        app.dependency_overrides[get_embedding_service] = lambda: FailingEmbeddingService()
        assert _upload(client, "review.txt", supply_chain_text.encode("utf-8")).json()["status"] == "failed"
        assert list(uploads.iterdir()) == []

    def test_upload_invalid_extension(self, client):
        response = _upload(client, "notes.xyz", b"some content")
        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_upload_empty_file(self, client):
        response = _upload(client, "empty.txt", b"")
        assert response.status_code == 400
        assert response.json()["detail"] == "File is empty"

    def test_upload_missing_tenant(self, client):
        response = client.post(
            "/api/documents",
            files={"file": ("review.txt", b"Inventory rose.", "text/plain")},
        )
        assert response.status_code == 400


@pytest.mark.unit
class TestQueryEndpoint:
    """POST /api/query."""

    def test_query_returns_ranked_chunks(self, client, acme_store):
        response = client.post("/api/query", json={"tenant_id": "acme", "query": "sales and customer orders"})
        assert response.status_code == 200
        data = response.json()
        assert data["tenant_id"] == "acme"
        assert data["chunks"][0].startswith("Sales of industrial parts")
        assert len(data["chunks"]) == 2

    def test_query_top_k(self, client, acme_store):
        response = client.post("/api/query", json={"tenant_id": "acme", "query": "warehouse", "top_k": 1})
        assert response.json()["chunks"] == ["Inventory at the north warehouse rose 18 percent this quarter."]

    def test_query_unknown_tenant(self, client, acme_store):
        response = client.post("/api/query", json={"tenant_id": "globex", "query": "inventory"})
        assert response.status_code == 200
        assert response.json()["chunks"] == []

    def test_query_missing_tenant(self, client):
        response = client.post("/api/query", json={"query": "inventory"})
        assert response.status_code == 400

    def test_query_too_long(self, client):
        response = client.post("/api/query", json={"tenant_id": "acme", "query": "x" * 1001})
        assert response.status_code == 400

    def test_query_upstream_error(self, client, acme_store):
        app.dependency_overrides[get_embedding_service] = lambda: FailingEmbeddingService()
        response = client.post("/api/query", json={"tenant_id": "acme", "query": "inventory"})
        assert response.status_code == 502
        assert "provider unavailable" in response.json()["detail"]

    def test_query_upstream_timeout(self, client, acme_store):
        app.dependency_overrides[get_embedding_service] = lambda: SlowEmbeddingService(timeout_seconds=0.05)
        response = client.post("/api/query", json={"tenant_id": "acme", "query": "inventory"})
        assert response.status_code == 504
        assert "timed out" in response.json()["detail"]


@pytest.mark.unit
class TestInsightsEndpoint:
    """POST /api/analyze/ai-insights."""

    def test_personalized_insights(self, client, acme_store):
        response = client.post("/api/analyze/ai-insights", json={"tenant_id": "acme", "query": "How is inventory?"})
        assert response.status_code == 200
        data = response.json()
        assert data["fallback"] is False
        assert data["query"] == "How is inventory?"
        assert len(data["sources"]) == 2
        assert "**Analysis of 2 business documents reveals:**" in data["response"]
        assert data["generated_at"]

    def test_general_insights_without_documents(self, client):
        response = client.post("/api/analyze/ai-insights", json={"tenant_id": "new-tenant"})
        assert response.status_code == 200
        data = response.json()
        assert data["fallback"] is False
        assert data["sources"] == []
        assert "Data-Driven Supply Chain Intelligence" in data["response"]

    def test_fallback_on_upstream_error(self, client, acme_store):
        app.dependency_overrides[get_embedding_service] = lambda: FailingEmbeddingService()
        response = client.post("/api/analyze/ai-insights", json={"tenant_id": "acme"})
        assert response.status_code == 200
        data = response.json()
        assert data["fallback"] is True
        assert data["sources"] == []
        assert "## High-Impact Recommendations" in data["response"]


@pytest.mark.unit
class TestServiceEndpoints:
    """Health, stats and metrics."""

    def test_api_health(self, client, acme_store):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "components": {"vector_store": "ok", "tenants": 1}}

    def test_root_health_ok(self, client, acme_store):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["components"]["vector_store"]["chunk_count"] == 2
        assert data["components"]["embedding_service"] == {"status": "ok", "model": "keyword-test"}

    def test_root_health_degraded(self, client):
        app.dependency_overrides[get_embedding_service] = lambda: FailingEmbeddingService()
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["embedding_service"]["status"] == "error"

    def test_stats(self, client, acme_store):
        acme_store.ingest("globex", ["Globex supplier list."], [keyword_vector("supplier")])
        data = client.get("/api/stats").json()
        assert data == {
            "total_tenants": 2,
            "total_chunks": 3,
            "chunks_by_tenant": {"acme": 2, "globex": 1},
        }

    def test_metrics_endpoint(self, client, acme_store):
        client.post("/api/query", json={"tenant_id": "acme", "query": "inventory"})
        data = client.get("/metrics").json()
        assert data["total_queries_processed"] == 1
        assert data["total_api_requests"] >= 1
        assert "embedding_cost_estimate_usd" in data
