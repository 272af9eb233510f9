"""Tests for flowchain_rag/config.py, flowchain_rag/errors.py and flowchain_rag/models.py."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from flowchain_rag.config import Settings, settings
from flowchain_rag.errors import (
    ExtractionError,
    FlowchainError,
    InvalidInputError,
    UpstreamError,
    UpstreamTimeoutError,
)
from flowchain_rag.models import (
    DocumentIngestResult,
    IngestReport,
    InsightRequest,
    InsightResponse,
    QueryRequest,
    SalesSuggestion,
)


@pytest.mark.unit
class TestConfig:
    """Verify flowchain_rag/config.py loads and validates correctly."""

    def test_settings_singleton(self):
        from flowchain_rag.config import settings as s2

        assert settings is s2

    def test_defaults(self, monkeypatch):
        for var in ("EMBEDDING_MODEL_NAME", "EMBED_CONCURRENCY", "TOP_K_RESULTS", "OPENAI_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        s = Settings(_env_file=None)
        assert s.openai_api_key == ""
        assert s.embedding_model_name == "text-embedding-3-small"
        assert s.embed_concurrency == 1
        assert s.embed_timeout_seconds == 30.0
        assert s.chunk_target_size == 800
        assert s.chunk_overlap_chars == 150
        assert s.min_chunk_chars == 50
        assert s.top_k_results == 5
        assert s.app_name == "Flowchain Insight Service"
        assert s.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("EMBED_CONCURRENCY", "4")
        monkeypatch.setenv("EMBEDDING_MODEL_NAME", "all-MiniLM-L6-v2")
        s = Settings(_env_file=None)
        assert s.embed_concurrency == 4
        assert s.embedding_model_name == "all-MiniLM-L6-v2"

    def test_placeholder_api_key_rejected(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "your_openai_key_here")
        with pytest.raises(ValidationError, match="placeholder"):
            Settings(_env_file=None)

    @pytest.mark.parametrize("field", ["EMBED_CONCURRENCY", "CHUNK_TARGET_SIZE", "TOP_K_RESULTS"])
    def test_non_positive_rejected(self, monkeypatch, field):
        monkeypatch.setenv(field, "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


@pytest.mark.unit
class TestErrors:
    def test_str_includes_details(self):
        err = FlowchainError("bad thing", {"tenant_id": "acme"})
        assert str(err) == "bad thing | Details: {'tenant_id': 'acme'}"
        assert str(FlowchainError("plain")) == "plain"

    def test_hierarchy(self):
        assert issubclass(InvalidInputError, ValueError)
        assert issubclass(ExtractionError, ValueError)
        assert issubclass(UpstreamTimeoutError, UpstreamError)
        assert not issubclass(UpstreamError, ValueError)

    def test_extraction_error_path(self):
        err = ExtractionError("/tmp/x.pdf", "Document not found")
        assert err.path == "/tmp/x.pdf"
        assert err.details["path"] == "/tmp/x.pdf"

    def test_retryable_flags(self):
        assert UpstreamError("x").retryable is False
        assert UpstreamTimeoutError("x").retryable is True


@pytest.mark.unit
class TestModels:
    """Verify flowchain_rag/models.py schemas work correctly."""

    def test_ingest_report_properties(self):
        report = IngestReport(
            tenant_id="acme",
            documents=[
                DocumentIngestResult(path="a.pdf", status="ingested", chunk_count=3),
                DocumentIngestResult(path="b.pdf", status="skipped", error="Document not found"),
                DocumentIngestResult(path="c.txt", status="failed", error="provider down"),
                DocumentIngestResult(path="d.docx", status="ingested", chunk_count=2),
            ],
        )
        assert report.total_chunks == 5
        assert [d.path for d in report.succeeded] == ["a.pdf", "d.docx"]
        assert [d.path for d in report.skipped] == ["b.pdf"]
        assert [d.path for d in report.failed] == ["c.txt"]

    def test_ingest_result_status_validated(self):
        with pytest.raises(ValidationError):
            DocumentIngestResult(path="a.pdf", status="done")

    def test_query_request_defaults(self):
        req = QueryRequest(tenant_id="acme", query="Which products are overstocked?")
        assert req.top_k == 5

    def test_query_request_max_length(self):
        with pytest.raises(ValueError):
            QueryRequest(tenant_id="acme", query="x" * 1001)

    @pytest.mark.parametrize("top_k", [0, 51])
    def test_query_request_top_k_bounds(self, top_k):
        with pytest.raises(ValidationError):
            QueryRequest(tenant_id="acme", query="stock", top_k=top_k)

    def test_query_request_requires_tenant(self):
        with pytest.raises(ValidationError):
            QueryRequest(tenant_id="", query="stock")

    def test_insight_request_optional_query(self):
        assert InsightRequest(tenant_id="acme").query is None

    def test_insight_response_roundtrip(self):
        resp = InsightResponse(
            query="How is inventory?",
            response="# GROWTH ACCELERATOR",
            sources=[{"text": "Inventory rose 18 percent."}],
            sales_suggestions=[
                SalesSuggestion(
                    type="pricing",
                    title="Competitive Pricing",
                    description="Monitor competitor pricing.",
                    impact="High",
                    effort="Medium",
                )
            ],
            generated_at=datetime(2025, 2, 13, 12, 0, 0),
        )
        data = resp.model_dump()
        assert data["fallback"] is False
        assert data["sources"][0]["text"] == "Inventory rose 18 percent."
        assert data["sales_suggestions"][0]["type"] == "pricing"
