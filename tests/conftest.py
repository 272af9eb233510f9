"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import patch

import pytest

from flowchain_rag.retrieval.vector_store import TenantVectorStore
from flowchain_rag.utils.metrics import get_metrics
from tests.fakes import KeywordEmbeddingService


# --- Sample documents ---


SUPPLY_CHAIN_TEXT = """Quarterly Supply Chain Review

Inventory levels at the north warehouse rose 18 percent this quarter. Dr. Patel noted that widget stock
now covers 45 days of demand, e.g. the premium widget line is overstocked.

Page 2 of 7

Sales of industrial parts grew 12 percent. Revenue from repeat customer orders reached a record high!
Supplier lead times improved by 9 days vs. the prior quarter. Is the cost of carrying excess stock justified?

The operations team plans to automate the reorder workflow to improve efficiency. Budget approval is pending.
© 2024 Flowchain Industries. All rights reserved.
"""


@pytest.fixture
def supply_chain_text() -> str:
    return SUPPLY_CHAIN_TEXT


@pytest.fixture
def long_text() -> str:
    """Forty distinct sentences of roughly 70 characters each."""
    return " ".join(
        f"Sentence number {i} describes warehouse shipment batch {i} in some detail." for i in range(40)
    )


@pytest.fixture
def sample_txt(tmp_path: Path) -> Path:
    path = tmp_path / "review.txt"
    path.write_text(SUPPLY_CHAIN_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def sample_docx(tmp_path: Path) -> Path:
    """DOCX with paragraphs and a table, built with python-docx."""
    from docx import Document

    path = tmp_path / "inventory_report.docx"
    doc = Document()
    doc.add_heading("Inventory Report", 0)
    doc.add_paragraph(
        "The central warehouse holds 1250 SKUs across four product categories. "
        "Inventory turnover improved to 6.8 times per year after the new supplier contracts."
    )
    doc.add_paragraph(
        "Sales of premium widgets increased while carrying cost fell to 18 percent of inventory value. "
        "The team expects revenue growth to continue into the next quarter."
    )
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Category"
    table.cell(0, 1).text = "Turnover"
    table.cell(1, 0).text = "Electronics"
    table.cell(1, 1).text = "8.2"
    doc.save(path)
    return path


# --- Retrieval fixtures ---


@pytest.fixture
def embedding_service() -> KeywordEmbeddingService:
    return KeywordEmbeddingService(timeout_seconds=5.0)


@pytest.fixture
def store() -> TenantVectorStore:
    return TenantVectorStore()


@pytest.fixture(autouse=True)
def reset_metrics():
    """Start every test with zeroed metrics."""
    get_metrics().reset()
    yield


# --- API client fixture ---


@pytest.fixture
def api_client(store, embedding_service, tmp_path):
    """TestClient with the shared store and embedding service overridden."""
    from fastapi.testclient import TestClient

    from flowchain_rag.api.dependencies import get_embedding_service, get_vector_store
    from flowchain_rag.main import app

    app.dependency_overrides[get_vector_store] = lambda: store
    app.dependency_overrides[get_embedding_service] = lambda: embedding_service
    with patch("flowchain_rag.api.routes.UPLOADS_DIR", tmp_path / "uploads"):
        yield TestClient(app)
    app.dependency_overrides.clear()
