"""Pydantic v2 models for ingestion reports, queries, and insight responses."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class DocumentIngestResult(BaseModel):
    """Outcome of ingesting one source document for a tenant."""

    path: str = Field(..., description="Path of the source document")
    status: Literal["ingested", "skipped", "failed"] = Field(
        ...,
        description="ingested: chunks stored; skipped: unreadable or no usable text; failed: embedding error",
    )
    chunk_count: int = Field(default=0, ge=0, description="Number of chunks stored")
    error: Optional[str] = Field(default=None, description="Error message when not ingested")


class IngestReport(BaseModel):
    """Per-document results of a batch ingestion."""

    tenant_id: str = Field(..., description="Tenant the documents were ingested for")
    documents: list[DocumentIngestResult] = Field(default_factory=list)

    @property
    def total_chunks(self) -> int:
        return sum(d.chunk_count for d in self.documents)

    @property
    def succeeded(self) -> list[DocumentIngestResult]:
        return [d for d in self.documents if d.status == "ingested"]

    @property
    def skipped(self) -> list[DocumentIngestResult]:
        return [d for d in self.documents if d.status == "skipped"]

    @property
    def failed(self) -> list[DocumentIngestResult]:
        return [d for d in self.documents if d.status == "failed"]


class QueryRequest(BaseModel):
    """Incoming chunk retrieval request."""

    tenant_id: str = Field(..., min_length=1, description="Tenant whose documents are searched")
    query: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Search text. Example: Which products are overstocked?",
    )
    top_k: int = Field(default=5, ge=1, le=50, description="Maximum number of chunks to return")


class QueryResponse(BaseModel):
    """Ranked chunk texts for a query, best first."""

    tenant_id: str
    chunks: list[str] = Field(default_factory=list)


class InsightRequest(BaseModel):
    """Request for AI insights over a tenant's documents."""

    tenant_id: str = Field(..., min_length=1)
    query: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Optional focus question; a supply-chain summary is used when omitted",
    )


class SourceChunk(BaseModel):
    """A retrieved chunk used as context for an insight response."""

    text: str


class SalesSuggestion(BaseModel):
    """A sales or marketing suggestion derived from the context."""

    type: str = Field(..., description="sales, marketing, customer or pricing")
    title: str
    description: str
    impact: str
    effort: str


class InsightResponse(BaseModel):
    """Formatted insight text with the chunks it was derived from."""

    query: str
    response: str = Field(..., description="Markdown-formatted insight text")
    sources: list[SourceChunk] = Field(default_factory=list)
    sales_suggestions: list[SalesSuggestion] = Field(default_factory=list)
    fallback: bool = Field(
        default=False,
        description="True when generic insights were served because retrieval failed",
    )
    generated_at: datetime = Field(..., description="Timestamp when the insights were generated")
