"""Insight orchestration: retrieve tenant context and render insights.

Retrieval failures never reach the end user. They degrade to generic,
non-personalized insights flagged with ``fallback=True``.
"""

import random
from datetime import datetime, timezone
from typing import List, Optional

from flowchain_rag.errors import FlowchainError
from flowchain_rag.models import InsightResponse, SourceChunk
from flowchain_rag.retrieval.retriever import Retriever
from flowchain_rag.utils.logging import get_logger
from flowchain_rag.utils.metrics import get_metrics

from .analysis import (
    analyze_context,
    extract_key_insights,
    general_analysis,
    general_key_insights,
    generate_sales_suggestions,
)
from .formatter import format_insight_response

logger = get_logger(__name__)
metrics = get_metrics()

DEFAULT_QUERY = "Provide a summary of current supply chain metrics and recommendations"
UNAVAILABLE_MESSAGE = (
    "Unable to generate insights at this time. Please ensure your documents "
    "are properly uploaded and processed."
)


class InsightService:
    """Produces insight text for a tenant from its most relevant chunks."""

    def __init__(self, retriever: Retriever, rng: Optional[random.Random] = None) -> None:
        self.retriever = retriever
        self.rng = rng or random.Random()

    async def get_insights(self, tenant_id: str, query: Optional[str] = None) -> InsightResponse:
        """Return personalized insights, or generic ones when none can be built."""
        query = query or DEFAULT_QUERY
        try:
            chunks = await self.retriever.query(tenant_id, query)
        except FlowchainError as e:
            logger.warning("Insight retrieval failed for tenant={}: {}", tenant_id, e)
            metrics.record_error(type(e).__name__, {"tenant_id": tenant_id})
            return self._fallback(query, reason=type(e).__name__)

        if not chunks:
            logger.info("No documents for tenant={}, serving general insights", tenant_id)
            return self.general_insights(query)

        return InsightResponse(
            query=query,
            response=self.render(chunks),
            sources=[SourceChunk(text=c) for c in chunks],
            sales_suggestions=generate_sales_suggestions(chunks),
            generated_at=datetime.now(timezone.utc),
        )

    def render(self, chunks: List[str]) -> str:
        """Render markdown insights for retrieved chunks."""
        return format_insight_response(
            analyze_context(chunks),
            extract_key_insights(chunks),
            len(chunks),
            rng=self.rng,
        )

    def general_insights(self, query: str, fallback: bool = False) -> InsightResponse:
        """Generic insights covering every business area."""
        text = format_insight_response(general_analysis(), general_key_insights(), 0, rng=self.rng)
        return InsightResponse(
            query=query,
            response=text,
            sources=[],
            sales_suggestions=generate_sales_suggestions([]),
            fallback=fallback,
            generated_at=datetime.now(timezone.utc),
        )

    def _fallback(self, query: str, reason: str) -> InsightResponse:
        metrics.record_fallback(reason)
        try:
            return self.general_insights(query, fallback=True)
        except Exception as e:
            logger.exception("Fallback insights failed: {}", e)
            return InsightResponse(
                query=query,
                response=UNAVAILABLE_MESSAGE,
                fallback=True,
                generated_at=datetime.now(timezone.utc),
            )
