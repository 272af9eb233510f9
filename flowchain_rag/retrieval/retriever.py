"""Query-time retrieval: embed the query and rank a tenant's chunks."""

import time
from typing import List, Optional

from flowchain_rag.config import settings
from flowchain_rag.utils.logging import get_logger
from flowchain_rag.utils.metrics import get_metrics

from .embeddings import EmbeddingService
from .vector_store import TenantVectorStore

logger = get_logger(__name__)
metrics = get_metrics()


class Retriever:
    """Retrieves the most relevant chunks of a tenant's documents for a query."""

    def __init__(
        self,
        vector_store: TenantVectorStore,
        embedding_service: EmbeddingService,
        top_k: Optional[int] = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            vector_store: Shared TenantVectorStore.
            embedding_service: Service used to embed query text.
            top_k: Default number of results. Uses settings.top_k_results if None.
        """
        self.vector_store = vector_store
        self.embedding_service = embedding_service
        self.top_k = top_k if top_k is not None else settings.top_k_results

    async def query(
        self,
        tenant_id: str,
        query_text: str,
        top_k: Optional[int] = None,
    ) -> List[str]:
        """Return up to top_k chunk texts for the query, best first.

        A tenant with no stored chunks yields [] without calling the
        embedding provider.

        Raises:
            UpstreamError: If embedding the query fails.
        """
        k = top_k if top_k is not None else self.top_k
        if self.vector_store.chunk_count(tenant_id) == 0:
            logger.info("query: tenant={} has no documents", tenant_id)
            metrics.record_retrieval(tenant_id=tenant_id, duration=0.0, chunks_returned=0)
            return []

        t0 = time.perf_counter()
        query_embedding = await self.embedding_service.aembed_text(query_text)
        chunks = self.vector_store.search(tenant_id, query_embedding, top_k=k)
        elapsed = time.perf_counter() - t0

        logger.info(
            "query: {} chunks in {:.3f}s (tenant={}, query='{}')",
            len(chunks),
            elapsed,
            tenant_id,
            query_text[:50],
        )
        metrics.record_retrieval(tenant_id=tenant_id, duration=elapsed, chunks_returned=len(chunks))
        return chunks
