"""Dependency injection for embedding service, tenant store, retriever, and insights.

Process-wide resources are created once and shared across requests.
"""

from functools import lru_cache

from fastapi import Depends

from flowchain_rag.config import settings
from flowchain_rag.insights.service import InsightService
from flowchain_rag.retrieval.embeddings import EmbeddingService
from flowchain_rag.retrieval.retriever import Retriever
from flowchain_rag.retrieval.vector_store import TenantVectorStore
from flowchain_rag.utils.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_embedding_service() -> EmbeddingService:
    """Singleton EmbeddingService configured from settings."""
    svc = EmbeddingService(
        model_name=settings.embedding_model_name,
        api_key=settings.openai_api_key,
        timeout_seconds=settings.embed_timeout_seconds,
        concurrency=settings.embed_concurrency,
    )
    logger.info("EmbeddingService singleton initialized: model={}", settings.embedding_model_name)
    return svc


@lru_cache(maxsize=1)
def get_vector_store() -> TenantVectorStore:
    """Singleton in-memory store shared by every request handler."""
    return TenantVectorStore()


def get_retriever(
    vector_store: TenantVectorStore = Depends(get_vector_store),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> Retriever:
    return Retriever(
        vector_store=vector_store,
        embedding_service=embedding_service,
        top_k=settings.top_k_results,
    )


def get_insight_service(retriever: Retriever = Depends(get_retriever)) -> InsightService:
    return InsightService(retriever=retriever)
