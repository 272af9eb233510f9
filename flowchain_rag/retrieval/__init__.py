"""Retrieval: embeddings, in-memory tenant store, and retriever logic."""

from .embeddings import EmbeddingService
from .retriever import Retriever
from .vector_store import TenantVectorStore, cosine_similarity

__all__ = ["EmbeddingService", "Retriever", "TenantVectorStore", "cosine_similarity"]
