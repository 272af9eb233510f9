"""Flowchain RAG: per-tenant document retrieval and supply chain insights."""

__version__ = "0.1.0"
