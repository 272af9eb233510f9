"""Utilities: logging and metrics."""

from flowchain_rag.utils.logging import (
    clear_request_context,
    get_logger,
    get_request_context,
    set_request_context,
    setup_logging,
)
from flowchain_rag.utils.metrics import (
    estimate_embedding_cost,
    get_metrics,
    MetricsCollector,
)

__all__ = [
    "clear_request_context",
    "estimate_embedding_cost",
    "get_logger",
    "get_metrics",
    "get_request_context",
    "MetricsCollector",
    "set_request_context",
    "setup_logging",
]
