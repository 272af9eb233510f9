"""Observability metrics for the Flowchain insight service."""

from __future__ import annotations

import csv
import json
import threading
from pathlib import Path
from typing import Any

# OpenAI text-embedding-3-small, USD per 1M tokens
OPENAI_EMBEDDING_COST_PER_1M = 0.02
# ~4 chars per token for English text
CHARS_PER_TOKEN = 4


class MetricsCollector:
    """Collects and aggregates observability metrics. Singleton pattern."""

    _instance: MetricsCollector | None = None
    _lock = threading.Lock()

    def __new__(cls) -> MetricsCollector:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize metrics storage. Skip if already initialized (singleton)."""
        if getattr(self, "_initialized", False):
            return
        self._lock = threading.Lock()
        self.reset()
        self._initialized = True

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            self._documents_ingested: int = 0
            self._chunks_ingested: int = 0
            self._queries_processed: int = 0
            self._embedding_calls: int = 0
            self._embedded_chars: int = 0
            self._api_requests: int = 0
            self._errors: int = 0
            self._fallbacks: int = 0
            self._ingestion_durations: list[float] = []
            self._retrieval_durations: list[float] = []
            self._embedding_durations: list[float] = []
            self._api_durations: list[float] = []
            self._errors_by_type: dict[str, int] = {}

    def record_ingestion(self, tenant_id: str, duration: float, chunk_count: int) -> None:
        """Record one successfully ingested document."""
        with self._lock:
            self._documents_ingested += 1
            self._chunks_ingested += chunk_count
            self._ingestion_durations.append(duration)

    def record_retrieval(self, tenant_id: str, duration: float, chunks_returned: int) -> None:
        """Record one retrieval (query embedding + store search)."""
        with self._lock:
            self._queries_processed += 1
            self._retrieval_durations.append(duration)

    def record_embedding(self, text_count: int, char_count: int, duration: float) -> None:
        """Record one provider call for ``text_count`` texts."""
        with self._lock:
            self._embedding_calls += 1
            self._embedded_chars += char_count
            self._embedding_durations.append(duration)

    def record_fallback(self, reason: str) -> None:
        """Record that generic insights were served instead of personalized ones."""
        with self._lock:
            self._fallbacks += 1

    def record_api_request(self, endpoint: str, status_code: int, duration: float) -> None:
        """Record API request metrics."""
        with self._lock:
            self._api_requests += 1
            self._api_durations.append(duration)
            if status_code >= 400:
                self._errors += 1

    def record_error(self, error_type: str, context: dict[str, Any] | None = None) -> None:
        """Record an error with optional context."""
        with self._lock:
            self._errors += 1
            self._errors_by_type[error_type] = self._errors_by_type.get(error_type, 0) + 1

    def get_metrics_summary(self) -> dict[str, Any]:
        """Return aggregated metrics summary."""
        with self._lock:
            total_requests = self._api_requests + self._queries_processed
            error_rate = self._errors / total_requests if total_requests > 0 else 0.0
            estimated_tokens = self._embedded_chars // CHARS_PER_TOKEN
            return {
                "total_documents_ingested": self._documents_ingested,
                "total_chunks_ingested": self._chunks_ingested,
                "total_queries_processed": self._queries_processed,
                "total_embedding_calls": self._embedding_calls,
                "average_ingestion_time_seconds": round(_mean(self._ingestion_durations), 4),
                "average_retrieval_time_seconds": round(_mean(self._retrieval_durations), 4),
                "average_embedding_time_seconds": round(_mean(self._embedding_durations), 4),
                "estimated_embedding_tokens": estimated_tokens,
                "embedding_cost_estimate_usd": round(estimate_embedding_cost(estimated_tokens), 6),
                "total_fallbacks": self._fallbacks,
                "error_rate": round(error_rate, 4),
                "total_errors": self._errors,
                "total_api_requests": self._api_requests,
                "errors_by_type": dict(self._errors_by_type),
            }

    def export_to_file(self, filepath: str) -> None:
        """Save metrics summary to JSON or CSV file."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        summary = self.get_metrics_summary()

        if path.suffix.lower() == ".csv":
            with open(path, "w", newline="") as f:
                writer = csv.writer(f)
                for k, v in summary.items():
                    if isinstance(v, dict):
                        writer.writerow([k, json.dumps(v)])
                    else:
                        writer.writerow([k, v])
        else:
            with open(path, "w") as f:
                json.dump(summary, f, indent=2)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def get_metrics() -> MetricsCollector:
    """Return the global singleton MetricsCollector."""
    return MetricsCollector()


def estimate_embedding_cost(token_count: int) -> float:
    """Estimate cost for OpenAI embeddings ($0.02/1M tokens)."""
    return (token_count / 1_000_000) * OPENAI_EMBEDDING_COST_PER_1M
