"""In-memory, per-tenant vector store with composite-score ranking."""

import math
import threading
from dataclasses import dataclass, field
from typing import Any, Sequence

from flowchain_rag.errors import InvalidInputError
from flowchain_rag.utils.logging import get_logger

logger = get_logger(__name__)

SIMILARITY_WEIGHT = 0.7
DIVERSITY_WEIGHT = 0.2
LENGTH_BONUS = 0.1
LENGTH_BONUS_MIN_CHARS = 200
DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors, 0.0 for zero-norm or mismatched inputs."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


@dataclass
class ScoredChunk:
    """Ranking signals for one stored chunk."""

    index: int
    text: str
    similarity: float
    diversity: float
    length_bonus: float

    @property
    def score(self) -> float:
        # diversity == 1 - similarity, so the net similarity weight is 0.5
        # TODO: measure diversity against already-selected chunks (MMR) instead of the query
        return (
            SIMILARITY_WEIGHT * self.similarity
            + DIVERSITY_WEIGHT * self.diversity
            + self.length_bonus
        )


@dataclass
class _TenantData:
    chunks: list[str] = field(default_factory=list)
    embeddings: list[list[float]] = field(default_factory=list)


class TenantVectorStore:
    """Append-only store of (chunk, embedding) pairs, isolated per tenant.

    One instance is created at process startup and shared by all request
    handlers. Searches are a linear scan over the tenant's chunks.
    """

    def __init__(self) -> None:
        self._tenants: dict[str, _TenantData] = {}
        self._lock = threading.Lock()
        logger.info("TenantVectorStore initialized")

    def ingest(
        self,
        tenant_id: str,
        chunks: Sequence[str],
        embeddings: Sequence[Sequence[float]],
    ) -> None:
        """Append chunks and their embeddings for a tenant.

        Args:
            tenant_id: Isolation key; the tenant entry is created on first ingest.
            chunks: Chunk texts in document order.
            embeddings: One vector per chunk, same order.

        Raises:
            InvalidInputError: If chunks and embeddings lengths differ.
        """
        if len(chunks) != len(embeddings):
            raise InvalidInputError(
                f"chunks length ({len(chunks)}) must equal embeddings length ({len(embeddings)})",
                {"tenant_id": tenant_id},
            )
        if not chunks:
            logger.warning("ingest called with no chunks for tenant={}", tenant_id)
            return
        with self._lock:
            data = self._tenants.setdefault(tenant_id, _TenantData())
            data.chunks.extend(chunks)
            data.embeddings.extend(list(e) for e in embeddings)
            total = len(data.chunks)
        logger.info("ingest: stored {} chunks for tenant={} (total {})", len(chunks), tenant_id, total)

    def score(self, tenant_id: str, query_embedding: Sequence[float]) -> list[ScoredChunk]:
        """Compute ranking signals for every stored chunk, best first.

        Ties keep insertion order.
        """
        with self._lock:
            data = self._tenants.get(tenant_id)
            if data is None:
                return []
            pairs = list(zip(data.chunks, data.embeddings))

        scored = []
        for i, (text, emb) in enumerate(pairs):
            similarity = cosine_similarity(query_embedding, emb)
            scored.append(
                ScoredChunk(
                    index=i,
                    text=text,
                    similarity=similarity,
                    diversity=1 - similarity,
                    length_bonus=LENGTH_BONUS if len(text) > LENGTH_BONUS_MIN_CHARS else 0.0,
                )
            )
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def search(
        self,
        tenant_id: str,
        query_embedding: Sequence[float],
        top_k: int = DEFAULT_TOP_K,
    ) -> list[str]:
        """Return the top_k chunk texts for a query embedding.

        Args:
            tenant_id: Tenant to search; unknown tenants yield [].
            query_embedding: Vector of the same dimension as stored embeddings.
                An all-zero vector scores every chunk with similarity 0.
            top_k: Maximum number of results.

        Returns:
            Chunk texts ordered by composite score, highest first.
        """
        if top_k <= 0:
            return []
        ranked = self.score(tenant_id, query_embedding)
        results = [s.text for s in ranked[:top_k]]
        logger.debug("search: tenant={} candidates={} returned={}", tenant_id, len(ranked), len(results))
        return results

    def tenant_ids(self) -> list[str]:
        with self._lock:
            return list(self._tenants)

    def chunk_count(self, tenant_id: str) -> int:
        with self._lock:
            data = self._tenants.get(tenant_id)
            return len(data.chunks) if data else 0

    def get_stats(self) -> dict[str, Any]:
        """Return tenant and chunk counts."""
        with self._lock:
            return {
                "tenant_count": len(self._tenants),
                "chunk_count": sum(len(d.chunks) for d in self._tenants.values()),
            }
