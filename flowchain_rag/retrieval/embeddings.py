"""Embedding generation for vector search.

Supports OpenAI text-embedding-3-small/-large and local sentence-transformers
(all-MiniLM-L6-v2). Provider failures surface as UpstreamError; the service
never retries.
"""

import asyncio
import hashlib
import time
from typing import Optional

from flowchain_rag.errors import UpstreamError, UpstreamTimeoutError
from flowchain_rag.utils.logging import get_logger
from flowchain_rag.utils.metrics import get_metrics

logger = get_logger(__name__)
metrics = get_metrics()

OPENAI_MODEL = "text-embedding-3-small"
OPENAI_MODELS = ("text-embedding-3-small", "text-embedding-3-large")
LOCAL_MODEL = "all-MiniLM-L6-v2"
BATCH_SIZE = 100
DEFAULT_TIMEOUT_SECONDS = 30.0


class EmbeddingService:
    """Generate text embeddings via OpenAI or local sentence-transformers."""

    def __init__(
        self,
        model_name: str,
        api_key: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        concurrency: int = 1,
    ) -> None:
        """Initialize the embedding service.

        Args:
            model_name: An OpenAI embedding model or a sentence-transformers model name.
            api_key: OpenAI API key. Ignored for local models.
            timeout_seconds: Per-call timeout applied by the async methods.
            concurrency: Default number of in-flight calls for aembed_many.
                1 embeds strictly one text at a time.
        """
        self.model_name = model_name
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.concurrency = max(1, concurrency)
        self._client = None
        self._local_model = None
        self._cache: dict[str, list[float]] = {}
        self._is_openai = model_name.lower() in OPENAI_MODELS
        logger.info(
            "EmbeddingService initialized: model={}, provider={}, concurrency={}",
            model_name,
            "openai" if self._is_openai else "local",
            self.concurrency,
        )

    def _get_client(self):
        """Lazy-create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            if not self.api_key:
                raise UpstreamError("OPENAI_API_KEY is required for OpenAI embeddings")
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _get_local_model(self):
        """Lazy-load sentence-transformers model."""
        if self._local_model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise UpstreamError(
                    "sentence-transformers is required for local embeddings. "
                    "Install with: pip install sentence-transformers"
                ) from e
            self._local_model = SentenceTransformer(self.model_name)
            logger.info("Loaded local embedding model: {}", self.model_name)
        return self._local_model

    def _cache_key(self, text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    def _embed_openai(self, texts: list[str]) -> list[list[float]]:
        client = self._get_client()
        embeddings: list[list[float]] = []
        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i : i + BATCH_SIZE]
            resp = client.embeddings.create(
                model=self.model_name,
                input=batch,
                encoding_format="float",
            )
            embeddings.extend(e.embedding for e in resp.data)
            tokens = resp.usage.total_tokens if resp.usage else 0
            logger.debug("OpenAI embedding batch {}-{}: {} tokens", i, i + len(batch), tokens)
        return embeddings

    def _embed_local(self, texts: list[str]) -> list[list[float]]:
        model = self._get_local_model()
        embeddings: list[list[float]] = []
        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i : i + BATCH_SIZE]
            vectors = model.encode(batch, convert_to_numpy=False)
            embeddings.extend([float(x) for x in v] for v in vectors)
        return embeddings

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts, one vector per input.

        Raises:
            UpstreamError: On provider failure or a wrong number of vectors.
        """
        if not texts:
            return []
        normalized = [t.strip() if t and t.strip() else " " for t in texts]
        t0 = time.perf_counter()
        try:
            if self._is_openai:
                embeddings = self._embed_openai(normalized)
            else:
                embeddings = self._embed_local(normalized)
        except UpstreamError:
            raise
        except Exception as e:
            logger.error("Embedding provider failed for {} texts: {}", len(normalized), e)
            raise UpstreamError(
                f"Embedding provider failed: {e}",
                {"model": self.model_name, "text_count": len(normalized)},
            ) from e
        if len(embeddings) != len(normalized):
            raise UpstreamError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(normalized)} texts",
                {"model": self.model_name},
            )
        elapsed = time.perf_counter() - t0
        metrics.record_embedding(len(normalized), sum(len(t) for t in normalized), elapsed)
        logger.info("embed_batch completed: {} embeddings in {:.3f}s", len(embeddings), elapsed)
        for t, vec in zip(normalized, embeddings):
            self._cache[self._cache_key(t)] = vec
        return embeddings

    def embed_text(self, text: str, use_cache: bool = True) -> list[float]:
        """Generate the embedding for a single text.

        Args:
            text: Input text; empty text is embedded as a single space.
            use_cache: Return a cached vector when the same text was embedded before.
        """
        if not text or not text.strip():
            text = " "
        key = self._cache_key(text.strip() or " ")
        if use_cache and key in self._cache:
            return self._cache[key]
        return self.embed_batch([text])[0]

    async def aembed_text(self, text: str, use_cache: bool = True) -> list[float]:
        """Embed one text in a worker thread, bounded by timeout_seconds.

        Raises:
            UpstreamTimeoutError: If the call does not finish in time.
            UpstreamError: On provider failure.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.embed_text, text, use_cache),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Embedding call timed out after {}s", self.timeout_seconds)
            raise UpstreamTimeoutError(
                f"Embedding call timed out after {self.timeout_seconds}s",
                {"model": self.model_name},
            ) from e

    async def aembed_many(
        self,
        texts: list[str],
        concurrency: Optional[int] = None,
    ) -> list[list[float]]:
        """Embed texts one call per text with at most ``concurrency`` in flight.

        Results are returned in input order. The first failure cancels the
        remaining calls and propagates.
        """
        if not texts:
            return []
        limit = max(1, concurrency if concurrency is not None else self.concurrency)
        semaphore = asyncio.Semaphore(limit)

        async def _one(text: str) -> list[float]:
            async with semaphore:
                return await self.aembed_text(text)

        tasks = [asyncio.create_task(_one(t)) for t in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
