"""End-to-end document ingestion pipeline: extract, chunk, embed, store."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from flowchain_rag.config import settings
from flowchain_rag.errors import ExtractionError, UpstreamError
from flowchain_rag.models import DocumentIngestResult, IngestReport
from flowchain_rag.utils.logging import get_logger, set_request_context
from flowchain_rag.utils.metrics import get_metrics

from .chunker import chunk_text
from .parsers import extract_text

if TYPE_CHECKING:
    from flowchain_rag.retrieval.embeddings import EmbeddingService
    from flowchain_rag.retrieval.vector_store import TenantVectorStore

logger = get_logger(__name__)
metrics = get_metrics()


async def ingest_text(
    tenant_id: str,
    text: str,
    *,
    store: "TenantVectorStore",
    embedding_service: "EmbeddingService",
    target_size: Optional[int] = None,
    overlap_chars: Optional[int] = None,
    concurrency: Optional[int] = None,
) -> int:
    """Chunk already-extracted text, embed every chunk, and store the pairs.

    Returns:
        Number of chunks stored (0 when the text yields no usable chunks).

    Raises:
        UpstreamError: If any embedding call fails; nothing is stored then.
    """
    chunks = chunk_text(
        text,
        target_size=target_size if target_size is not None else settings.chunk_target_size,
        overlap_chars=overlap_chars if overlap_chars is not None else settings.chunk_overlap_chars,
        min_chunk_chars=settings.min_chunk_chars,
    )
    if not chunks:
        return 0
    embeddings = await embedding_service.aembed_many(chunks, concurrency=concurrency)
    store.ingest(tenant_id, chunks, embeddings)
    return len(chunks)


async def ingest_document(
    tenant_id: str,
    file_path: str,
    *,
    store: "TenantVectorStore",
    embedding_service: "EmbeddingService",
    target_size: Optional[int] = None,
    overlap_chars: Optional[int] = None,
    concurrency: Optional[int] = None,
) -> DocumentIngestResult:
    """Ingest one document and classify the outcome.

    Extraction problems mark the document ``skipped``; embedding failures
    mark it ``failed``. Neither is raised, so a batch can continue.
    """
    path = Path(file_path)
    t0 = time.perf_counter()
    try:
        text = extract_text(str(path))
        logger.info("Stage 1 (extract) completed in {:.3f}s for {}", time.perf_counter() - t0, path.name)

        if not text:
            logger.warning("Document extracted to empty text: {}", path.name)
            return DocumentIngestResult(path=str(path), status="skipped", error="No extractable text")

        count = await ingest_text(
            tenant_id,
            text,
            store=store,
            embedding_service=embedding_service,
            target_size=target_size,
            overlap_chars=overlap_chars,
            concurrency=concurrency,
        )
    except ExtractionError as e:
        logger.error("Skipping {}: {}", path.name, e.message)
        metrics.record_error("extraction_error", {"path": str(path)})
        return DocumentIngestResult(path=str(path), status="skipped", error=e.message)
    except UpstreamError as e:
        logger.error("Embedding failed for {}: {}", path.name, e.message)
        metrics.record_error(type(e).__name__, {"path": str(path)})
        return DocumentIngestResult(path=str(path), status="failed", error=e.message)

    if count == 0:
        logger.warning("No chunks above minimum size in {}", path.name)
        return DocumentIngestResult(path=str(path), status="skipped", error="No usable chunks")

    elapsed = time.perf_counter() - t0
    metrics.record_ingestion(tenant_id=tenant_id, duration=elapsed, chunk_count=count)
    logger.info("Ingestion complete for {}: {} chunks in {:.3f}s", path.name, count, elapsed)
    return DocumentIngestResult(path=str(path), status="ingested", chunk_count=count)


async def ingest_documents(
    tenant_id: str,
    file_paths: Iterable[str],
    *,
    store: "TenantVectorStore",
    embedding_service: "EmbeddingService",
    concurrency: Optional[int] = None,
) -> IngestReport:
    """Ingest several documents for a tenant, one after another.

    One unreadable or failing document never aborts the others.

    Args:
        tenant_id: Tenant the documents belong to.
        file_paths: Paths to .pdf, .docx, .txt or .md documents.
        store: Shared TenantVectorStore.
        embedding_service: Service used to embed chunks.
        concurrency: Embedding calls in flight per document (defaults to the service's).

    Returns:
        IngestReport with one DocumentIngestResult per path, in input order.
    """
    set_request_context(tenant_id=tenant_id, operation="ingest")
    report = IngestReport(tenant_id=tenant_id)
    for file_path in file_paths:
        result = await ingest_document(
            tenant_id,
            file_path,
            store=store,
            embedding_service=embedding_service,
            concurrency=concurrency,
        )
        report.documents.append(result)

    logger.info(
        "Batch ingestion for tenant={}: {} ingested, {} skipped, {} failed, {} chunks",
        tenant_id,
        len(report.succeeded),
        len(report.skipped),
        len(report.failed),
        report.total_chunks,
    )
    return report
