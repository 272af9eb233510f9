"""FastAPI endpoints for document ingestion, retrieval, and insights."""

import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from flowchain_rag.api.dependencies import (
    get_embedding_service,
    get_insight_service,
    get_retriever,
    get_vector_store,
)
from flowchain_rag.config import settings
from flowchain_rag.errors import UpstreamError, UpstreamTimeoutError
from flowchain_rag.ingestion.pipeline import ingest_document
from flowchain_rag.insights.service import InsightService
from flowchain_rag.models import (
    DocumentIngestResult,
    InsightRequest,
    InsightResponse,
    QueryRequest,
    QueryResponse,
)
from flowchain_rag.retrieval.embeddings import EmbeddingService
from flowchain_rag.retrieval.retriever import Retriever
from flowchain_rag.retrieval.vector_store import TenantVectorStore
from flowchain_rag.utils.logging import get_logger, set_request_context

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["flowchain-insights"])

ALLOWED_EXTENSIONS = {".pdf", ".docx", ".txt"}
UPLOADS_DIR = Path(settings.upload_dir)
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


@router.post("/documents", response_model=DocumentIngestResult)
async def upload_document(
    file: UploadFile = File(...),
    tenant_id: str = Form(..., min_length=1),
    vector_store: TenantVectorStore = Depends(get_vector_store),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> DocumentIngestResult:
    """Save an uploaded document and ingest it for the tenant.

    Extraction or embedding problems are reported in the result status,
    not as HTTP errors.
    """
    set_request_context(tenant_id=tenant_id)
    original_filename = file.filename or "unknown"
    ext = Path(original_filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        logger.warning("Rejected file with unsupported extension: {}", ext)
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}. Got: {ext}",
        )

    content = await file.read()
    if len(content) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="File too large. Maximum size: 10 MB")
    if not content:
        raise HTTPException(status_code=400, detail="File is empty")

    UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    save_path = UPLOADS_DIR / f"{uuid.uuid4()}{ext}"
    save_path.write_bytes(content)
    logger.info("Saved upload: {} ({} bytes)", save_path.name, len(content))

    try:
        result = await ingest_document(
            tenant_id,
            str(save_path),
            store=vector_store,
            embedding_service=embedding_service,
        )
    finally:
        save_path.unlink(missing_ok=True)
        logger.debug("Removed upload: {}", save_path.name)

    logger.info("Upload processed: file={}, status={}, chunks={}", original_filename, result.status, result.chunk_count)
    # Parser errors name the saved file; report the client's filename instead
    error = result.error
    if error:
        error = error.replace(str(save_path), original_filename).replace(save_path.name, original_filename)
    return result.model_copy(update={"path": original_filename, "error": error})


@router.post("/query", response_model=QueryResponse)
async def query(
    request: QueryRequest,
    retriever: Retriever = Depends(get_retriever),
) -> QueryResponse:
    """Return the tenant's most relevant chunks for a query."""
    set_request_context(tenant_id=request.tenant_id)
    try:
        chunks = await retriever.query(request.tenant_id, request.query, top_k=request.top_k)
    except UpstreamTimeoutError as e:
        raise HTTPException(status_code=504, detail=e.message) from e
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    return QueryResponse(tenant_id=request.tenant_id, chunks=chunks)


@router.post("/analyze/ai-insights", response_model=InsightResponse)
async def ai_insights(
    request: InsightRequest,
    insight_service: InsightService = Depends(get_insight_service),
) -> InsightResponse:
    """Generate insights for the tenant; degrades to generic insights on failure."""
    set_request_context(tenant_id=request.tenant_id)
    return await insight_service.get_insights(request.tenant_id, request.query)


@router.get("/health")
async def health_check(
    vector_store: TenantVectorStore = Depends(get_vector_store),
) -> dict:
    """Health check with store status."""
    stats = vector_store.get_stats()
    return {
        "status": "ok",
        "components": {
            "vector_store": "ok",
            "tenants": stats["tenant_count"],
        },
    }


@router.get("/stats")
async def get_stats(
    vector_store: TenantVectorStore = Depends(get_vector_store),
) -> dict:
    """Return tenant and chunk counts."""
    stats = vector_store.get_stats()
    return {
        "total_tenants": stats["tenant_count"],
        "total_chunks": stats["chunk_count"],
        "chunks_by_tenant": {t: vector_store.chunk_count(t) for t in vector_store.tenant_ids()},
    }
