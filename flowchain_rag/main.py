"""FastAPI application entry point for the Flowchain insight service."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from flowchain_rag.api.dependencies import get_embedding_service, get_vector_store
from flowchain_rag.api.routes import router
from flowchain_rag.config import settings
from flowchain_rag.errors import InvalidInputError
from flowchain_rag.retrieval.embeddings import EmbeddingService
from flowchain_rag.retrieval.vector_store import TenantVectorStore
from flowchain_rag.utils.logging import clear_request_context, get_logger, set_request_context, setup_logging
from flowchain_rag.utils.metrics import get_metrics

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a request ID, set logging context, and record API metrics."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        set_request_context(request_id=request_id, operation=request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            get_metrics().record_api_request(request.url.path, response.status_code, time.perf_counter() - start)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and build the process-wide store before serving."""
    setup_logging(log_level=settings.log_level)
    get_vector_store()
    logger.info("Application startup complete")
    yield
    logger.info("Application shutdown")


app = FastAPI(
    title=settings.app_name,
    description="Per-tenant document retrieval and supply chain insights",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors (400)."""
    errors = exc.errors()
    detail = errors[0].get("msg", "Validation error") if errors else "Validation error"
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    """Handle domain precondition failures (400)."""
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught server errors (500)."""
    logger.exception("Server error: {}", exc)
    return JSONResponse(status_code=500, content={"detail": "An internal server error occurred"})


@app.get("/health")
def health_check(
    vector_store: TenantVectorStore = Depends(get_vector_store),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> dict:
    """Health check with store and embedding provider status.

    Returns 200 with status 'ok' or 'degraded' and component details.
    """
    components: dict = {}
    status = "ok"

    stats = vector_store.get_stats()
    components["vector_store"] = {
        "status": "ok",
        "tenants": stats["tenant_count"],
        "chunk_count": stats["chunk_count"],
    }

    try:
        embedding_service.embed_text("health", use_cache=True)
        components["embedding_service"] = {"status": "ok", "model": embedding_service.model_name}
    except Exception as e:
        logger.warning("Health check: embedding_service error: {}", e)
        components["embedding_service"] = {"status": "error", "error": str(e)}
        status = "degraded"

    return {"status": status, "components": components}


@app.get("/metrics")
def metrics_endpoint() -> dict:
    """Return aggregated observability metrics summary."""
    return get_metrics().get_metrics_summary()
