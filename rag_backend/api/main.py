"""
FastAPI application for the RAG backend.

The RAG system is built once at startup from the environment and handed to
the process-wide ``rag_service``; routes only ever talk to that service.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rag_backend import __version__
from rag_backend.api.endpoints import embeddings_router, health_router, system_router
from rag_backend.api.errors import register_exception_handlers
from rag_backend.api.middleware import RequestLoggingMiddleware
from rag_backend.api.services import rag_service
from rag_backend.core.system import create_rag_system
from rag_backend.utils.logging import get_logger, setup_logging

setup_logging("rag_backend")
logger = get_logger(__name__)

ROUTES = {
    "docs": "/docs",
    "health": "/health",
    "stats": "/system/stats",
    "add": "/api/embeddings/add",
    "query": "/api/embeddings/query",
}

app = FastAPI(
    title="RAG Backend API",
    description="Retrieval-augmented answers with deduplicated ingest, hybrid retrieval and an answer cache",
    version=__version__,
    docs_url=ROUTES["docs"],
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(embeddings_router)
app.include_router(system_router)


@app.on_event("startup")
async def startup_event():
    """Build the RAG system from configuration."""
    logger.info(f"🚀 Starting RAG API server v{__version__}")
    try:
        rag_service.set_rag_system(create_rag_system())
    except Exception as e:
        logger.error(f"❌ Failed to initialize RAG system: {str(e)}")
        raise
    logger.info("✅ RAG system ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Release HTTP clients and store connections."""
    await rag_service.shutdown()
    logger.info("👋 RAG API server stopped")


@app.get("/", response_model=dict)
async def root():
    """API information and route map."""
    return {"message": "RAG Backend API", "version": __version__, "ready": rag_service.is_ready(), **ROUTES}
