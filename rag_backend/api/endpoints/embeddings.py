"""
Embedding endpoints: add text to the knowledge base and query it.

Errors are reported as ``{success: false, message}`` with 400 for bad input,
500 for anything else and 503 before the system is initialized.
"""

from fastapi import APIRouter
from rag_backend.api.errors import INTERNAL_ERROR_MESSAGE, NOT_READY_MESSAGE, error_response
from rag_backend.api.models import (
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse
)
from rag_backend.api.services import rag_service
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import ValidationError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/embeddings", tags=["embeddings"])


@router.post("/add", response_model=IngestResponse)
async def add_text(request: IngestRequest):
    """Chunk, embed and store a text."""
    if not rag_service.is_ready():
        return error_response(503, NOT_READY_MESSAGE)

    try:
        result = await rag_service.ingest(request.text)
    except ValidationError as e:
        logger.warning(f"⚠️ Rejected ingest request: {str(e)}")
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"❌ Ingest failed: {str(e)}")
        return error_response(500, INTERNAL_ERROR_MESSAGE)

    return IngestResponse(
        chunks_inserted=result.chunks_inserted,
        superseded_old_chunks=result.superseded_old_chunks
    )


@router.post("/query", response_model=QueryResponse, response_model_exclude_none=True)
async def query_knowledge_base(request: QueryRequest):
    """Answer a question from the knowledge base."""
    if not rag_service.is_ready():
        return error_response(503, NOT_READY_MESSAGE)

    try:
        result = await rag_service.query(request.query)
    except ValidationError as e:
        logger.warning(f"⚠️ Rejected query request: {str(e)}")
        return error_response(400, str(e))
    except Exception as e:
        logger.error(f"❌ Query failed: {str(e)}")
        return error_response(500, INTERNAL_ERROR_MESSAGE)

    return QueryResponse(
        query=result.query,
        retrieved_data=result.retrieved_data,
        answer=result.answer,
        cached=result.cached,
        semantic_cache=True if result.semantic_cache else None
    )
