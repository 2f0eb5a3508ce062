"""
System endpoints for statistics.
"""

from fastapi import APIRouter, HTTPException
from rag_backend.api.errors import NOT_READY_MESSAGE
from rag_backend.api.models import StatsResponse
from rag_backend.api.services import rag_service

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/stats", response_model=StatsResponse)
async def get_system_stats():
    """Chunk and cache counts plus the knobs that shape retrieval."""
    if not rag_service.is_ready():
        raise HTTPException(status_code=503, detail=NOT_READY_MESSAGE)
    return StatsResponse(**await rag_service.get_stats())
