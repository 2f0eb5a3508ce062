"""
Health endpoint.

Always answers 200; readiness is carried in ``status`` so load balancers
can tell a booting process from a dead one.
"""

from fastapi import APIRouter
from rag_backend.api.models import HealthResponse
from rag_backend.api.services import rag_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check():
    """Report document store and answer cache health."""
    report = await rag_service.health_check()
    return HealthResponse(status=report["overall"], components=report["components"], timestamp=report["timestamp"])
