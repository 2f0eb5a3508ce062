"""
Process-wide holder for the RAG system.

Routes never build components themselves: the startup hook (or a test)
hands a ready ``RAGSystem`` to ``rag_service`` and routes call through it.
"""

from typing import Any, Dict, Optional
from rag_backend.config.models import utc_now
from rag_backend.core.system import IngestResult, QueryResult, RAGSystem
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class RAGService:
    """Thin async facade over an optional ``RAGSystem``."""

    def __init__(self, rag_system: Optional[RAGSystem] = None):
        self.rag_system = rag_system

    def set_rag_system(self, rag_system: Optional[RAGSystem]) -> None:
        """Install (or, with ``None``, detach) the RAG system."""
        self.rag_system = rag_system
        if rag_system is not None:
            logger.info("🔧 RAG system attached to service")

    def is_ready(self) -> bool:
        return self.rag_system is not None

    def _require_system(self) -> RAGSystem:
        if self.rag_system is None:
            raise ConfigurationError("RAG system not initialized")
        return self.rag_system

    async def health_check(self) -> Dict[str, Any]:
        """Component health, or an ``unhealthy`` report before startup finished."""
        if self.rag_system is None:
            return {
                "overall": "unhealthy",
                "components": {"rag_system": False},
                "timestamp": utc_now().isoformat(),
            }
        return await self.rag_system.health_check()

    async def get_stats(self) -> Dict[str, Any]:
        return await self._require_system().get_stats()

    async def ingest(self, text: Any) -> IngestResult:
        return await self._require_system().ingest(text)

    async def query(self, question: Any) -> QueryResult:
        return await self._require_system().query(question)

    async def shutdown(self) -> None:
        """Close and detach the RAG system, if any."""
        if self.rag_system is not None:
            await self.rag_system.close()
            self.rag_system = None


rag_service = RAGService()
