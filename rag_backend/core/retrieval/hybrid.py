"""
Hybrid retrieval: vector and keyword search fused into one ranking.

Both searches run concurrently against active chunks only. A chunk's
combined score is its vector score plus its keyword score scaled by
``keyword_boost``.
"""

import asyncio
from typing import Dict, List, Optional, Sequence
from rag_backend.config.models import RetrievalCandidate
from rag_backend.config.settings import RetrievalConfig, get_config
from rag_backend.core.vectorstore.base import DocumentStore, ScoredChunk
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import RetrievalError
from rag_backend.utils.decorators import timing_decorator

logger = get_logger(__name__)


def merge_results(
    vector_results: Sequence[ScoredChunk],
    keyword_results: Sequence[ScoredChunk],
    keyword_boost: float
) -> List[RetrievalCandidate]:
    """
    Merge both result lists by chunk id.

    Vector hits come first, then keyword-only hits, each in arrival order.
    A dimension a chunk did not appear in scores 0.

    Args:
        vector_results: ``(chunk, cosine)`` pairs
        keyword_results: ``(chunk, relevance)`` pairs
        keyword_boost: Weight applied to the keyword score

    Returns:
        Unsorted candidates with combined scores
    """
    merged: Dict[str, RetrievalCandidate] = {}

    for chunk, score in vector_results:
        merged[chunk.id] = RetrievalCandidate(
            id=chunk.id,
            text=chunk.text,
            embedding=list(chunk.embedding) or None,
            vector_score=float(score),
        )

    for chunk, score in keyword_results:
        candidate = merged.get(chunk.id)
        if candidate is None:
            merged[chunk.id] = RetrievalCandidate(
                id=chunk.id,
                text=chunk.text,
                embedding=list(chunk.embedding) or None,
                keyword_score=float(score),
            )
        else:
            candidate.keyword_score = float(score)
            if candidate.embedding is None and chunk.embedding:
                candidate.embedding = list(chunk.embedding)

    candidates = list(merged.values())
    for candidate in candidates:
        candidate.combined_score = candidate.vector_score + candidate.keyword_score * keyword_boost
    return candidates


def build_context(candidates: Sequence[RetrievalCandidate], separator: str = "\n---\n") -> str:
    """Join candidate texts in rank order."""
    return separator.join(candidate.text for candidate in candidates)


class HybridRetriever:
    """Retriever combining vector similarity and keyword relevance."""

    def __init__(
        self,
        store: DocumentStore,
        vector_limit: int = 50,
        keyword_limit: int = 50,
        top_k: int = 5,
        keyword_boost: float = 2.0,
        num_candidates: int = 100
    ):
        """
        Initialize hybrid retriever.

        Args:
            store: Document store to search
            vector_limit: Maximum vector search results
            keyword_limit: Maximum keyword search results
            top_k: Number of candidates returned
            keyword_boost: Weight of the keyword score in the combined score
            num_candidates: Vector search breadth
        """
        self.store = store
        self.vector_limit = vector_limit
        self.keyword_limit = keyword_limit
        self.top_k = top_k
        self.keyword_boost = keyword_boost
        self.num_candidates = num_candidates

        logger.info(f"🔍 Initialized hybrid retriever (k={top_k}, keyword_boost={keyword_boost})")

    @timing_decorator
    async def retrieve(self, query: str, query_vector: Sequence[float]) -> List[RetrievalCandidate]:
        """
        Retrieve the best chunks for a query.

        Args:
            query: Query text for keyword search
            query_vector: Query embedding for vector search

        Returns:
            Up to ``top_k`` candidates, best first

        Raises:
            RetrievalError: If either search fails
        """
        try:
            logger.info(f"🔍 [Hybrid] Retrieving chunks for: {query[:50]}...")

            vector_results, keyword_results = await asyncio.gather(
                self.store.vector_search(query_vector, limit=self.vector_limit, num_candidates=self.num_candidates),
                self.store.keyword_search(query, limit=self.keyword_limit),
            )

            candidates = merge_results(vector_results, keyword_results, self.keyword_boost)
            # sort() is stable, so ties keep merge order.
            candidates.sort(key=lambda candidate: candidate.combined_score, reverse=True)
            top = candidates[:self.top_k]

            logger.info(f"📚 [Hybrid] {len(vector_results)} vector + {len(keyword_results)} keyword hits, "
                        f"returning {len(top)}")
            return top

        except Exception as e:
            error_msg = f"Hybrid retrieval failed: {str(e)}"
            logger.error(error_msg)
            raise RetrievalError(error_msg) from e


def create_hybrid_retriever(store: DocumentStore, settings: Optional[RetrievalConfig] = None) -> HybridRetriever:
    """Create a hybrid retriever from configuration."""
    settings = settings or get_config().retrieval
    return HybridRetriever(
        store,
        vector_limit=settings.vector_limit,
        keyword_limit=settings.keyword_limit,
        top_k=settings.top_k,
        keyword_boost=settings.keyword_boost,
        num_candidates=settings.num_candidates,
    )
