"""
In-process document store.

Exact cosine search over active chunks, BM25 keyword search, and cache
entries that expire on a TTL. Expired entries are purged before every
cache read so no caller ever sees one.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence
from rag_backend.config.models import ActiveChunk, CacheEntry, utc_now
from rag_backend.core.retrieval.keyword import KeywordScorer
from rag_backend.core.similarity import cosine_similarity
from rag_backend.core.vectorstore.base import DocumentStore, ScoredChunk, StoredChunk
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import VectorStoreError

logger = get_logger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Document store kept in process memory."""

    def __init__(
        self,
        cache_ttl_seconds: int = 24 * 60 * 60,
        clock: Optional[Callable[[], datetime]] = None,
        keyword_scorer: Optional[KeywordScorer] = None
    ):
        """
        Initialize in-memory store.

        Args:
            cache_ttl_seconds: Lifetime of cache entries
            clock: Source of the current time (timezone-aware)
            keyword_scorer: BM25 scorer for text search
        """
        super().__init__(cache_ttl_seconds)
        self._clock = clock or utc_now
        self._keyword_scorer = keyword_scorer or KeywordScorer()
        self._chunks: Dict[str, StoredChunk] = {}
        self._cache: Dict[str, CacheEntry] = {}

        logger.info(f"🗃️ Initialized in-memory document store (cache TTL {cache_ttl_seconds}s)")

    def _active(self, include_superseded: bool) -> List[StoredChunk]:
        return [c for c in self._chunks.values() if include_superseded or not c.is_superseded]

    async def insert_chunks(self, chunks: Sequence[ActiveChunk]) -> List[str]:
        for chunk in chunks:
            if chunk.id in self._chunks:
                raise VectorStoreError(f"Chunk {chunk.id} already exists")
        for chunk in chunks:
            self._chunks[chunk.id] = chunk
        return [chunk.id for chunk in chunks]

    async def get_chunk(self, chunk_id: str) -> Optional[StoredChunk]:
        return self._chunks.get(chunk_id)

    async def mark_superseded(self, chunk_id: str, superseded_by: str) -> bool:
        chunk = self._chunks.get(chunk_id)
        if not isinstance(chunk, ActiveChunk):
            return False
        self._chunks[chunk_id] = chunk.supersede(superseded_by)
        return True

    async def vector_search(
        self,
        query_vector: Sequence[float],
        limit: int,
        num_candidates: int = 100,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        # Exact search: every chunk is a candidate, so num_candidates has no effect here.
        scored = []
        for chunk in self._active(include_superseded):
            if len(chunk.embedding) != len(query_vector):
                continue
            scored.append((chunk, cosine_similarity(query_vector, chunk.embedding)))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    async def keyword_search(
        self,
        query: str,
        limit: int,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        chunks = self._active(include_superseded)
        ranked = self._keyword_scorer.rank(query, [chunk.text for chunk in chunks], limit)
        return [(chunks[index], score) for index, score in ranked]

    async def count_chunks(self, include_superseded: bool = True) -> int:
        return len(self._active(include_superseded))

    def _purge_expired(self) -> None:
        cutoff = self._clock() - timedelta(seconds=self.cache_ttl_seconds)
        expired = [entry_id for entry_id, entry in self._cache.items() if entry.created_at <= cutoff]
        for entry_id in expired:
            del self._cache[entry_id]
        if expired:
            logger.debug(f"🗑️ Expired {len(expired)} cache entries")

    async def find_cache_entry(self, query: str) -> Optional[CacheEntry]:
        self._purge_expired()
        for entry in self._cache.values():
            if entry.query == query:
                return entry
        return None

    async def list_cache_entries(self) -> List[CacheEntry]:
        self._purge_expired()
        return list(self._cache.values())

    async def insert_cache_entry(self, entry: CacheEntry, replace_existing: bool = False) -> str:
        if replace_existing:
            for entry_id in [k for k, v in self._cache.items() if v.query == entry.query]:
                del self._cache[entry_id]
        self._cache[entry.id] = entry
        return entry.id

    async def touch_cache_entry(self, entry_id: str, accessed_at: datetime) -> None:
        entry = self._cache.get(entry_id)
        if entry is not None:
            self._cache[entry_id] = entry.model_copy(update={"last_accessed": accessed_at})

    async def clear_cache(self) -> int:
        removed = len(self._cache)
        self._cache.clear()
        return removed
