"""
Document store interface.

The store keeps two collections: chunks (owned by ingest / retrieval) and
answer cache entries (owned by the answer cache). Cache entries expire
``cache_ttl_seconds`` after creation; enforcing that is the store's job.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from datetime import datetime
from rag_backend.config.models import ActiveChunk, CacheEntry, SupersededChunk

StoredChunk = Union[ActiveChunk, SupersededChunk]
ScoredChunk = Tuple[StoredChunk, float]


class DocumentStore(ABC):
    """Abstract base class for chunk and cache persistence."""

    def __init__(self, cache_ttl_seconds: int):
        self.cache_ttl_seconds = cache_ttl_seconds

    # Chunks

    @abstractmethod
    async def insert_chunks(self, chunks: Sequence[ActiveChunk]) -> List[str]:
        """Insert new chunks; returns their ids in input order."""

    @abstractmethod
    async def get_chunk(self, chunk_id: str) -> Optional[StoredChunk]:
        """Fetch one chunk by id."""

    @abstractmethod
    async def mark_superseded(self, chunk_id: str, superseded_by: str) -> bool:
        """
        Transition an active chunk to superseded.

        Returns:
            True if the chunk was active and is now superseded
        """

    @abstractmethod
    async def vector_search(
        self,
        query_vector: Sequence[float],
        limit: int,
        num_candidates: int = 100,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        """Nearest chunks by cosine similarity, best first."""

    @abstractmethod
    async def keyword_search(
        self,
        query: str,
        limit: int,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        """Chunks matching the query text, by descending relevance."""

    @abstractmethod
    async def count_chunks(self, include_superseded: bool = True) -> int:
        """Number of stored chunks."""

    # Answer cache

    @abstractmethod
    async def find_cache_entry(self, query: str) -> Optional[CacheEntry]:
        """Unexpired entry whose query equals ``query`` verbatim."""

    @abstractmethod
    async def list_cache_entries(self) -> List[CacheEntry]:
        """Every unexpired cache entry."""

    @abstractmethod
    async def insert_cache_entry(self, entry: CacheEntry, replace_existing: bool = False) -> str:
        """
        Store a cache entry.

        Args:
            entry: Entry to store
            replace_existing: Drop entries with the same query text first
        """

    @abstractmethod
    async def touch_cache_entry(self, entry_id: str, accessed_at: datetime) -> None:
        """Update an entry's ``last_accessed``."""

    @abstractmethod
    async def clear_cache(self) -> int:
        """Delete every cache entry; returns how many were removed."""

    # Lifecycle

    async def health_check(self) -> bool:
        return True

    async def get_stats(self) -> Dict[str, Any]:
        return {
            "chunks": await self.count_chunks(include_superseded=True),
            "active_chunks": await self.count_chunks(include_superseded=False),
            "cache_entries": len(await self.list_cache_entries()),
            "cache_ttl_seconds": self.cache_ttl_seconds,
        }

    async def close(self) -> None:
        return None
