"""
Qdrant document store.

Chunks live in a cosine collection with ``is_superseded`` / ``superseded_by``
payload fields; answer cache entries live in a second collection keyed by
query embedding. Keyword candidates come from a full-text payload index and
are scored with BM25. Cache expiry is a range delete on ``created_at`` run
before every cache read.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from qdrant_client import AsyncQdrantClient, models
from rag_backend.config.models import ActiveChunk, CacheEntry, chunk_from_record, utc_now
from rag_backend.config.settings import DatabaseConfig, get_config
from rag_backend.core.retrieval.keyword import KeywordScorer, tokenize
from rag_backend.core.vectorstore.base import DocumentStore, ScoredChunk, StoredChunk
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import APIKeyError, VectorStoreError
from rag_backend.utils.decorators import error_handler_decorator, timing_decorator

logger = get_logger(__name__)

ACTIVE_FILTER = models.FieldCondition(key="is_superseded", match=models.MatchValue(value=False))


def _to_timestamp(value: datetime) -> float:
    return value.timestamp()


def _from_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(float(value), tz=timezone.utc)


def _point_vector(point: Any) -> List[float]:
    vector = point.vector
    if isinstance(vector, dict):
        vector = next(iter(vector.values()), None)
    return list(vector or [])


class QdrantDocumentStore(DocumentStore):
    """Document store backed by Qdrant."""

    def __init__(
        self,
        settings: Optional[DatabaseConfig] = None,
        cache_ttl_seconds: Optional[int] = None,
        client: Optional[AsyncQdrantClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        keyword_scorer: Optional[KeywordScorer] = None
    ):
        """
        Initialize Qdrant store.

        Args:
            settings: Database configuration
            cache_ttl_seconds: Lifetime of cache entries
            client: Pre-built async Qdrant client
            clock: Source of the current time (timezone-aware)
            keyword_scorer: BM25 scorer for text search

        Raises:
            APIKeyError: If API key is missing for a remote deployment
        """
        config = get_config()
        super().__init__(cache_ttl_seconds if cache_ttl_seconds is not None else config.cache.ttl_seconds)

        self.settings = settings or config.database
        self.chunk_collection = self.settings.chunk_collection
        self.cache_collection = self.settings.cache_collection
        self.vector_size = self.settings.vector_size
        self._clock = clock or utc_now
        self._keyword_scorer = keyword_scorer or KeywordScorer()
        self._ready = False

        if client is None:
            if not self.settings.qdrant_url.startswith("http://localhost") and not self.settings.qdrant_api_key:
                raise APIKeyError("Qdrant API key required for cloud deployment")
            client = AsyncQdrantClient(url=self.settings.qdrant_url, api_key=self.settings.qdrant_api_key)
        self.client = client

        logger.info(f"🗃️ Initialized Qdrant store: {self.settings.qdrant_url}")
        logger.info(f"📦 Collections: {self.chunk_collection}, {self.cache_collection}")

    async def ensure_collections(self) -> None:
        """Create both collections and their payload indexes if missing."""
        if self._ready:
            return

        for name in (self.chunk_collection, self.cache_collection):
            if await self.client.collection_exists(name):
                logger.info(f"📦 Collection '{name}' already exists")
                continue
            await self._create_collection(name)

        self._ready = True

    async def _create_collection(self, name: str) -> None:
        await self.client.create_collection(
            collection_name=name,
            vectors_config=models.VectorParams(size=self.vector_size, distance=models.Distance.COSINE),
        )
        if name == self.chunk_collection:
            await self.client.create_payload_index(
                collection_name=name,
                field_name="is_superseded",
                field_schema=models.PayloadSchemaType.BOOL,
            )
            await self.client.create_payload_index(
                collection_name=name,
                field_name="text",
                field_schema=models.TextIndexParams(
                    type=models.TextIndexType.TEXT,
                    tokenizer=models.TokenizerType.WORD,
                    lowercase=True,
                ),
            )
        else:
            await self.client.create_payload_index(
                collection_name=name,
                field_name="query",
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
            await self.client.create_payload_index(
                collection_name=name,
                field_name="created_at",
                field_schema=models.PayloadSchemaType.FLOAT,
            )
        logger.info(f"✅ Created collection '{name}' with vector size {self.vector_size}")

    # Chunks

    def _chunk_from_point(self, point: Any) -> StoredChunk:
        payload = point.payload or {}
        return chunk_from_record({
            "id": point.id,
            "text": payload.get("text", ""),
            "embedding": _point_vector(point),
            "created_at": _from_timestamp(payload.get("created_at", 0)),
            "is_superseded": payload.get("is_superseded", False),
            "superseded_by": payload.get("superseded_by"),
        })

    @timing_decorator
    @error_handler_decorator(VectorStoreError)
    async def insert_chunks(self, chunks: Sequence[ActiveChunk]) -> List[str]:
        await self.ensure_collections()
        if not chunks:
            return []

        points = []
        for chunk in chunks:
            record = chunk.to_record()
            points.append(models.PointStruct(
                id=chunk.id,
                vector=record.pop("embedding"),
                payload={
                    "text": record["text"],
                    "created_at": _to_timestamp(record["created_at"]),
                    "is_superseded": record["is_superseded"],
                    "superseded_by": record["superseded_by"],
                },
            ))

        await self.client.upsert(collection_name=self.chunk_collection, points=points)
        logger.info(f"⬆️ Inserted {len(points)} chunks")
        return [chunk.id for chunk in chunks]

    @error_handler_decorator(VectorStoreError)
    async def get_chunk(self, chunk_id: str) -> Optional[StoredChunk]:
        await self.ensure_collections()
        points = await self.client.retrieve(
            collection_name=self.chunk_collection,
            ids=[chunk_id],
            with_payload=True,
            with_vectors=True,
        )
        return self._chunk_from_point(points[0]) if points else None

    @error_handler_decorator(VectorStoreError)
    async def mark_superseded(self, chunk_id: str, superseded_by: str) -> bool:
        chunk = await self.get_chunk(chunk_id)
        if not isinstance(chunk, ActiveChunk):
            return False

        await self.client.set_payload(
            collection_name=self.chunk_collection,
            payload={"is_superseded": True, "superseded_by": superseded_by},
            points=[chunk_id],
        )
        return True

    @timing_decorator
    @error_handler_decorator(VectorStoreError)
    async def vector_search(
        self,
        query_vector: Sequence[float],
        limit: int,
        num_candidates: int = 100,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        await self.ensure_collections()
        response = await self.client.query_points(
            collection_name=self.chunk_collection,
            query=list(query_vector),
            query_filter=None if include_superseded else models.Filter(must=[ACTIVE_FILTER]),
            limit=limit,
            with_payload=True,
            with_vectors=True,
            search_params=models.SearchParams(hnsw_ef=max(num_candidates, limit)),
        )
        # Cosine collections report similarity, not distance.
        return [(self._chunk_from_point(point), float(point.score)) for point in response.points]

    @timing_decorator
    @error_handler_decorator(VectorStoreError)
    async def keyword_search(
        self,
        query: str,
        limit: int,
        include_superseded: bool = False
    ) -> List[ScoredChunk]:
        await self.ensure_collections()
        terms = sorted(set(tokenize(query)))
        if not terms:
            return []

        scroll_filter = models.Filter(
            must=[] if include_superseded else [ACTIVE_FILTER],
            should=[
                models.FieldCondition(key="text", match=models.MatchText(text=term))
                for term in terms
            ],
        )
        points = await self._scroll(self.chunk_collection, scroll_filter)
        chunks = [self._chunk_from_point(point) for point in points]

        ranked = self._keyword_scorer.rank(query, [chunk.text for chunk in chunks], limit)
        return [(chunks[index], score) for index, score in ranked]

    @error_handler_decorator(VectorStoreError)
    async def count_chunks(self, include_superseded: bool = True) -> int:
        await self.ensure_collections()
        result = await self.client.count(
            collection_name=self.chunk_collection,
            count_filter=None if include_superseded else models.Filter(must=[ACTIVE_FILTER]),
            exact=True,
        )
        return result.count

    async def _scroll(
        self,
        collection: str,
        scroll_filter: Optional[models.Filter],
        max_points: Optional[int] = None
    ) -> List[Any]:
        """Page through matching points; without ``max_points`` read until the collection is exhausted."""
        points: List[Any] = []
        offset = None
        batch_size = max(1, self.settings.scroll_batch_size)
        while max_points is None or len(points) < max_points:
            limit = batch_size if max_points is None else min(batch_size, max_points - len(points))
            batch, offset = await self.client.scroll(
                collection_name=collection,
                scroll_filter=scroll_filter,
                limit=limit,
                offset=offset,
                with_payload=True,
                with_vectors=True,
            )
            points.extend(batch)
            if offset is None:
                break
        return points

    # Answer cache

    def _entry_from_point(self, point: Any) -> CacheEntry:
        payload = point.payload or {}
        return CacheEntry(
            id=str(point.id),
            query=payload.get("query", ""),
            embedding=_point_vector(point) or None,
            answer=payload.get("answer", ""),
            created_at=_from_timestamp(payload.get("created_at", 0)),
            last_accessed=_from_timestamp(payload.get("last_accessed", 0)),
        )

    async def _purge_expired(self) -> None:
        cutoff = self._clock() - timedelta(seconds=self.cache_ttl_seconds)
        await self.client.delete(
            collection_name=self.cache_collection,
            points_selector=models.FilterSelector(filter=models.Filter(must=[
                models.FieldCondition(key="created_at", range=models.Range(lte=_to_timestamp(cutoff))),
            ])),
        )

    def _query_filter(self, query: str) -> models.Filter:
        return models.Filter(must=[models.FieldCondition(key="query", match=models.MatchValue(value=query))])

    @error_handler_decorator(VectorStoreError)
    async def find_cache_entry(self, query: str) -> Optional[CacheEntry]:
        await self.ensure_collections()
        await self._purge_expired()
        points = await self._scroll(self.cache_collection, self._query_filter(query), 1)
        return self._entry_from_point(points[0]) if points else None

    @error_handler_decorator(VectorStoreError)
    async def list_cache_entries(self) -> List[CacheEntry]:
        await self.ensure_collections()
        await self._purge_expired()
        points = await self._scroll(self.cache_collection, None)
        return [self._entry_from_point(point) for point in points]

    @error_handler_decorator(VectorStoreError)
    async def insert_cache_entry(self, entry: CacheEntry, replace_existing: bool = False) -> str:
        await self.ensure_collections()
        if not entry.embedding:
            raise VectorStoreError("Cache entries need a query embedding in the Qdrant store")

        if replace_existing:
            await self.client.delete(
                collection_name=self.cache_collection,
                points_selector=models.FilterSelector(filter=self._query_filter(entry.query)),
            )

        await self.client.upsert(
            collection_name=self.cache_collection,
            points=[models.PointStruct(
                id=entry.id,
                vector=list(entry.embedding),
                payload={
                    "query": entry.query,
                    "answer": entry.answer,
                    "created_at": _to_timestamp(entry.created_at),
                    "last_accessed": _to_timestamp(entry.last_accessed),
                },
            )],
        )
        return entry.id

    @error_handler_decorator(VectorStoreError)
    async def touch_cache_entry(self, entry_id: str, accessed_at: datetime) -> None:
        await self.client.set_payload(
            collection_name=self.cache_collection,
            payload={"last_accessed": _to_timestamp(accessed_at)},
            points=[entry_id],
        )

    @error_handler_decorator(VectorStoreError)
    async def clear_cache(self) -> int:
        await self.ensure_collections()
        result = await self.client.count(collection_name=self.cache_collection, exact=True)
        await self.client.delete_collection(self.cache_collection)
        await self._create_collection(self.cache_collection)
        logger.info(f"🗑️ Cleared {result.count} cache entries")
        return result.count

    # Lifecycle

    async def health_check(self) -> bool:
        try:
            await self.client.get_collections()
            return True
        except Exception as e:
            logger.error(f"❌ Qdrant health check failed: {str(e)}")
            return False

    async def get_stats(self) -> Dict[str, Any]:
        stats = await super().get_stats()
        stats.update({"backend": "qdrant", "url": self.settings.qdrant_url})
        return stats

    async def close(self) -> None:
        await self.client.close()
