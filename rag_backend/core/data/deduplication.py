"""
Semantic deduplication on ingest.

A new chunk that is a near-duplicate of an active chunk supersedes it: the new
chunk is always inserted, and the old one is linked to it and excluded from
retrieval from then on.
"""

from typing import NamedTuple, Optional, Sequence
from rag_backend.config.models import ActiveChunk
from rag_backend.config.settings import DedupConfig, get_config
from rag_backend.core.similarity import cosine_similarity
from rag_backend.core.vectorstore.base import DocumentStore
from rag_backend.utils.logging import get_logger

logger = get_logger(__name__)


class DedupOutcome(NamedTuple):
    """Result of ingesting one chunk."""

    chunk_id: str
    superseded_id: Optional[str]


class DeduplicationEngine:
    """Finds and supersedes near-duplicate chunks."""

    def __init__(
        self,
        store: DocumentStore,
        threshold: float = 0.90,
        limit: int = 3,
        num_candidates: int = 100
    ):
        """
        Initialize deduplication engine.

        Args:
            store: Document store holding the chunks
            threshold: Minimum cosine similarity to treat chunks as duplicates
            limit: Number of nearest chunks to inspect
            num_candidates: Search breadth passed to the store
        """
        self.store = store
        self.threshold = threshold
        self.limit = limit
        self.num_candidates = num_candidates

        logger.info(f"🧬 Initialized deduplication engine (threshold={threshold}, limit={limit})")

    async def find_superseded_candidate(self, embedding: Sequence[float]) -> Optional[str]:
        """
        Find the active chunk a new embedding should supersede.

        Candidates are checked in store order; the first one at or above the
        threshold wins.

        Args:
            embedding: Embedding of the incoming chunk

        Returns:
            Id of the chunk to supersede, or None
        """
        try:
            results = await self.store.vector_search(
                embedding,
                limit=self.limit,
                num_candidates=self.num_candidates,
            )
        except Exception as e:
            logger.error(f"❌ Duplicate search failed, inserting without supersession: {str(e)}")
            return None

        for chunk, _ in results:
            if not isinstance(chunk, ActiveChunk):
                continue
            try:
                similarity = cosine_similarity(embedding, chunk.embedding)
            except ValueError as e:
                logger.warning(f"⚠️ Skipping candidate {chunk.id}: {str(e)}")
                continue
            if similarity >= self.threshold:
                logger.info(f"🔁 Chunk {chunk.id} is a near-duplicate (similarity {similarity:.3f})")
                return chunk.id

        return None

    async def ingest(self, text: str, embedding: Sequence[float]) -> DedupOutcome:
        """
        Insert a chunk and supersede its near-duplicate, if any.

        Args:
            text: Chunk text
            embedding: Chunk embedding

        Returns:
            The new chunk id and the id of the chunk it superseded
        """
        candidate_id = await self.find_superseded_candidate(embedding)

        chunk = ActiveChunk(text=text, embedding=list(embedding))
        await self.store.insert_chunks([chunk])

        if candidate_id is None:
            return DedupOutcome(chunk.id, None)

        try:
            linked = await self.store.mark_superseded(candidate_id, chunk.id)
        except Exception as e:
            logger.error(f"❌ Failed to supersede chunk {candidate_id}: {str(e)}")
            return DedupOutcome(chunk.id, None)

        if not linked:
            logger.warning(f"⚠️ Chunk {candidate_id} was no longer active")
            return DedupOutcome(chunk.id, None)

        return DedupOutcome(chunk.id, candidate_id)


def create_deduplication_engine(store: DocumentStore, settings: Optional[DedupConfig] = None) -> DeduplicationEngine:
    """Create a deduplication engine from configuration."""
    settings = settings or get_config().dedup
    return DeduplicationEngine(
        store,
        threshold=settings.similarity_threshold,
        limit=settings.limit,
        num_candidates=settings.num_candidates,
    )
