"""
Two-tier answer cache.

Lookups try an exact query match first and, in semantic mode, fall back to
the most similar cached query above a threshold. Writes happen only after a
fresh answer and are gated by answer classification (and, in legacy mode,
retrieval confidence). Cache failures never fail a query.
"""

from datetime import datetime
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence
from rag_backend.config.models import CacheEntry, RetrievalCandidate, utc_now
from rag_backend.config.settings import CacheConfig, get_config
from rag_backend.core.cache.classifier import AnswerClass, AnswerClassifier, SubstringAnswerClassifier, normalize_answer
from rag_backend.core.embeddings.providers import EmbeddingProvider
from rag_backend.core.similarity import cosine_similarity
from rag_backend.core.vectorstore.base import DocumentStore
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import CacheError, ConfigurationError

logger = get_logger(__name__)

SEMANTIC_MODE = "semantic"
LEGACY_MODE = "legacy"


class CacheLookup(NamedTuple):
    """Outcome of a cache check."""

    hit: bool
    answer: Optional[str] = None
    query_embedding: Optional[List[float]] = None
    semantic: bool = False


MISS = CacheLookup(hit=False)


class AnswerCache:
    """Exact and semantic answer cache on top of a document store."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        classifier: Optional[AnswerClassifier] = None,
        similarity_threshold: float = 0.93,
        mode: str = SEMANTIC_MODE,
        confidence_threshold: float = 0.85,
        standard_answers: Iterable[str] = (),
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize answer cache.

        Args:
            store: Store holding cache entries
            embedder: Embedding provider for semantic lookups
            classifier: Answer classifier used for admission
            similarity_threshold: Minimum cosine similarity for a semantic hit
            mode: "semantic" (exact + semantic) or "legacy" (exact only)
            confidence_threshold: Minimum retrieval confidence in legacy mode
            standard_answers: Answers admitted in legacy mode regardless of confidence
            clock: Source of the current time for entry timestamps

        Raises:
            ConfigurationError: If the mode is unknown
        """
        mode = mode.lower()
        if mode not in (SEMANTIC_MODE, LEGACY_MODE):
            raise ConfigurationError(f"Unknown cache mode: {mode}")

        self.document_store = store
        self.embedder = embedder
        self.classifier = classifier or SubstringAnswerClassifier()
        self.similarity_threshold = similarity_threshold
        self.mode = mode
        self.confidence_threshold = confidence_threshold
        self.standard_answers = [normalize_answer(a).strip() for a in standard_answers if a]
        self._clock = clock or utc_now

        logger.info(f"💾 Initialized answer cache (mode={mode}, threshold={similarity_threshold})")

    @property
    def semantic(self) -> bool:
        return self.mode == SEMANTIC_MODE

    async def check(self, query: str) -> CacheLookup:
        """
        Look up a cached answer.

        Args:
            query: Incoming query text

        Returns:
            Lookup result; on a miss it may carry the query embedding for reuse
        """
        try:
            entry = await self.document_store.find_cache_entry(query)
            if entry is not None:
                await self.document_store.touch_cache_entry(entry.id, self._clock())
                logger.info(f"🎯 Exact cache hit for: {query[:50]}...")
                return CacheLookup(hit=True, answer=entry.answer, query_embedding=entry.embedding)
        except Exception as e:
            logger.error(f"❌ Exact cache check failed: {str(e)}")
            return MISS

        if not self.semantic:
            return MISS

        query_embedding = None
        try:
            query_embedding = await self.embedder.embed_query(query)
            best_entry, best_score = self._best_match(query_embedding, await self.document_store.list_cache_entries())

            if best_entry is not None and best_score >= self.similarity_threshold:
                await self.document_store.touch_cache_entry(best_entry.id, self._clock())
                logger.info(f"🎯 Semantic cache hit ({best_score:.3f}) for: {query[:50]}...")
                return CacheLookup(hit=True, answer=best_entry.answer, query_embedding=query_embedding, semantic=True)

            return CacheLookup(hit=False, query_embedding=query_embedding)

        except Exception as e:
            logger.error(f"❌ Semantic cache check failed: {str(e)}")
            return CacheLookup(hit=False, query_embedding=query_embedding)

    def _best_match(self, query_embedding: Sequence[float], entries: Sequence[CacheEntry]):
        best_entry, best_score = None, float("-inf")
        for entry in entries:
            if not entry.embedding or len(entry.embedding) != len(query_embedding):
                continue
            score = cosine_similarity(query_embedding, entry.embedding)
            if score > best_score:
                best_entry, best_score = entry, score
        return best_entry, best_score

    def retrieval_confidence(
        self,
        query_embedding: Optional[Sequence[float]],
        candidates: Sequence[RetrievalCandidate]
    ) -> Optional[float]:
        """Cosine between the query and the top candidate, or None."""
        if not query_embedding or not candidates or not candidates[0].embedding:
            return None
        try:
            return cosine_similarity(query_embedding, candidates[0].embedding)
        except ValueError as e:
            logger.warning(f"⚠️ Could not compute retrieval confidence: {str(e)}")
            return None

    def _is_standard_answer(self, answer: str) -> bool:
        normalized = normalize_answer(answer).strip()
        return any(normalized.startswith(standard) for standard in self.standard_answers)

    def should_admit(
        self,
        answer: str,
        query_embedding: Optional[Sequence[float]],
        candidates: Sequence[RetrievalCandidate]
    ) -> bool:
        """Admission policy for a freshly generated answer."""
        if self.classifier.classify(answer) is AnswerClass.AMBIGUOUS:
            return False
        if self.semantic:
            return True

        confidence = self.retrieval_confidence(query_embedding, candidates)
        if confidence is not None and confidence >= self.confidence_threshold:
            return True
        return self._is_standard_answer(answer)

    async def store(
        self,
        query: str,
        query_embedding: Optional[Sequence[float]],
        answer: str,
        candidates: Sequence[RetrievalCandidate] = ()
    ) -> bool:
        """
        Cache a fresh answer if it passes admission.

        Returns:
            True if an entry was written
        """
        try:
            if not self.should_admit(answer, query_embedding, candidates):
                logger.info(f"🚫 Answer not cached for: {query[:50]}...")
                return False

            now = self._clock()
            entry = CacheEntry(
                query=query,
                embedding=list(query_embedding) if query_embedding else None,
                answer=answer,
                created_at=now,
                last_accessed=now,
            )
            await self.document_store.insert_cache_entry(entry, replace_existing=not self.semantic)
            logger.info(f"💾 Cached answer for: {query[:50]}...")
            return True

        except Exception as e:
            logger.error(f"❌ Failed to cache answer: {str(e)}")
            return False

    async def invalidate(self) -> int:
        """
        Remove every cached answer.

        Raises:
            CacheError: If the store could not be cleared
        """
        try:
            removed = await self.document_store.clear_cache()
        except Exception as e:
            error_msg = f"Failed to invalidate answer cache: {str(e)}"
            logger.error(error_msg)
            raise CacheError(error_msg) from e
        logger.info(f"🗑️ Invalidated {removed} cached answers")
        return removed


def create_answer_cache(
    store: DocumentStore,
    embedder: EmbeddingProvider,
    settings: Optional[CacheConfig] = None
) -> AnswerCache:
    """Create an answer cache from configuration."""
    settings = settings or get_config().cache
    return AnswerCache(
        store,
        embedder,
        classifier=SubstringAnswerClassifier(settings.ambiguous_phrases),
        similarity_threshold=settings.similarity_threshold,
        mode=settings.mode,
        confidence_threshold=settings.confidence_threshold,
        standard_answers=settings.standard_answers,
    )
