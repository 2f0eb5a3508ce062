"""
Main RAG system class that orchestrates all components.

Ingest: chunk, normalize, embed, deduplicate, store, invalidate the cache.
Query: cache lookup, then embed, retrieve, generate and (maybe) cache.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from rag_backend.chains.generator import AnswerGenerator, create_answer_generator
from rag_backend.chains.prompts import SYSTEM_PROMPT, build_user_prompt
from rag_backend.config.models import utc_now
from rag_backend.config.settings import RAGConfig, get_config, validate_api_keys
from rag_backend.core.cache.answer_cache import AnswerCache, CacheLookup, create_answer_cache
from rag_backend.core.data.deduplication import DeduplicationEngine, create_deduplication_engine
from rag_backend.core.data.processors import TextChunker, create_text_chunker
from rag_backend.core.data.validators import normalize_chunks, require_text
from rag_backend.core.embeddings.providers import EmbeddingProvider, create_embedding_client
from rag_backend.core.retrieval.hybrid import HybridRetriever, build_context, create_hybrid_retriever
from rag_backend.core.vectorstore.base import DocumentStore
from rag_backend.core.vectorstore.factory import create_document_store
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import EmbeddingError, RAGException
from rag_backend.utils.decorators import timing_decorator

logger = get_logger(__name__)


class IngestResult(BaseModel):
    """Outcome of indexing one text."""

    chunks_inserted: int
    superseded_old_chunks: int


class QueryResult(BaseModel):
    """Answer to one query."""

    query: str
    retrieved_data: List[str]
    answer: str
    cached: bool = False
    semantic_cache: bool = False


class RAGSystem:
    """Retrieval-augmented answer system with deduplicated ingest and an answer cache."""

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        chunker: TextChunker,
        deduplicator: DeduplicationEngine,
        retriever: HybridRetriever,
        cache: Optional[AnswerCache],
        generator: AnswerGenerator,
        config: Optional[RAGConfig] = None
    ):
        """
        Initialize RAG system.

        Args:
            store: Document store for chunks and cache entries
            embedder: Embedding provider
            chunker: Text chunker
            deduplicator: Near-duplicate detection on ingest
            retriever: Hybrid retriever
            cache: Answer cache, or None to disable caching
            generator: Answer generator
            config: RAG configuration (defaults to global config)
        """
        self.config = config or get_config()
        self.store = store
        self.embedder = embedder
        self.chunker = chunker
        self.deduplicator = deduplicator
        self.retriever = retriever
        self.cache = cache
        self.generator = generator

        logger.info("🚀 RAG system initialized")

    @timing_decorator
    async def ingest(self, text: Any) -> IngestResult:
        """
        Index a text.

        Args:
            text: Raw text to chunk and store

        Returns:
            Number of chunks inserted and of old chunks superseded

        Raises:
            ValidationError: If the text is missing or yields no usable chunk
            EmbeddingError: If embedding fails
            VectorStoreError: If inserting fails
        """
        text = require_text(text, "text")
        logger.info(f"📥 Ingesting text ({len(text)} chars)")

        chunks = normalize_chunks(self.chunker.chunk(text))
        embeddings = await self.embedder.embed(chunks)
        if len(embeddings) != len(chunks):
            raise EmbeddingError(f"Got {len(embeddings)} embeddings for {len(chunks)} chunks")

        superseded = 0
        for chunk, embedding in zip(chunks, embeddings):
            outcome = await self.deduplicator.ingest(chunk, embedding)
            if outcome.superseded_id is not None:
                superseded += 1

        if self.cache is not None and self.config.cache.invalidate_on_ingest:
            try:
                await self.cache.invalidate()
            except RAGException as e:
                logger.error(f"❌ Cache invalidation after ingest failed: {str(e)}")

        logger.info(f"✅ Ingested {len(chunks)} chunks, superseded {superseded}")
        return IngestResult(chunks_inserted=len(chunks), superseded_old_chunks=superseded)

    @timing_decorator
    async def query(self, question: Any) -> QueryResult:
        """
        Answer a question.

        Args:
            question: Natural-language question

        Returns:
            The answer, the chunk texts it was grounded on, and cache flags

        Raises:
            ValidationError: If the question is missing
            EmbeddingError, RetrievalError, GenerationError: If the pipeline fails
        """
        question = require_text(question, "query")
        logger.info(f"❓ Processing query: {question[:50]}...")

        lookup = await self.cache.check(question) if self.cache is not None else CacheLookup(hit=False)
        if lookup.hit:
            return QueryResult(
                query=question,
                retrieved_data=[],
                answer=lookup.answer or "",
                cached=True,
                semantic_cache=lookup.semantic,
            )

        query_embedding = lookup.query_embedding or await self.embedder.embed_query(question)
        candidates = await self.retriever.retrieve(question, query_embedding)
        context = build_context(candidates, self.config.retrieval.context_separator)

        answer = await self.generator.generate(SYSTEM_PROMPT, build_user_prompt(context, question))

        if self.cache is not None:
            try:
                await self.cache.store(question, query_embedding, answer, candidates)
            except Exception as e:
                logger.error(f"❌ Answer cache write failed, returning uncached answer: {str(e)}")

        logger.info(f"✅ Answered query from {len(candidates)} chunks")
        return QueryResult(
            query=question,
            retrieved_data=[candidate.text for candidate in candidates],
            answer=answer,
        )

    async def get_stats(self) -> Dict[str, Any]:
        """
        Get system statistics.

        Returns:
            Dictionary with system statistics
        """
        return {
            "store": await self.store.get_stats(),
            "configuration": {
                "embedding_model": self.config.embedding.model_name,
                "llm_model": self.config.llm.model_name,
                "cache_mode": self.cache.mode if self.cache is not None else None,
                "keyword_boost": self.retriever.keyword_boost,
                "top_k": self.retriever.top_k,
            },
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform system health check.

        Returns:
            Dictionary with health status
        """
        health_status = {
            "overall": "healthy",
            "components": {},
            "timestamp": utc_now().isoformat()
        }

        try:
            store_ok = await self.store.health_check()
            health_status["components"]["document_store"] = store_ok
            health_status["components"]["answer_cache"] = self.cache is not None
            if not store_ok:
                health_status["overall"] = "degraded"
        except Exception as e:
            logger.error(f"❌ Health check failed: {str(e)}")
            health_status["overall"] = "unhealthy"
            health_status["error"] = str(e)

        return health_status

    async def close(self) -> None:
        """Release HTTP clients and store connections."""
        await self.embedder.aclose()
        await self.generator.aclose()
        await self.store.close()
        logger.info("👋 RAG system closed")


def create_rag_system(config: Optional[RAGConfig] = None) -> RAGSystem:
    """
    Create a RAG system from configuration.

    Args:
        config: RAG configuration (defaults to global config)

    Returns:
        RAG system instance

    Raises:
        APIKeyError: If required API keys are missing
        ConfigurationError: If the configuration is invalid
    """
    config = config or get_config()
    validate_api_keys(config)

    store = create_document_store(config)
    embedder = create_embedding_client(config.embedding)
    chunker = create_text_chunker(config.data)
    deduplicator = create_deduplication_engine(store, config.dedup)
    retriever = create_hybrid_retriever(store, config.retrieval)
    cache = create_answer_cache(store, embedder, config.cache) if config.cache.enabled else None
    generator = create_answer_generator(config.llm)

    return RAGSystem(store, embedder, chunker, deduplicator, retriever, cache, generator, config=config)
